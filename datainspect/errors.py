"""
Error taxonomy.

Every error carries a stable ``code`` that travels back to callers in the
worker response, so a dispatcher can tell the failure modes apart without
parsing messages.

Per-item errors (one file, one table) are caught by the worker walk and
recorded in the manifest.  Whole-invocation errors are raised to the caller.
"""

from __future__ import annotations

__all__ = [
    "InspectError",
    "SourceUnreadable",
    "RecordParseFailure",
    "EmptySourceError",
    "WriteFailure",
    "ProfilingCancelled",
    "DispatchError",
    "DispatchUnreachable",
    "DispatchTimeout",
    "WorkerFailure",
]


class InspectError(Exception):
    """Base class for all profiling errors."""

    code = "INSPECT_ERROR"
    retryable = False


# ---------------------------------------------------------------------------
# Profiling
# ---------------------------------------------------------------------------

class SourceUnreadable(InspectError):
    """The root path, file or database cannot be opened."""

    code = "SOURCE_UNREADABLE"


class RecordParseFailure(InspectError):
    """One file or table is malformed and cannot be profiled."""

    code = "RECORD_PARSE_FAILURE"


class EmptySourceError(InspectError):
    """The source has no rows."""

    code = "EMPTY_SOURCE"


class WriteFailure(InspectError):
    """A descriptor could not be written to the output directory."""

    code = "WRITE_FAILURE"
    retryable = True


class ProfilingCancelled(InspectError):
    """The walk was cancelled (caller timeout or explicit cancel)."""

    code = "CANCELLED"


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class DispatchError(InspectError):
    """The dispatch call to a format worker did not complete."""

    code = "DISPATCH_ERROR"


class DispatchUnreachable(DispatchError):
    """The worker process is down or the network is unreachable."""

    code = "DISPATCH_UNREACHABLE"
    retryable = True


class DispatchTimeout(DispatchError):
    """The worker did not answer within the caller's timeout."""

    code = "DISPATCH_TIMEOUT"


class WorkerFailure(DispatchError):
    """The worker answered but reported a whole-invocation failure."""

    code = "WORKER_FAILURE"

    def __init__(self, message: str, *, error_code: str | None = None, manifest: dict | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code or self.code
        self.manifest = manifest
