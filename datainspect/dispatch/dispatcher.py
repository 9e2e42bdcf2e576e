"""
Dispatcher — route a source to the worker service for its format.

A dispatch is one synchronous ``POST /profile`` that blocks until the walk
finishes.  Each source moves through::

    RECEIVED -> CLASSIFIED -> DISPATCHED -> COMPLETED
                                  |  ^
                                  v  |
                               RETRYING  ->  FAILED

Only an unreachable worker is retried (exponential backoff).  A read
timeout, or a worker that answers with ``status=failed``, fails the source
straight away.  Errors are raised as :class:`DispatchError` subclasses; the
dispatcher never exits the process.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import requests

from datainspect.config import InspectConfig
from datainspect.dispatch.schemas import STATUS_COMPLETED, DispatchRequest, DispatchResponse
from datainspect.errors import (
    DispatchError,
    DispatchTimeout,
    DispatchUnreachable,
    SourceUnreadable,
    WorkerFailure,
)
from datainspect.models.manifest import ProfilingManifest
from datainspect.models.source import FormatTag, SourceLocation

__all__ = [
    "Dispatcher",
    "DispatchRecord",
    "DispatchResult",
    "SourceState",
    "classify_directory",
]

logger = logging.getLogger(__name__)

_RETRY_STATUS = {502, 503, 504}


class SourceState(Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    DISPATCHED = "dispatched"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class DispatchRecord:
    """Lifecycle of one source through the dispatcher."""

    location: SourceLocation
    source_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    tag: FormatTag | None = None
    state: SourceState = SourceState.RECEIVED
    history: list[SourceState] = field(default_factory=lambda: [SourceState.RECEIVED])
    attempts: int = 0
    error: str | None = None

    def transition(self, state: SourceState) -> None:
        logger.debug("Source %s: %s -> %s", self.source_id, self.state.value, state.value)
        self.state = state
        self.history.append(state)


@dataclass
class DispatchResult:
    """Outcome of dispatching one source.

    ``manifest`` is set for completed dispatches; ``error`` holds the raised
    :class:`DispatchError` when the result comes from
    :meth:`Dispatcher.dispatch_directory`, which reports failures instead of
    raising them.
    """

    record: DispatchRecord
    manifest: ProfilingManifest | None = None
    message: str = ""
    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.record.state is SourceState.COMPLETED


def classify_directory(root: str | Path, config: InspectConfig | None = None) -> list[FormatTag]:
    """Return the file formats present under *root*, by file extension.

    Tags come back in a fixed order (delimited text first) so repeated calls
    dispatch in the same sequence.
    """
    config = config or InspectConfig()
    root = Path(root)
    if not root.is_dir():
        raise SourceUnreadable(f"Cannot open source directory {root}")

    by_ext = {ext.lower(): FormatTag.DELIMITED_TEXT for ext in config.delimited_extensions}
    by_ext.update({ext.lower(): FormatTag.JSON_ARRAY for ext in config.json_extensions})

    found: set[FormatTag] = set()
    for _dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            tag = by_ext.get(Path(filename).suffix.lower())
            if tag is not None:
                found.add(tag)

    return [tag for tag in (FormatTag.DELIMITED_TEXT, FormatTag.JSON_ARRAY) if tag in found]


class Dispatcher:
    """Send sources to the format worker services over HTTP.

    Parameters
    ----------
    config : InspectConfig, optional
        Endpoints, timeouts and retry policy.
    session : requests.Session, optional
        Shared HTTP session; a new one is created when omitted.
    sleep : callable
        Used between retries.
    """

    def __init__(
        self,
        config: InspectConfig | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or InspectConfig()
        self.session = session or requests.Session()
        self._sleep = sleep

    def endpoint(self, tag: FormatTag) -> str:
        return f"{self.config.endpoint_for(tag)}/profile"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(
        self,
        location: SourceLocation,
        tag: FormatTag | str,
        timeout: float | None = None,
    ) -> DispatchResult:
        """Profile *location* with the worker for *tag*; block until done.

        Raises
        ------
        DispatchUnreachable
            The worker could not be reached after all retries.
        DispatchTimeout
            The worker did not answer within *timeout* seconds.
        WorkerFailure
            The worker answered with ``status=failed``.
        """
        return self._run(DispatchRecord(location=location), tag, timeout)

    def dispatch_directory(self, root: str | Path, timeout: float | None = None) -> dict[FormatTag, DispatchResult]:
        """Dispatch *root* to every file worker whose format appears in it.

        Failures are reported per format in the returned results rather than
        raised, so one unreachable worker does not hide the other's output.
        """
        location = SourceLocation.directory(str(root))
        tags = classify_directory(root, self.config)
        if not tags:
            logger.warning("No delimited or JSON files under %s", root)

        results: dict[FormatTag, DispatchResult] = {}
        for tag in tags:
            record = DispatchRecord(location=location)
            try:
                results[tag] = self._run(record, tag, timeout)
            except DispatchError as exc:
                manifest = getattr(exc, "manifest", None)
                results[tag] = DispatchResult(
                    record=record,
                    manifest=ProfilingManifest.from_dict(manifest) if manifest else None,
                    message=str(exc),
                    error=exc,
                )
        return results

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _run(self, record: DispatchRecord, tag: FormatTag | str, timeout: float | None) -> DispatchResult:
        record.tag = FormatTag.parse(tag)
        record.transition(SourceState.CLASSIFIED)
        logger.info("Dispatching %s to %s worker", record.location.describe(), record.tag.value)
        return self._send(record, timeout if timeout is not None else self.config.dispatch_timeout)

    def _send(self, record: DispatchRecord, timeout: float) -> DispatchResult:
        payload = DispatchRequest.from_location(record.location, record.tag, timeout=timeout)
        body = payload.model_dump(by_alias=True)
        url = self.endpoint(record.tag)
        retries = max(0, self.config.dispatch_retries)

        for attempt in range(retries + 1):
            record.attempts += 1
            record.transition(SourceState.DISPATCHED)
            try:
                data = self._post(url, body, timeout)
                break
            except DispatchUnreachable as exc:
                record.error = str(exc)
                if attempt == retries:
                    record.transition(SourceState.FAILED)
                    logger.error("Giving up on %s after %d attempts: %s", url, record.attempts, exc)
                    raise
                delay = self.config.retry_backoff * (2 ** attempt)
                record.transition(SourceState.RETRYING)
                logger.warning("%s (attempt %d/%d); retrying in %.2fs", exc, attempt + 1, retries + 1, delay)
                self._sleep(delay)
            except DispatchError as exc:
                record.error = str(exc)
                record.transition(SourceState.FAILED)
                logger.error("Dispatch of %s failed: %s", record.location.describe(), exc)
                raise

        try:
            response = DispatchResponse.model_validate(data)
        except ValueError as exc:
            record.error = str(exc)
            record.transition(SourceState.FAILED)
            raise DispatchError(f"Malformed response from {url}: {exc}") from exc

        if response.status != STATUS_COMPLETED:
            record.error = response.message
            record.transition(SourceState.FAILED)
            raise WorkerFailure(
                response.message or f"{record.tag.value} worker reported failure",
                error_code=response.errorCode,
                manifest=response.manifest,
            )

        record.transition(SourceState.COMPLETED)
        manifest = ProfilingManifest.from_dict(response.manifest) if response.manifest else None
        logger.info("Source %s completed: %s", record.source_id, response.message)
        return DispatchResult(record=record, manifest=manifest, message=response.message)

    def _post(self, url: str, body: dict[str, Any], timeout: float) -> Any:
        # The worker stops itself at ``timeout``; allow it time to answer.
        read_timeout = timeout + self.config.connect_timeout
        try:
            resp = self.session.post(url, json=body, timeout=(self.config.connect_timeout, read_timeout))
        except requests.ConnectionError as exc:
            raise DispatchUnreachable(f"Worker at {url} unreachable: {exc}") from exc
        except requests.Timeout as exc:
            raise DispatchTimeout(f"Worker at {url} did not answer within {timeout}s") from exc
        except requests.RequestException as exc:
            raise DispatchError(f"Request to {url} failed: {exc}") from exc

        if resp.status_code in _RETRY_STATUS:
            raise DispatchUnreachable(f"Worker at {url} unavailable (HTTP {resp.status_code})")
        if resp.status_code >= 400:
            raise DispatchError(f"Worker at {url} rejected the request (HTTP {resp.status_code}): {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise DispatchError(f"Non-JSON response from {url}: {exc}") from exc
