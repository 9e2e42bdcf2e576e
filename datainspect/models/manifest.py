"""
ProfilingManifest — what one worker invocation produced and what it skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = ["ManifestEntry", "SkippedItem", "ProfilingManifest"]


@dataclass
class ManifestEntry:
    """A member that was profiled and written."""

    name: str
    source_path: str
    descriptor_path: str
    rows: int
    columns: int
    flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "sourcePath": self.source_path,
            "descriptorPath": self.descriptor_path,
            "rows": self.rows,
            "columns": self.columns,
            "flags": list(self.flags),
        }


@dataclass
class SkippedItem:
    """A member that could not be profiled; the walk went on without it."""

    name: str
    source_path: str
    reason: str
    error_code: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "sourcePath": self.source_path,
            "reason": self.reason,
            "errorCode": self.error_code,
        }


@dataclass
class ProfilingManifest:
    format: str
    source: str
    succeeded: list[ManifestEntry] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)
    cancelled: bool = False
    diagnostics: dict[str, int] = field(default_factory=dict)

    @property
    def nothing_found(self) -> bool:
        """No member matched the format at all."""
        return not self.succeeded and not self.skipped

    @property
    def all_failed(self) -> bool:
        """Members were found but every one of them was skipped."""
        return bool(self.skipped) and not self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "source": self.source,
            "succeeded": [e.to_dict() for e in self.succeeded],
            "skipped": [s.to_dict() for s in self.skipped],
            "cancelled": self.cancelled,
            "diagnostics": dict(self.diagnostics),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfilingManifest:
        return cls(
            format=data.get("format", ""),
            source=data.get("source", ""),
            succeeded=[
                ManifestEntry(
                    name=e["name"],
                    source_path=e["sourcePath"],
                    descriptor_path=e["descriptorPath"],
                    rows=e["rows"],
                    columns=e["columns"],
                    flags=list(e.get("flags", [])),
                )
                for e in data.get("succeeded", [])
            ],
            skipped=[
                SkippedItem(
                    name=s["name"],
                    source_path=s["sourcePath"],
                    reason=s["reason"],
                    error_code=s["errorCode"],
                )
                for s in data.get("skipped", [])
            ],
            cancelled=bool(data.get("cancelled", False)),
            diagnostics=dict(data.get("diagnostics", {})),
        )
