"""
Format worker template.

Every format worker runs the same sequence::

    enumerate members  ->  read_columns  ->  describe  ->  write_descriptor

and differs only in how it enumerates and reads its own format.  The walk,
per-member error isolation, cancellation checks and the manifest live here
once.

Failure policy
--------------
* The root (directory or database) cannot be opened: :class:`SourceUnreadable`
  is raised out of :meth:`FormatWorker.run`.
* One member fails for any reason: it is logged, recorded as skipped in the
  manifest, and the walk continues.
* The cancel token trips: the walk stops before the next member and the
  manifest is marked ``cancelled``.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from datainspect.config import InspectConfig
from datainspect.errors import InspectError, SourceUnreadable
from datainspect.models.manifest import ManifestEntry, ProfilingManifest, SkippedItem
from datainspect.profiler.column_profiler import ColumnProfiler, TableSource
from datainspect.store.descriptor_store import DescriptorStore
from datainspect.utils.cancel import CancelToken

if TYPE_CHECKING:
    from datainspect.models.descriptor import DatasetDescriptor
    from datainspect.models.source import FormatTag, SourceLocation

__all__ = ["Member", "FormatWorker", "FileFormatWorker"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Member:
    """One file or table found by a worker's enumeration.

    *key* identifies the member within its walk: the file's path relative to
    the walk root, or ``<dbname>/<schema>/<table>`` for tables.  It names the
    descriptor written for the member.
    """

    name: str
    path: str
    size: int | None = None
    key: str = ""


class FormatWorker(ABC):
    """Base class for the delimited-text, JSON-array and relational workers.

    A worker instance serves a single :meth:`run`; per-walk state (such as
    delimiter tallies) lives on the instance and is never shared between
    concurrent requests.  The :class:`DescriptorStore` may be shared.
    """

    tag: FormatTag

    def __init__(
        self,
        config: InspectConfig | None = None,
        *,
        store: DescriptorStore | None = None,
        profiler: ColumnProfiler | None = None,
    ) -> None:
        self.config = config or InspectConfig()
        self.store = store or DescriptorStore(
            self.config.output_dir, write_retries=self.config.write_retries,
        )
        self.profiler = profiler or ColumnProfiler(sample_count=self.config.sample_values_count)

    # ------------------------------------------------------------------
    # Format-specific capabilities
    # ------------------------------------------------------------------

    @abstractmethod
    def enumerate(self, location: SourceLocation, cancel: CancelToken) -> Iterator[Member]:
        """Return the members to profile.

        Must raise :class:`SourceUnreadable` *before* returning if the root
        itself cannot be opened.
        """

    @abstractmethod
    def read_columns(self, member: Member) -> TableSource:
        """Read one member into a :class:`TableSource`."""

    def describe(self, member: Member, table: TableSource) -> DatasetDescriptor:
        """Turn the read table into a descriptor (in-memory profiling by default)."""
        return self.profiler.profile(table)

    def output_key(self, member: Member) -> str:
        """Store key for *member*'s descriptor: ``<format>/<member key>``."""
        return f"{self.tag.value}/{member.key or member.name}"

    def write_descriptor(self, descriptor: DatasetDescriptor, member: Member) -> Path:
        return self.store.write(descriptor, key=self.output_key(member))

    def diagnostics(self) -> dict[str, int]:
        """Counters reported in the manifest; none by default."""
        return {}

    def close(self) -> None:
        """Release resources held for the walk."""

    # ------------------------------------------------------------------
    # The walk
    # ------------------------------------------------------------------

    def run(self, location: SourceLocation, cancel: CancelToken | None = None) -> ProfilingManifest:
        """Profile every member of *location* and write one descriptor each."""
        cancel = cancel or CancelToken()
        manifest = ProfilingManifest(format=self.tag.value, source=location.describe())
        logger.info("[%s] Profiling %s", self.tag.value, manifest.source)

        try:
            for member in self.enumerate(location, cancel):
                if cancel.cancelled:
                    manifest.cancelled = True
                    logger.warning("[%s] Walk of %s cancelled", self.tag.value, manifest.source)
                    break
                self._profile_member(member, manifest)
            else:
                # The enumeration itself stops early once the token trips.
                manifest.cancelled = cancel.cancelled
        finally:
            self.close()

        manifest.diagnostics = self.diagnostics()
        logger.info(
            "[%s] Done with %s: %d profiled, %d skipped%s",
            self.tag.value, manifest.source, len(manifest.succeeded), len(manifest.skipped),
            " (cancelled)" if manifest.cancelled else "",
        )
        return manifest

    def _profile_member(self, member: Member, manifest: ProfilingManifest) -> None:
        try:
            table = self.read_columns(member)
            descriptor = self.describe(member, table)
            path = self.write_descriptor(descriptor, member)
        except InspectError as exc:
            logger.warning("Skipping %s: %s", member.path, exc)
            manifest.skipped.append(SkippedItem(member.name, member.path, str(exc), exc.code))
        except Exception as exc:
            logger.exception("Unexpected failure profiling %s", member.path)
            manifest.skipped.append(
                SkippedItem(member.name, member.path, f"{type(exc).__name__}: {exc}", "UNEXPECTED_ERROR")
            )
        else:
            manifest.succeeded.append(
                ManifestEntry(
                    name=descriptor.name,
                    source_path=member.path,
                    descriptor_path=str(path),
                    rows=descriptor.row_count,
                    columns=descriptor.column_count,
                    flags=list(descriptor.flags),
                )
            )


class FileFormatWorker(FormatWorker):
    """Shared recursive directory walk for file-based formats."""

    extensions: tuple[str, ...] = ()

    def matches(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def enumerate(self, location: SourceLocation, cancel: CancelToken) -> Iterator[Member]:
        if location.root_path is None:
            raise SourceUnreadable(f"{self.tag.value} worker needs a root path")
        root = Path(location.root_path)
        if root.is_file():
            return iter([self._member(root, root.parent)] if self.matches(root) else [])
        if not root.is_dir() or not os.access(root, os.R_OK | os.X_OK):
            raise SourceUnreadable(f"Cannot open source directory {root}")
        return self._walk(root, cancel)

    def _walk(self, root: Path, cancel: CancelToken) -> Iterator[Member]:
        def _on_error(exc: OSError) -> None:
            logger.warning("Cannot list %s: %s", exc.filename, exc)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            if cancel.cancelled:
                return
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if path.is_file() and self.matches(path):
                    yield self._member(path, root)

    @staticmethod
    def _member(path: Path, root: Path) -> Member:
        try:
            size = path.stat().st_size
        except OSError:
            size = None
        return Member(name=path.name, path=str(path), size=size, key=path.relative_to(root).as_posix())
