"""
Descriptor store — persists one JSON descriptor per profiled source.

Descriptors live under ``<output_dir>/<key>.json``.  Workers key them by
format and by the source's path relative to the walk root
(``delimited-text/q1/data.csv``, ``relational-table/sales/public/orders``),
so two sources never share a file.  Writes for the same key are serialized
with a per-key lock and land atomically (temp file + rename), so
concurrent profiling passes never expose a half-written descriptor.
Descriptors are not versioned: a later pass over the same source replaces
the earlier file.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from datainspect.errors import WriteFailure
from datainspect.utils.io_utils import write_text_atomic

if TYPE_CHECKING:
    from datainspect.models.descriptor import DatasetDescriptor

__all__ = ["DescriptorStore", "descriptor_key"]

logger = logging.getLogger(__name__)


def descriptor_key(key: str) -> str:
    """Normalize a descriptor key to a relative POSIX path.

    Both separators are accepted; empty, ``.`` and ``..`` segments are
    dropped so a key can never escape the output directory.
    """
    parts = [p for p in key.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    return "/".join(parts) or "_"


class DescriptorStore:
    """Filesystem store for descriptors under *output_dir*.

    Parameters
    ----------
    output_dir : str | Path
        Directory receiving ``<key>.json`` files (keys may contain
        sub-directories).
    write_retries : int
        Extra attempts after a failed write before raising
        :class:`WriteFailure`.
    indent : str
        JSON indentation.
    """

    def __init__(
        self,
        output_dir: str | Path,
        *,
        write_retries: int = 2,
        retry_delay: float = 0.05,
        indent: str = "\t",
    ) -> None:
        self.output_dir = Path(output_dir)
        self._write_retries = write_retries
        self._retry_delay = retry_delay
        self._indent = indent
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def path_for(self, key: str) -> Path:
        return self.output_dir / f"{descriptor_key(key)}.json"

    def write(self, descriptor: DatasetDescriptor, key: str | None = None) -> Path:
        """Serialize *descriptor* and write it under *key* (default: its name)."""
        text = descriptor.to_json(indent=self._indent)
        key = descriptor_key(key or descriptor.name)
        path = self.path_for(key)

        with self._lock_for(key):
            for attempt in range(self._write_retries + 1):
                try:
                    write_text_atomic(text, path)
                    break
                except OSError as exc:
                    if attempt == self._write_retries:
                        raise WriteFailure(f"Cannot write {path}: {exc}") from exc
                    logger.warning(
                        "Write of %s failed (attempt %d/%d): %s",
                        path, attempt + 1, self._write_retries + 1, exc,
                    )
                    time.sleep(self._retry_delay * (2 ** attempt))

        logger.info("Descriptor written: %s", path)
        return path

    def read(self, key: str) -> dict[str, Any]:
        """Load the stored descriptor for *key*."""
        with open(self.path_for(key), encoding="utf-8") as f:
            return json.load(f)

    def list_keys(self) -> list[str]:
        if not self.output_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.output_dir).with_suffix("").as_posix()
            for p in self.output_dir.rglob("*.json")
        )
