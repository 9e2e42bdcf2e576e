"""
Dialect sniffing for delimited-text files.

Only the first line is inspected, and the first candidate delimiter present
on it wins.  Quoted fields containing the other delimiter are not
disambiguated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from datainspect.errors import SourceUnreadable

__all__ = ["DELIMITERS", "SniffResult", "detect_delimiter", "sniff_file"]

logger = logging.getLogger(__name__)

# Priority order matters.
DELIMITERS: tuple[str, ...] = (",", "\t")


def detect_delimiter(first_line: str) -> str | None:
    """Return the first delimiter in :data:`DELIMITERS` found in *first_line*.

    ``None`` means not detected: the line is empty or has neither candidate.
    """
    for delimiter in DELIMITERS:
        if delimiter in first_line:
            return delimiter
    return None


@dataclass(frozen=True)
class SniffResult:
    delimiter: str | None
    line_terminator: str
    first_line: str

    @property
    def empty_delimiter(self) -> bool:
        return self.delimiter is None

    @property
    def is_tab(self) -> bool:
        return self.delimiter == "\t"


def sniff_file(path: str | Path, encoding: str = "utf-8") -> SniffResult:
    """Read the first line of *path* and detect its delimiter and terminator.

    Raises :class:`SourceUnreadable` if the file cannot be opened or decoded.
    """
    try:
        with open(path, "r", encoding=encoding, newline="") as f:
            first_line = f.readline()
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnreadable(f"Cannot read {path}: {exc}") from exc

    if first_line.endswith("\r\n"):
        terminator = "\r\n"
    elif first_line.endswith("\r"):
        terminator = "\r"
    else:
        terminator = "\n"

    delimiter = detect_delimiter(first_line.rstrip("\r\n"))
    if delimiter is None:
        logger.debug("No delimiter detected in %s", path)
    return SniffResult(delimiter=delimiter, line_terminator=terminator, first_line=first_line)
