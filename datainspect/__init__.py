"""
datainspect — schema and statistics profiling for tabular sources.

Walks a directory of delimited-text or JSON-array files, or the tables of a
relational schema, and writes one dataset descriptor (column types, summary
statistics, sample values and constraints) per source.

Quick start::

    from datainspect import FormatTag, SourceLocation, build_worker
    worker = build_worker(FormatTag.DELIMITED_TEXT)
    manifest = worker.run(SourceLocation.directory("/data/lake"))
"""

from datainspect.config import InspectConfig
from datainspect.models import DatasetDescriptor, FormatTag, ProfilingManifest, SourceLocation
from datainspect.workers import build_worker

__all__ = [
    "DatasetDescriptor",
    "FormatTag",
    "InspectConfig",
    "ProfilingManifest",
    "SourceLocation",
    "build_worker",
]
__version__ = "1.0.0"
