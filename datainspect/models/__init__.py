from datainspect.models.descriptor import (
    ColumnStats,
    DatasetDescriptor,
    Dialect,
    Field,
    FieldConstraints,
)
from datainspect.models.manifest import ManifestEntry, ProfilingManifest, SkippedItem
from datainspect.models.source import ConnectionParams, FormatTag, SourceLocation

__all__ = [
    "ColumnStats",
    "ConnectionParams",
    "DatasetDescriptor",
    "Dialect",
    "Field",
    "FieldConstraints",
    "FormatTag",
    "ManifestEntry",
    "ProfilingManifest",
    "SkippedItem",
    "SourceLocation",
]
