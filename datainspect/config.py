"""
Central configuration for datainspect.

All ports, paths, timeouts and tunables live here.  Port defaults match the
fixed endpoints the format workers have always listened on.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

__all__ = ["InspectConfig"]

_ENV_PREFIX = "DATAINSPECT_"


@dataclass(frozen=True)
class InspectConfig:
    """Immutable configuration container."""

    # ── Output ─────────────────────────────────────────────────────────
    output_dir: str = "./output"
    """Directory receiving one ``<dataset>.json`` descriptor per source."""

    write_retries: int = 2
    """Extra attempts for a descriptor write before ``WriteFailure``."""

    # ── Worker endpoints ───────────────────────────────────────────────
    worker_host: str = "localhost"
    bind_host: str = "0.0.0.0"
    delimited_port: int = 3400
    json_port: int = 3401
    relational_port: int = 3402

    # ── Dispatch ───────────────────────────────────────────────────────
    dispatch_timeout: float = 300.0
    """Seconds a caller waits for a full walk before cancelling it."""

    connect_timeout: float = 5.0
    dispatch_retries: int = 3
    retry_backoff: float = 0.5
    """Base delay in seconds; doubled after every failed attempt."""

    # ── Profiling ──────────────────────────────────────────────────────
    sample_values_count: int = 3
    relational_sample_limit: int = 5
    delimited_extensions: tuple[str, ...] = (".csv", ".tsv")
    json_extensions: tuple[str, ...] = (".json",)

    # ── Relational sources ─────────────────────────────────────────────
    relational_db_type: str = "postgres"
    relational_schema: str = "public"

    # ── Logging ────────────────────────────────────────────────────────
    log_level: str = "INFO"

    def port_for(self, tag) -> int:
        """Return the listening port of the worker serving *tag*."""
        from datainspect.models.source import FormatTag

        tag = FormatTag.parse(tag)
        return {
            FormatTag.DELIMITED_TEXT: self.delimited_port,
            FormatTag.JSON_ARRAY: self.json_port,
            FormatTag.RELATIONAL_TABLE: self.relational_port,
        }[tag]

    def endpoint_for(self, tag) -> str:
        """Base URL of the worker serving *tag*."""
        return f"http://{self.worker_host}:{self.port_for(tag)}"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> InspectConfig:
        """Build a config from ``DATAINSPECT_*`` environment variables.

        A ``.env`` file is loaded first when present; real environment
        variables take precedence over it.
        """
        load_dotenv(dotenv_path)

        def _get(name: str, default):
            raw = os.getenv(_ENV_PREFIX + name.upper())
            if raw is None:
                return default
            if isinstance(default, tuple):
                return tuple(ext.strip() for ext in raw.split(",") if ext.strip())
            return type(default)(raw)

        defaults = cls()
        return cls(**{
            name: _get(name, getattr(defaults, name))
            for name in cls.__dataclass_fields__
        })
