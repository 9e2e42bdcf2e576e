"""
Wire models for the dispatch call.

Field names keep the camelCase keys callers already post
(``sourceDirectory``, ``dbname``, ``schema``, ``pluginType``).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from datainspect.models.source import ConnectionParams, FormatTag, SourceLocation

__all__ = ["DispatchRequest", "DispatchResponse", "STATUS_COMPLETED", "STATUS_FAILED"]

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class DispatchRequest(BaseModel):
    """Body of ``POST /profile``.

    File workers read ``sourceDirectory``; the relational worker reads the
    connection fields.  ``timeout`` is the caller's deadline in seconds.
    """

    model_config = ConfigDict(populate_by_name=True)

    sourceDirectory: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    dbname: Optional[str] = None
    dbSchema: Optional[str] = Field(default=None, alias="schema")
    table: Optional[str] = None
    pluginType: Optional[str] = None
    timeout: Optional[float] = None

    def to_location(self, tag: FormatTag, default_schema: str = "public", db_type: str = "postgres") -> SourceLocation:
        """Build the :class:`SourceLocation` this request describes for *tag*.

        Raises :class:`ValueError` when the fields needed by *tag* are missing.
        """
        if tag.is_file_based:
            if not self.sourceDirectory:
                raise ValueError(f"{tag.value} requests need sourceDirectory")
            return SourceLocation.directory(self.sourceDirectory)

        missing = [name for name in ("host", "port", "user", "dbname") if getattr(self, name) in (None, "")]
        if missing:
            raise ValueError(f"{tag.value} requests need {', '.join(missing)}")
        params = ConnectionParams(
            host=self.host,
            port=int(self.port),
            user=self.user,
            password=self.password or "",
            dbname=self.dbname,
            schema=self.dbSchema or default_schema,
            db_type=db_type,
        )
        return SourceLocation.database(params, table=self.table)

    @classmethod
    def from_location(cls, location: SourceLocation, tag: FormatTag, timeout: float | None = None) -> DispatchRequest:
        conn = location.connection
        return cls(
            sourceDirectory=location.root_path,
            host=conn.host if conn else None,
            port=conn.port if conn else None,
            user=conn.user if conn else None,
            password=conn.password if conn else None,
            dbname=conn.dbname if conn else None,
            dbSchema=conn.schema if conn else None,
            table=location.table,
            pluginType=tag.plugin_name,
            timeout=timeout,
        )

    def echo(self) -> dict[str, Any]:
        """The request as acknowledged back to the caller, minus the password."""
        return self.model_dump(by_alias=True, exclude={"password"}, exclude_none=True)


class DispatchResponse(BaseModel):
    request: dict[str, Any]
    status: str
    errorCode: Optional[str] = None
    message: str = ""
    manifest: Optional[dict[str, Any]] = None
