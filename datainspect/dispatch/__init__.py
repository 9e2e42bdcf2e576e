"""
HTTP layer between callers and the format workers.

Modules
-------
schemas
    pydantic request/response bodies of ``POST /profile``.
server
    FastAPI worker service, one app per format.
dispatcher
    requests-based client with retry, timeout and per-source state.
"""

from __future__ import annotations

from datainspect.dispatch.dispatcher import (
    Dispatcher,
    DispatchRecord,
    DispatchResult,
    SourceState,
    classify_directory,
)
from datainspect.dispatch.schemas import DispatchRequest, DispatchResponse
from datainspect.dispatch.server import create_app, serve

__all__ = [
    "DispatchRecord",
    "DispatchRequest",
    "DispatchResponse",
    "DispatchResult",
    "Dispatcher",
    "SourceState",
    "classify_directory",
    "create_app",
    "serve",
]
