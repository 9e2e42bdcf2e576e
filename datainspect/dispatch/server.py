"""
Worker service — one FastAPI app per format, one ``POST /profile`` each.

The endpoint is synchronous so FastAPI runs each request in its threadpool;
every request gets its own worker instance and only the descriptor store is
shared.  The caller's timeout arrives in the request body and becomes the
walk's :class:`CancelToken` deadline.
"""

from __future__ import annotations

import logging
from typing import Callable

import uvicorn
from fastapi import FastAPI

from datainspect.config import InspectConfig
from datainspect.dispatch.schemas import STATUS_COMPLETED, STATUS_FAILED, DispatchRequest, DispatchResponse
from datainspect.errors import InspectError, ProfilingCancelled
from datainspect.models.source import FormatTag
from datainspect.store.descriptor_store import DescriptorStore
from datainspect.utils.cancel import CancelToken
from datainspect.workers import FormatWorker, build_worker

__all__ = ["create_app", "serve"]

logger = logging.getLogger(__name__)

WorkerFactory = Callable[..., FormatWorker]


def create_app(
    tag: FormatTag | str,
    config: InspectConfig | None = None,
    store: DescriptorStore | None = None,
    worker_factory: WorkerFactory = build_worker,
) -> FastAPI:
    """Build the worker service for *tag*.

    Parameters
    ----------
    tag : FormatTag or str
        Format served by this app.
    config : InspectConfig, optional
        Defaults to ``InspectConfig()``.
    store : DescriptorStore, optional
        Shared by all requests; one is created on ``config.output_dir`` when
        omitted.
    worker_factory : callable
        ``worker_factory(tag, config, store=store)`` returning a fresh
        worker per request.
    """
    tag = FormatTag.parse(tag)
    config = config or InspectConfig()
    store = store or DescriptorStore(config.output_dir, write_retries=config.write_retries)

    app = FastAPI(title=f"datainspect {tag.value} worker")

    def _failed(echo: dict, code: str, message: str, manifest: dict | None = None) -> DispatchResponse:
        logger.error("[%s] Request failed (%s): %s", tag.value, code, message)
        return DispatchResponse(request=echo, status=STATUS_FAILED, errorCode=code, message=message, manifest=manifest)

    @app.get("/health")
    def health():
        return {"status": "ok", "format": tag.value}

    @app.post("/profile", response_model=DispatchResponse)
    def profile(payload: DispatchRequest) -> DispatchResponse:
        echo = payload.echo()
        logger.info("[%s] Received %s", tag.value, echo)

        try:
            location = payload.to_location(
                tag, default_schema=config.relational_schema, db_type=config.relational_db_type,
            )
        except ValueError as exc:
            return _failed(echo, "INVALID_REQUEST", str(exc))

        timeout = payload.timeout if payload.timeout is not None else config.dispatch_timeout
        cancel = CancelToken(timeout)
        try:
            worker = worker_factory(tag, config, store=store)
            manifest = worker.run(location, cancel)
        except InspectError as exc:
            return _failed(echo, exc.code, str(exc))
        except Exception as exc:
            logger.exception("[%s] Unexpected failure profiling %s", tag.value, location.describe())
            return _failed(echo, "UNEXPECTED_ERROR", f"{type(exc).__name__}: {exc}")

        if manifest.cancelled:
            return _failed(
                echo,
                ProfilingCancelled.code,
                f"Walk of {manifest.source} cancelled after {timeout}s",
                manifest.to_dict(),
            )

        message = f"Profiled {len(manifest.succeeded)} item(s), skipped {len(manifest.skipped)}"
        if manifest.nothing_found:
            message = f"No {tag.value} sources found in {manifest.source}"
        logger.info("[%s] %s", tag.value, message)
        return DispatchResponse(
            request=echo, status=STATUS_COMPLETED, message=message, manifest=manifest.to_dict(),
        )

    return app


def serve(tag: FormatTag | str, config: InspectConfig | None = None) -> None:
    """Run the worker service for *tag* on its configured port (blocking)."""
    tag = FormatTag.parse(tag)
    config = config or InspectConfig()
    port = config.port_for(tag)
    logger.info("Starting %s worker on %s:%d", tag.value, config.bind_host, port)
    uvicorn.run(create_app(tag, config), host=config.bind_host, port=port, log_level=config.log_level.lower())
