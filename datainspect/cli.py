"""
datainspect CLI — run worker services, profile locally, or dispatch.

Commands
--------
- ``serve`` — run the worker service for one format on its port.
- ``profile`` — profile a directory in-process, no services involved.
- ``dispatch`` — send a directory to the running file workers.
- ``dispatch-table`` — send a database schema (or one table) to the
  relational worker.

Usage::

    datainspect serve --format delimited-text
    datainspect profile --format csv ./lake --output-dir ./output
    datainspect dispatch ./lake
    datainspect dispatch-table --host db --port 5432 --user me --dbname sales
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from datainspect.config import InspectConfig
from datainspect.errors import DispatchError, InspectError
from datainspect.models.manifest import ProfilingManifest
from datainspect.models.source import ConnectionParams, FormatTag, SourceLocation

console = Console()

_FORMAT_CHOICES = sorted({t.value for t in FormatTag} | {t.plugin_name for t in FormatTag})


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _cli_error(exc: InspectError) -> click.ClickException:
    code = getattr(exc, "error_code", None) or exc.code
    return click.ClickException(f"{code}: {exc}")


def _print_manifest(manifest: ProfilingManifest) -> None:
    table = Table(title=f"{manifest.format} — {manifest.source}")
    table.add_column("Source")
    table.add_column("Rows", justify="right")
    table.add_column("Cols", justify="right")
    table.add_column("Result")

    for entry in manifest.succeeded:
        note = ", ".join(entry.flags)
        table.add_row(entry.name, str(entry.rows), str(entry.columns), f"[green]{entry.descriptor_path}[/] {note}".rstrip())
    for item in manifest.skipped:
        table.add_row(item.name, "", "", f"[red]{item.error_code}[/] {item.reason}")

    console.print(table)
    console.print(f"{len(manifest.succeeded)} profiled, {len(manifest.skipped)} skipped")
    if manifest.cancelled:
        console.print("[bold yellow]Walk cancelled before completion[/]")


# ── Shared options ───────────────────────────────────────────────────

@click.group()
@click.version_option(package_name="datainspect")
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Load DATAINSPECT_* settings from this .env file.")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def main(ctx: click.Context, env_file: Path | None, log_level: str | None) -> None:
    """datainspect — schema profiling for tabular sources."""
    cfg = InspectConfig.from_env(str(env_file) if env_file else None)
    _setup_logging(log_level or cfg.log_level)
    ctx.obj = cfg


# ── serve ────────────────────────────────────────────────────────────

@main.command("serve")
@click.option("--format", "fmt", required=True, type=click.Choice(_FORMAT_CHOICES), help="Format served by this process.")
@click.pass_obj
def serve(cfg: InspectConfig, fmt: str) -> None:
    """Run one format worker service (blocks)."""
    from datainspect.dispatch.server import serve as run_server

    run_server(fmt, cfg)


# ── profile ──────────────────────────────────────────────────────────

@main.command("profile")
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", required=True, type=click.Choice(_FORMAT_CHOICES), help="File format to profile.")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Descriptor output directory.")
@click.option("--timeout", type=float, default=None, help="Cancel the walk after this many seconds.")
@click.pass_obj
def profile(cfg: InspectConfig, path: Path, fmt: str, output_dir: Path | None, timeout: float | None) -> None:
    """Profile PATH in-process and write descriptors."""
    from dataclasses import replace

    from datainspect.utils.cancel import CancelToken
    from datainspect.workers import build_worker

    tag = FormatTag.parse(fmt)
    if not tag.is_file_based:
        raise click.UsageError("profile handles file formats; use dispatch-table for databases")
    if output_dir is not None:
        cfg = replace(cfg, output_dir=str(output_dir))

    console.print(f"[bold blue]Profiling[/] {path} as {tag.value} …")
    try:
        manifest = build_worker(tag, cfg).run(SourceLocation.directory(str(path)), CancelToken(timeout))
    except InspectError as exc:
        raise _cli_error(exc) from exc
    _print_manifest(manifest)


# ── dispatch ─────────────────────────────────────────────────────────

@main.command("dispatch")
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default=None, type=click.Choice(_FORMAT_CHOICES), help="Skip classification and use this worker.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each worker.")
@click.pass_obj
def dispatch(cfg: InspectConfig, path: Path, fmt: str | None, timeout: float | None) -> None:
    """Send PATH to the running file workers."""
    from datainspect.dispatch.dispatcher import Dispatcher

    dispatcher = Dispatcher(cfg)
    if fmt is not None:
        try:
            result = dispatcher.dispatch(SourceLocation.directory(str(path)), fmt, timeout)
        except DispatchError as exc:
            raise _cli_error(exc) from exc
        if result.manifest is not None:
            _print_manifest(result.manifest)
        return

    try:
        results = dispatcher.dispatch_directory(path, timeout)
    except InspectError as exc:
        raise _cli_error(exc) from exc
    if not results:
        console.print(f"[yellow]No delimited or JSON files under {path}[/]")
        return

    failed = 0
    for tag, result in results.items():
        if result.manifest is not None:
            _print_manifest(result.manifest)
        if not result.ok:
            failed += 1
            console.print(f"[bold red]{tag.value} failed:[/] {result.message}")
    if failed:
        raise click.ClickException(f"{failed} of {len(results)} dispatches failed")


# ── dispatch-table ───────────────────────────────────────────────────

@main.command("dispatch-table")
@click.option("--host", required=True)
@click.option("--port", required=True, type=int)
@click.option("--user", required=True)
@click.option("--password", default="", envvar="DATAINSPECT_DB_PASSWORD", help="Also read from DATAINSPECT_DB_PASSWORD.")
@click.option("--dbname", required=True)
@click.option("--schema", "schema", default=None, help="Schema to walk (defaults to the configured one).")
@click.option("--table", default=None, help="Profile only this table.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for the worker.")
@click.pass_obj
def dispatch_table(
    cfg: InspectConfig,
    host: str,
    port: int,
    user: str,
    password: str,
    dbname: str,
    schema: str | None,
    table: str | None,
    timeout: float | None,
) -> None:
    """Send a database schema to the relational worker."""
    from datainspect.dispatch.dispatcher import Dispatcher

    params = ConnectionParams(
        host=host,
        port=port,
        user=user,
        password=password,
        dbname=dbname,
        schema=schema or cfg.relational_schema,
        db_type=cfg.relational_db_type,
    )
    try:
        result = Dispatcher(cfg).dispatch(SourceLocation.database(params, table=table), FormatTag.RELATIONAL_TABLE, timeout)
    except DispatchError as exc:
        raise _cli_error(exc) from exc
    if result.manifest is not None:
        _print_manifest(result.manifest)


if __name__ == "__main__":
    main()
