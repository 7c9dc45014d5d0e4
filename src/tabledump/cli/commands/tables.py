"""Commands for listing and dumping tables."""

from __future__ import annotations

import typer

from tabledump.cli.common.context import AppContext
from tabledump.cli.common.exits import die, exit_from_exc, warn_exit
from tabledump.cli.common.output import out
from tabledump.cli.tui import select_table
from tabledump.core.registry import RegistryUnavailable
from tabledump.core.service import DumpStatus


def list_tables(ctx: typer.Context):
    """List live tables (metadata only, content is never read)."""
    appctx: AppContext = ctx.obj

    try:
        with out.status("Discovering tables..."):
            tables = appctx.service.list_tables()
    except RegistryUnavailable as exc:
        exit_from_exc(exc, message="Table registry is unavailable.", code=1)

    if not tables:
        warn_exit("No tables found.")

    out.header("Tables")
    out.info(f"Tables: {len(tables)}")
    out.tables_table(tables, title="Tables")


def dump_all(ctx: typer.Context):
    """Dump every live table into one report file."""
    appctx: AppContext = ctx.obj

    try:
        with out.status("Dumping tables..."):
            outcome = appctx.service.dump_all()
    except RegistryUnavailable as exc:
        exit_from_exc(exc, message="Table registry is unavailable.", code=1)

    if outcome.status is DumpStatus.FAILED:
        die(f"Dump failed: {outcome.reason}", code=1)

    out.success(f"Dump written to {outcome.path}")


def dump_one(
    ctx: typer.Context,
    name: str | None = typer.Argument(
        None,
        help="Table name or id (e.g. cache, 7 or '#Table<7>'). Prompts when omitted.",
    ),
):
    """Dump a single table into its own report file."""
    appctx: AppContext = ctx.obj
    service = appctx.service

    try:
        if name is None:
            tables = service.list_tables()
            if not tables:
                warn_exit("No tables found.")
            picked = select_table(tables)
            if picked is None:
                warn_exit("No table selected.")
            target = picked.name if isinstance(picked.name, str) else picked.handle
        else:
            target = name

        with out.status("Dumping table..."):
            outcome = service.dump_table(target)
    except RegistryUnavailable as exc:
        exit_from_exc(exc, message="Table registry is unavailable.", code=1)

    if outcome.status is DumpStatus.NOT_FOUND:
        die(f"Table '{target}' not found.", code=2)
    if outcome.status is DumpStatus.FAILED:
        die(f"Dump of table '{target}' failed: {outcome.reason}", code=1)

    out.success(f"Dump written to {outcome.path}")
