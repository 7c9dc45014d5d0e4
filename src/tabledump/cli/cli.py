"""CLI application for dumping in-process tables."""

from __future__ import annotations

from pathlib import Path

import typer

from tabledump.cli.commands.tables import dump_all, dump_one, list_tables
from tabledump.cli.common.context import build_context
from tabledump.cli.common.log_setup import setup_logging
from tabledump.cli.common.options import LogDirOpt, ParallelOpt, SourceOpt, VerboseOpt

app = typer.Typer(
    help="tabledump - snapshot in-process tables to log files",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    source: str | None = SourceOpt,
    log_dir: Path | None = LogDirOpt,
    parallel: int | None = ParallelOpt,
    verbose: bool = VerboseOpt,
):
    """Load the table source and build the dump context."""
    ctx.obj = build_context(source, log_dir=log_dir, max_parallel=parallel)
    setup_logging("DEBUG" if verbose else ctx.obj.config.log_level)


app.command("list")(list_tables)
app.command("dump-all")(dump_all)
app.command("dump-one")(dump_one)


if __name__ == "__main__":
    app()
