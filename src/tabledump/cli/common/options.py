"""Common CLI options for the CLI."""

import typer

SourceOpt = typer.Option(
    None,
    "--source",
    "-s",
    help=(
        "Module that creates the tables to dump, as MODULE or MODULE:ATTR. "
        "ATTR names a TableRegistry or a callable returning one."
    ),
)

LogDirOpt = typer.Option(
    None,
    "--log-dir",
    help="Directory for report files (default: $TABLEDUMP_LOG_DIR or ~/.tabledump/logs)",
)

ParallelOpt = typer.Option(
    None,
    "--parallel",
    "-n",
    min=1,
    help="Number of tables to extract in parallel (default: $TABLEDUMP_PARALLEL or 1)",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Show debug logging",
)
