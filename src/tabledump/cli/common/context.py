"""Application context management for the CLI."""

from __future__ import annotations

import importlib
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from tabledump.cli.common.exits import die
from tabledump.core.config import DumpConfig
from tabledump.core.registry import TableRegistry, default_registry
from tabledump.core.service import DumpService, build_service


class SourceError(ValueError):
    """Raised when the --source option cannot be resolved to a registry."""


@dataclass
class AppContext:
    """Application context holding the table registry, settings and dump service."""

    source: str | None
    registry: TableRegistry
    config: DumpConfig
    service: DumpService


def load_registry(source: str | None) -> TableRegistry:
    """
    Import a table source and return the registry it populates.

    `source` is `MODULE` or `MODULE:ATTR`. Importing the module is expected
    to create tables. Without `ATTR` the process-wide registry is used;
    otherwise `ATTR` must be a `TableRegistry` or a zero-argument callable
    returning one.
    """
    if not source:
        return default_registry()

    module_name, _, attr = source.partition(":")
    if not module_name:
        raise SourceError(f"Invalid source '{source}' (expected MODULE or MODULE:ATTR).")

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SourceError(f"Could not import '{module_name}': {exc}") from exc

    if not attr:
        return default_registry()

    try:
        obj = getattr(module, attr)
    except AttributeError as exc:
        raise SourceError(f"Module '{module_name}' has no attribute '{attr}'.") from exc

    if callable(obj) and not isinstance(obj, TableRegistry):
        obj = obj()
    if not isinstance(obj, TableRegistry):
        raise SourceError(f"'{source}' is not a TableRegistry.")
    return obj


def build_context(
    source: str | None,
    *,
    log_dir: Path | None = None,
    max_parallel: int | None = None,
) -> AppContext:
    """Build the application context, applying CLI overrides on top of the environment.

    Args:
        source: Optional `MODULE[:ATTR]` that creates the tables.
        log_dir: Optional override of the report directory.
        max_parallel: Optional override of extraction parallelism.

    Returns:
        AppContext: Context with registry, settings and dump service.
    """
    try:
        registry = load_registry(source)
    except SourceError as exc:
        die(str(exc), code=2)

    config = DumpConfig.from_env()
    overrides = {}
    if log_dir is not None:
        overrides["log_dir"] = log_dir
    if max_parallel is not None:
        overrides["max_parallel"] = max_parallel
    if overrides:
        config = replace(config, **overrides)

    service = build_service(registry, config)
    return AppContext(source=source, registry=registry, config=config, service=service)
