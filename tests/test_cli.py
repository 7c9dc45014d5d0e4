import sys
import types

import pytest
from typer.testing import CliRunner

from tabledump.cli.cli import app
from tabledump.core.registry import TableRegistry
from tabledump.core.tables import AccessLevel

runner = CliRunner()


@pytest.fixture
def source(monkeypatch):
    reg = TableRegistry()
    cache = reg.create("cache", access=AccessLevel.PUBLIC)
    reg.insert(cache, ("a", 1), ("b", 2))

    module = types.ModuleType("fake_tables")
    module.registry = reg
    module.make_registry = lambda: reg
    monkeypatch.setitem(sys.modules, "fake_tables", module)
    return reg


def _invoke(tmp_path, *args, source="fake_tables:registry"):
    return runner.invoke(
        app, ["--source", source, "--log-dir", str(tmp_path), *args]
    )


def test_dump_one_writes_table_file(source, tmp_path):
    result = _invoke(tmp_path, "dump-one", "cache")

    assert result.exit_code == 0, result.output
    (path,) = tmp_path.glob("table_cache_*.log")
    assert "('a', 1)" in path.read_text()


def test_dump_one_unknown_table_exits_2_and_writes_nothing(source, tmp_path):
    result = _invoke(tmp_path / "logs", "dump-one", "nonexistent")

    assert result.exit_code == 2
    assert "not found" in result.output
    assert not (tmp_path / "logs").exists()


def test_dump_all_writes_report(source, tmp_path):
    result = _invoke(tmp_path, "dump-all", source="fake_tables:make_registry")

    assert result.exit_code == 0, result.output
    (path,) = tmp_path.glob("report_*.log")
    assert "Total Tables: 1" in path.read_text()


def test_dump_all_reports_write_failure(source, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    result = _invoke(blocker / "logs", "dump-all")

    assert result.exit_code == 1
    assert "Dump failed" in result.output


def test_list_shows_table_count(source, tmp_path):
    result = _invoke(tmp_path, "list")

    assert result.exit_code == 0, result.output
    assert "Tables: 1" in result.output
    assert list(tmp_path.iterdir()) == []


def test_unavailable_registry_exits_1(source, tmp_path):
    source.shutdown()

    result = _invoke(tmp_path, "dump-all")

    assert result.exit_code == 1
    assert "unavailable" in result.output


def test_invalid_source_exits_2(tmp_path):
    result = _invoke(tmp_path, "list", source="no_such_module_for_tabledump:registry")

    assert result.exit_code == 2
    assert "Could not import" in result.output


def test_source_attribute_must_be_a_registry(monkeypatch, tmp_path):
    module = types.ModuleType("fake_tables_bad")
    module.registry = object()
    monkeypatch.setitem(sys.modules, "fake_tables_bad", module)

    result = _invoke(tmp_path, "list", source="fake_tables_bad:registry")

    assert result.exit_code == 2
