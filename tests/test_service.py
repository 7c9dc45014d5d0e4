import pytest

from tabledump.core.config import DumpConfig
from tabledump.core.registry import RegistryUnavailable, TableRegistry
from tabledump.core.service import (
    DumpService,
    DumpStatus,
    build_service,
    dump_all_tables,
    dump_table,
    list_tables,
)
from tabledump.core.sink import LogSink, MkdirFailed
from tabledump.core.tables import AccessLevel, TableKind


@pytest.fixture
def registry():
    reg = TableRegistry()
    cache = reg.create("cache", kind=TableKind.UNIQUE_UNORDERED, access=AccessLevel.PUBLIC)
    reg.insert(cache, ("a", 1), ("b", 2))
    return reg


def _config(tmp_path) -> DumpConfig:
    return DumpConfig(log_dir=tmp_path / "logs")


def test_dump_single_table_end_to_end(registry, tmp_path):
    outcome = build_service(registry, _config(tmp_path)).dump_table("cache")

    assert outcome.status is DumpStatus.OK
    assert outcome.ok
    assert outcome.path.parent == tmp_path / "logs"
    assert outcome.path.name.startswith("table_cache_")
    text = outcome.path.read_text()
    assert "('a', 1)" in text
    assert "('b', 2)" in text
    assert "Size: 2 entries" in text
    assert "ERROR:" not in text


def test_dump_unknown_table_writes_nothing(registry, tmp_path):
    outcome = build_service(registry, _config(tmp_path)).dump_table("nonexistent")

    assert outcome.status is DumpStatus.NOT_FOUND
    assert outcome.path is None
    assert outcome.reason == "table not found"
    assert not (tmp_path / "logs").exists()


def test_dump_all_succeeds_with_failed_tables(registry, tmp_path):
    secret = registry.create("secret", access=AccessLevel.PRIVATE)
    registry.insert(secret, ("password", "hunter2"))
    registry.create("empty")

    outcome = build_service(registry, _config(tmp_path)).dump_all()

    assert outcome.status is DumpStatus.OK
    text = outcome.path.read_text()
    assert outcome.path.name.startswith("report_")
    assert "Total Tables: 3" in text
    assert "ERROR: ACCESS_DENIED" in text
    assert "hunter2" not in text
    assert "(empty table)" in text
    assert text.index("Name: 'cache'") < text.index("Name: 'secret'") < text.index(
        "Name: 'empty'"
    )


def test_dump_all_reports_sink_failure(registry, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    service = build_service(registry, DumpConfig(log_dir=blocker / "logs"))

    outcome = service.dump_all()

    assert outcome.status is DumpStatus.FAILED
    assert isinstance(outcome.error, MkdirFailed)
    assert outcome.reason.startswith("mkdir failed")


def test_dump_all_propagates_unavailable_registry(registry, tmp_path):
    registry.shutdown()

    with pytest.raises(RegistryUnavailable):
        build_service(registry, _config(tmp_path)).dump_all()


def test_list_tables_never_reads_content(tmp_path):
    from tabledump.core.adapters.registry import RegistryAdapter

    class _NoReads(RegistryAdapter):
        def read_entries(self, handle):
            raise AssertionError("list must not read table content")

        def access_level(self, handle):
            raise AssertionError("list must not re-check access")

    reg = TableRegistry()
    reg.create("a")
    reg.create("b")
    service = DumpService(_NoReads(reg), LogSink(tmp_path))

    assert [d.name for d in service.list_tables()] == ["a", "b"]


def test_anonymous_tables_are_named_by_handle(tmp_path):
    reg = TableRegistry()
    ref = reg.create()

    (descriptor,) = list_tables(reg)
    assert descriptor.name == ref
    assert descriptor.id == str(ref)

    outcome = dump_table(ref.ident, registry=reg, config=_config(tmp_path))
    assert outcome.path.name.startswith(f"table_{ref.ident}_")


def test_module_level_helpers_use_given_registry(registry, tmp_path):
    outcome = dump_all_tables(registry=registry, config=_config(tmp_path))

    assert outcome.ok
    assert [d.name for d in list_tables(registry)] == ["cache"]


def test_service_rejects_non_positive_parallel(registry, tmp_path):
    with pytest.raises(ValueError, match="max_parallel"):
        DumpService(registry, LogSink(tmp_path), max_parallel=0)


def test_parallel_dump_matches_sequential_content(registry, tmp_path):
    for i in range(10):
        t = registry.create(f"t{i}", access=AccessLevel.PUBLIC)
        registry.insert(t, *[(k, i) for k in range(5)])

    seq = build_service(registry, DumpConfig(log_dir=tmp_path / "seq")).dump_all()
    par = build_service(
        registry, DumpConfig(log_dir=tmp_path / "par", max_parallel=4)
    ).dump_all()

    def body(path):
        # drop the timestamp line
        return [line for line in path.read_text().splitlines() if not line.startswith("Timestamp:")]

    assert body(seq.path) == body(par.path)


class _SurrogateRepr:
    def __repr__(self):
        return "<file \udcff>"


def test_dump_all_writes_entries_with_unencodable_repr(registry, tmp_path):
    odd = registry.create("odd")
    registry.insert(odd, ("k", _SurrogateRepr()))

    outcome = build_service(registry, _config(tmp_path)).dump_all()

    assert outcome.status is DumpStatus.OK
    assert "<file \\udcff>" in outcome.path.read_text(encoding="utf-8")
    assert [p.name for p in (tmp_path / "logs").iterdir()] == [outcome.path.name]
