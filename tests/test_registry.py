import threading

import pytest

from tabledump.core.registry import (
    AccessDenied,
    RegistryUnavailable,
    TableGone,
    TableRef,
    TableRegistry,
)
from tabledump.core.tables import AccessLevel, TableKind


def _in_thread(fn):
    result = {}

    def run():
        try:
            result["value"] = fn()
        except Exception as exc:  # noqa: BLE001
            result["error"] = exc

    t = threading.Thread(target=run)
    t.start()
    t.join()
    return result


def test_unique_table_replaces_entries_with_same_key():
    reg = TableRegistry()
    t = reg.create("cache")
    reg.insert(t, ("a", 1), ("b", 2), ("a", 3))

    assert reg.to_list(t) == [("a", 3), ("b", 2)]
    assert reg.info(t).size == 2


def test_multi_table_keeps_duplicate_keys():
    reg = TableRegistry()
    t = reg.create(kind=TableKind.MULTI_UNORDERED)
    reg.insert(t, ("a", 1), ("a", 1), ("a", 2))

    assert reg.to_list(t) == [("a", 1), ("a", 1), ("a", 2)]
    assert reg.lookup(t, "a") == [("a", 1), ("a", 1), ("a", 2)]


def test_ordered_table_iterates_in_key_order():
    reg = TableRegistry()
    t = reg.create(kind=TableKind.UNIQUE_ORDERED)
    reg.insert(t, (3, "c"), (1, "a"), (2, "b"))

    assert [e[0] for e in reg.to_list(t)] == [1, 2, 3]


def test_ordered_table_with_mixed_keys_does_not_fail():
    reg = TableRegistry()
    t = reg.create(kind=TableKind.MULTI_ORDERED)
    reg.insert(t, ("b",), (1,), ("a",))

    assert [e[0] for e in reg.to_list(t)] == [1, "a", "b"]


def test_insert_rejects_non_tuple_entries():
    reg = TableRegistry()
    t = reg.create()

    with pytest.raises(ValueError, match="tuples"):
        reg.insert(t, ["a", 1])
    with pytest.raises(ValueError):
        reg.insert(t, ())


def test_names_are_unique_among_live_tables():
    reg = TableRegistry()
    t = reg.create("cache")

    with pytest.raises(ValueError, match="already in use"):
        reg.create("cache")

    reg.drop(t)
    assert isinstance(reg.create("cache"), TableRef)


@pytest.mark.parametrize("name", [5, b"cache", ("a",)])
def test_create_rejects_non_string_names(name):
    reg = TableRegistry()

    with pytest.raises(TypeError, match="must be a string"):
        reg.create(name)

    assert reg.handles() == []


def test_resolve_accepts_names_ids_and_ref_strings():
    reg = TableRegistry()
    named = reg.create("cache")
    anon = reg.create()

    assert reg.resolve("cache") == named
    assert reg.resolve(anon) == anon
    assert reg.resolve(anon.ident) == anon
    assert reg.resolve(str(anon)) == anon
    assert reg.resolve(str(anon.ident)) == anon
    assert reg.resolve("missing") is None
    assert reg.resolve(3.5) is None


def test_handles_are_listed_in_creation_order():
    reg = TableRegistry()
    refs = [reg.create(), reg.create("b"), reg.create()]

    assert reg.handles() == refs


def test_dropped_table_is_gone():
    reg = TableRegistry()
    t = reg.create("cache")
    reg.drop(t)

    assert reg.info(t) is None
    assert reg.access_level(t) is None
    assert reg.resolve("cache") is None
    with pytest.raises(TableGone):
        reg.to_list(t)
    with pytest.raises(TableGone):
        reg.insert(t, ("a", 1))


def test_private_table_is_readable_only_by_owner():
    reg = TableRegistry()
    t = reg.create(access=AccessLevel.PRIVATE)
    reg.insert(t, ("a", 1))

    assert reg.to_list(t) == [("a", 1)]
    result = _in_thread(lambda: reg.to_list(t))
    assert isinstance(result["error"], AccessDenied)


def test_protected_table_is_readable_but_not_writable_by_others():
    reg = TableRegistry()
    t = reg.create(access=AccessLevel.PROTECTED)
    reg.insert(t, ("a", 1))

    assert _in_thread(lambda: reg.to_list(t))["value"] == [("a", 1)]
    assert isinstance(_in_thread(lambda: reg.insert(t, ("b", 2)))["error"], AccessDenied)
    assert isinstance(_in_thread(lambda: reg.drop(t))["error"], AccessDenied)


def test_public_table_can_be_dropped_by_any_thread():
    reg = TableRegistry()
    t = reg.create(access=AccessLevel.PUBLIC)

    assert "error" not in _in_thread(lambda: reg.drop(t))
    assert reg.info(t) is None


def test_set_access_and_transfer_are_owner_only():
    reg = TableRegistry()
    t = reg.create(access=AccessLevel.PUBLIC)

    result = _in_thread(lambda: reg.set_access(t, AccessLevel.PRIVATE))
    assert isinstance(result["error"], AccessDenied)

    reg.set_access(t, AccessLevel.PRIVATE)
    assert reg.access_level(t) is AccessLevel.PRIVATE

    other = threading.Thread(target=lambda: None, name="worker")
    other.start()
    other.join()
    reg.transfer(t, other)
    assert reg.info(t).owner.name == "worker"
    with pytest.raises(AccessDenied):
        reg.set_access(t, AccessLevel.PUBLIC)


def test_info_reports_metadata():
    reg = TableRegistry()
    t = reg.create("cache", kind=TableKind.MULTI_ORDERED, compressed=True)
    reg.insert(t, ("a", 1), ("a", 2))

    info = reg.info("cache")
    assert info.ref == t
    assert info.name == "cache"
    assert info.kind is TableKind.MULTI_ORDERED
    assert info.size == 2
    assert info.memory > 0
    assert info.access is AccessLevel.PROTECTED
    assert info.compressed is True
    assert info.owner.ident == threading.get_ident()


def test_shutdown_makes_registry_unavailable():
    reg = TableRegistry()
    t = reg.create()
    reg.shutdown()

    with pytest.raises(RegistryUnavailable):
        reg.handles()
    with pytest.raises(RegistryUnavailable):
        reg.info(t)
    with pytest.raises(RegistryUnavailable):
        reg.create()
