import json

import pytest

from dashboard.backend.database import JsonStore
from dashboard.backend.errors import StorageError, ValidationFailed
from dashboard.backend.services.access import AccessRegistry, server_file
from tests.helpers import write_json


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path)


@pytest.fixture
def registry(store):
    return AccessRegistry(store)


def members_on_disk(store, server):
    return json.loads(store.path(server_file(server)).read_text(encoding="utf-8"))


def test_access_from_server_lists(store, registry):
    write_json(store.path("servers/srv1.json"), ["111111", 222222])
    write_json(store.path("servers/srv3.json"), ["222222"])

    assert registry.get_access("111111") == {"srv1"}
    assert registry.get_access("222222") == {"srv1", "srv3"}
    assert registry.get_access("333333") == frozenset()


def test_set_access_replaces_membership(store, registry):
    write_json(store.path("servers/srv1.json"), ["111111", "222222"])
    write_json(store.path("servers/srv2.json"), ["222222"])

    registry.set_access("111111", ["srv2", "srv3"])

    assert members_on_disk(store, "srv1") == ["222222"]
    assert members_on_disk(store, "srv2") == ["222222", "111111"]
    assert members_on_disk(store, "srv3") == ["111111"]
    assert registry.get_access("111111") == {"srv2", "srv3"}


def test_set_access_is_idempotent(store, registry):
    registry.set_access("111111", ["srv1"])
    registry.set_access("111111", ["srv1"])

    assert members_on_disk(store, "srv1") == ["111111"]


def test_set_access_rejects_unknown_server(store, registry):
    with pytest.raises(ValidationFailed):
        registry.set_access("111111", ["srv9"])
    assert not store.path("servers/srv1.json").exists()


def test_remove_user_and_counts(store, registry):
    write_json(store.path("servers/srv1.json"), ["111111", "222222", "111111"])
    write_json(store.path("servers/srv2.json"), ["111111"])

    assert registry.member_count("srv1") == 2
    assert registry.all_members() == ["111111", "222222"]

    registry.remove_user("111111")

    assert registry.all_members() == ["222222"]


def test_non_list_file_is_storage_error(store, registry):
    write_json(store.path("servers/srv1.json"), {"111111": True})
    with pytest.raises(StorageError):
        registry.get_access("111111")
