import json
import threading

import pytest

from dashboard.backend.config import ServerConfig
from dashboard.backend.database import JsonStore
from dashboard.backend.errors import StorageError


def test_missing_and_empty_files_read_as_default(tmp_path):
    store = JsonStore(tmp_path)
    assert store.read("servers/srv1.json", []) == []

    store.path("tier.json").write_text("  \n", encoding="utf-8")
    assert store.read("tier.json", {}) == {}


def test_write_is_atomic_and_leaves_no_temp_files(tmp_path):
    store = JsonStore(tmp_path)

    store.write("servers/srv1.json", ["111111"])

    assert json.loads(store.path("servers/srv1.json").read_text(encoding="utf-8")) == ["111111"]
    assert [p.name for p in (tmp_path / "servers").iterdir()] == ["srv1.json"]


def test_corrupt_file_is_not_overwritten(tmp_path):
    store = JsonStore(tmp_path)
    store.path("tier.json").write_text("[broken", encoding="utf-8")

    with pytest.raises(StorageError):
        store.update("tier.json", {}, lambda raw: raw.update({"1": 1}))

    assert store.path("tier.json").read_text(encoding="utf-8") == "[broken"


def test_concurrent_updates_are_not_lost(tmp_path):
    store = JsonStore(tmp_path)

    def add(value):
        store.update("servers/srv1.json", [], lambda raw: raw.append(value))

    threads = [threading.Thread(target=add, args=(str(i),)) for i in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(store.read("servers/srv1.json", []), key=int) == [str(i) for i in range(20)]


def test_server_config_flags():
    server = ServerConfig(key="srv1", name="Server 1", domain="panel.example.com/", api_key="-")

    assert server.has_domain
    assert not server.has_api_key
    assert not server.is_configured
    assert server.base_url == "https://panel.example.com"
