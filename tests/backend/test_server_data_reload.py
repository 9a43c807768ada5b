import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "backend"))

import server


def _dataset(tag):
    return {"students": [], "students_raw": [], "catalog": {}, "tag": tag}


def test_reload_skips_when_mtime_unchanged(monkeypatch):
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 100.0)

    called = {"count": 0}

    def fake_load_data(_path):
        called["count"] += 1
        return _dataset("new")

    monkeypatch.setattr(server, "load_data", fake_load_data)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert called["count"] == 0


def test_reload_swaps_data_and_invalidates_offerings(monkeypatch):
    old_data = _dataset("old")
    new_data = _dataset("new")

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 200.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)
    server._offering_cache.prime({"OLD100": "e"})
    server._matrix_response_cache.set("matrix:stale", {"stale": True})

    changed = server._reload_data_if_changed()
    assert changed is True
    assert server._data is new_data
    assert server._data_mtime == 200.0
    assert not server._offering_cache.loaded
    assert server._matrix_response_cache.get("matrix:stale") is None


def test_reload_failure_keeps_previous_data(monkeypatch):
    old_data = _dataset("old")

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 200.0)
    server._offering_cache.prime({"OLD100": "e"})

    def boom(_path):
        raise RuntimeError("reload failed")

    monkeypatch.setattr(server, "load_data", boom)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert server._data is old_data
    assert server._data_mtime == 100.0
    assert server._offering_cache.get() == {"OLD100": "e"}
    server._offering_cache.invalidate()


def test_forced_reload_ignores_mtime(monkeypatch):
    new_data = _dataset("new")
    monkeypatch.setattr(server, "_data", _dataset("old"), raising=False)
    monkeypatch.setattr(server, "_data_mtime", 300.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 100.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)

    assert server._reload_data_if_changed(force=True) is True
    assert server._data is new_data
