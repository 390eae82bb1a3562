from pathlib import Path

import pytest

from sitehost.domain.errors import ObjectNotFound, StorageFailure
from sitehost.infra.object_store import LocalObjectStore, walk_prefix


def test_put_is_an_upsert(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path)

    store.put("u1/s1/index.html", b"first", "text/html")
    store.put("u1/s1/index.html", b"second", "text/html")

    assert store.get("u1/s1/index.html") == b"second"
    assert (tmp_path / "u1" / "s1" / "index.html").read_bytes() == b"second"


def test_list_by_prefix_is_one_level(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path)
    store.put("u1/s1/index.html", b"<html></html>", "text/html")
    store.put("u1/s1/css/a.css", b"body{}", "text/css")

    entries = store.list_by_prefix("u1/s1")

    assert [(e.name, e.is_folder) for e in entries] == [("css", True), ("index.html", False)]
    index = entries[1]
    assert index.key == "u1/s1/index.html"
    assert index.size == len(b"<html></html>")
    assert index.last_modified is not None


def test_list_missing_prefix_is_empty(tmp_path: Path) -> None:
    assert LocalObjectStore(root=tmp_path).list_by_prefix("nobody/nothing") == []


def test_walk_prefix_descends_folders(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path)
    store.put("u1/s1/index.html", b"a", "text/html")
    store.put("u1/s1/css/a.css", b"bb", "text/css")
    store.put("u1/s1/img/icons/x.svg", b"ccc", "image/svg+xml")
    store.put("u1/s2/index.html", b"other site", "text/html")

    found = {o.path: o.size for o in walk_prefix(store, "u1/s1")}

    assert found == {"index.html": 1, "css/a.css": 2, "img/icons/x.svg": 3}


def test_get_missing_raises_not_found(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path)
    with pytest.raises(ObjectNotFound):
        store.get("u1/s1/missing.css")
    with pytest.raises(KeyError):
        store.get("u1/s1/missing.css")


def test_remove_many_prunes_empty_folders(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path)
    store.put("u1/s1/index.html", b"a", "text/html")
    store.put("u1/s1/css/a.css", b"b", "text/css")

    store.remove_many(["u1/s1/css/a.css", "u1/s1/never-existed.js"])

    assert [e.name for e in store.list_by_prefix("u1/s1")] == ["index.html"]
    assert not (tmp_path / "u1" / "s1" / "css").exists()


def test_keys_cannot_escape_root(tmp_path: Path) -> None:
    store = LocalObjectStore(root=tmp_path / "objects")
    with pytest.raises(StorageFailure):
        store.put("../outside.html", b"x", "text/html")
    assert not (tmp_path / "outside.html").exists()
