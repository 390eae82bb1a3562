import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sitehost.domain.errors import ObjectNotFound, StorageFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectEntry:
    """One item of a single-level listing: a stored object or a sub-folder."""

    name: str
    key: str
    size: int
    last_modified: str | None
    is_folder: bool


@dataclass(frozen=True)
class StoredObject:
    path: str
    size: int
    last_modified: str | None


class ObjectStore(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def list_by_prefix(self, prefix: str) -> list[ObjectEntry]: ...

    def get(self, key: str) -> bytes: ...

    def remove_many(self, keys: list[str]) -> None: ...


def walk_prefix(store: ObjectStore, prefix: str) -> list[StoredObject]:
    """Depth-first walk of every object below `prefix`.

    The store only lists one level at a time, so folders are descended into
    one by one. Returned paths are relative to `prefix`.
    """

    prefix = prefix.rstrip("/")
    found: list[StoredObject] = []

    def _walk(folder: str) -> None:
        for entry in store.list_by_prefix(folder):
            if entry.is_folder:
                _walk(entry.key)
                continue
            found.append(
                StoredObject(
                    path=entry.key[len(prefix) + 1 :],
                    size=entry.size,
                    last_modified=entry.last_modified,
                )
            )

    _walk(prefix)
    return found


def _mtime_iso(st: os.stat_result) -> str:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat()


class LocalObjectStore:
    """Filesystem-backed object store: one file per key under `root`."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    def _path(self, key: str) -> Path:
        p = (self._root / key.strip("/")).resolve()
        if p != self._root and self._root not in p.parents:
            raise StorageFailure(f"key escapes store root: {key}")
        return p

    def put(self, key: str, data: bytes, content_type: str) -> None:
        target = self._path(key)
        tmp = target.with_name(f".{target.name}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as e:
            logger.error("put failed for %s: %s", key, e)
            raise StorageFailure(f"failed to store {key}") from e
        logger.debug("stored %s (%d bytes, %s)", key, len(data), content_type)

    def list_by_prefix(self, prefix: str) -> list[ObjectEntry]:
        folder = self._path(prefix)
        if not folder.is_dir():
            return []
        base = prefix.strip("/")
        entries: list[ObjectEntry] = []
        for child in sorted(folder.iterdir(), key=lambda c: c.name):
            if child.name.startswith(".") and child.name.endswith(".tmp"):
                continue
            key = f"{base}/{child.name}" if base else child.name
            if child.is_dir():
                entries.append(
                    ObjectEntry(name=child.name, key=key, size=0, last_modified=None, is_folder=True)
                )
            else:
                st = child.stat()
                entries.append(
                    ObjectEntry(
                        name=child.name,
                        key=key,
                        size=st.st_size,
                        last_modified=_mtime_iso(st),
                        is_folder=False,
                    )
                )
        return entries

    def get(self, key: str) -> bytes:
        p = self._path(key)
        if not p.is_file():
            raise ObjectNotFound(key)
        try:
            return p.read_bytes()
        except OSError as e:
            raise StorageFailure(f"failed to read {key}") from e

    def remove_many(self, keys: list[str]) -> None:
        for key in keys:
            p = self._path(key)
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("could not remove %s: %s", key, e)
                continue
            self._prune(p.parent)

    def _prune(self, folder: Path) -> None:
        # Folders only exist through the objects inside them.
        while folder != self._root and folder.is_dir():
            try:
                folder.rmdir()
            except OSError:
                return
            folder = folder.parent
