import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure `import sitehost...` works without installing the package.
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


class SpyStore:
    """Wraps a real store, records calls and fails puts for chosen paths."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.puts: list[str] = []
        self.removed: list[str] = []
        self.fail_on: set[str] = set()

    def put(self, key: str, data: bytes, content_type: str) -> None:
        from sitehost.domain.errors import StorageFailure

        self.puts.append(key)
        if any(key.endswith("/" + p) for p in self.fail_on):
            raise StorageFailure(f"simulated failure for {key}")
        self.inner.put(key, data, content_type)

    def list_by_prefix(self, prefix: str):
        return self.inner.list_by_prefix(prefix)

    def get(self, key: str) -> bytes:
        return self.inner.get(key)

    def remove_many(self, keys: list[str]) -> None:
        self.removed.extend(keys)
        self.inner.remove_many(keys)


@pytest.fixture
def conn(tmp_path: Path):
    from sitehost.infra.db import DbConfig, connect, migrate

    c = connect(DbConfig(path=tmp_path / "test.sqlite3"))
    migrate(c)
    yield c
    c.close()


@pytest.fixture
def local_store(tmp_path: Path):
    from sitehost.infra.object_store import LocalObjectStore

    return LocalObjectStore(tmp_path / "objects")


@pytest.fixture
def store(local_store) -> SpyStore:
    return SpyStore(local_store)


@pytest.fixture
def alice(conn):
    from sitehost.infra.repo_users import UserRepo

    return UserRepo(conn).create(email="alice@example.com")


@pytest.fixture
def bob(conn):
    from sitehost.infra.repo_users import UserRepo

    return UserRepo(conn).create(email="bob@example.com")


@pytest.fixture
def service(conn, store):
    from sitehost.features.sites.service import SiteService

    return SiteService(conn=conn, store=store)


@pytest.fixture
def app(tmp_path: Path):
    from sitehost.config import AppConfig
    from sitehost.main import create_app

    return create_app(AppConfig(data_dir=tmp_path / "data", admin_secret="test-secret"))


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c
