import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sitehost.domain.errors import SlugTaken


@dataclass(frozen=True)
class Site:
    id: str
    owner_id: str
    name: str
    slug: str
    description: str | None
    created_at: str
    updated_at: str


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_site(row: sqlite3.Row) -> Site:
    return Site(
        id=str(row["id"]),
        owner_id=str(row["owner_id"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        description=row["description"],
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


class SiteRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, owner_id: str, name: str, slug: str, description: str | None) -> Site:
        site_id = uuid.uuid4().hex
        now = utc_now_iso()
        try:
            self._conn.execute(
                """
                INSERT INTO sites(id, owner_id, name, slug, description, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?, ?)
                """,
                (site_id, owner_id, name, slug, description, now, now),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            if "UNIQUE" in str(e) and "slug" in str(e):
                raise SlugTaken(slug) from e
            raise
        return self.get(site_id)

    def get(self, site_id: str) -> Site:
        site = self.find(site_id)
        if site is None:
            raise KeyError(f"Site not found: {site_id}")
        return site

    def find(self, site_id: str) -> Site | None:
        row = self._conn.execute("SELECT * FROM sites WHERE id = ?", (site_id,)).fetchone()
        return _row_to_site(row) if row else None

    def get_by_owner_slug(self, owner_id: str, slug: str) -> Site | None:
        row = self._conn.execute(
            "SELECT * FROM sites WHERE owner_id = ? AND slug = ?", (owner_id, slug)
        ).fetchone()
        return _row_to_site(row) if row else None

    def list_for_owner(self, owner_id: str, limit: int | None = None) -> list[Site]:
        sql = "SELECT * FROM sites WHERE owner_id = ? ORDER BY created_at DESC, id DESC"
        params: tuple[object, ...] = (owner_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (owner_id, limit)
        return [_row_to_site(r) for r in self._conn.execute(sql, params).fetchall()]

    def count_for_owner(self, owner_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM sites WHERE owner_id = ?", (owner_id,)
        ).fetchone()
        return int(row["n"])

    def owned_ids(self, owner_id: str, site_ids: list[str]) -> set[str]:
        if not site_ids:
            return set()
        marks = ",".join("?" for _ in site_ids)
        rows = self._conn.execute(
            f"SELECT id FROM sites WHERE owner_id = ? AND id IN ({marks})",
            (owner_id, *site_ids),
        ).fetchall()
        return {str(r["id"]) for r in rows}

    def update(self, site_id: str, name: str, description: str | None) -> Site:
        self._conn.execute(
            "UPDATE sites SET name = ?, description = ?, updated_at = ? WHERE id = ?",
            (name, description, utc_now_iso(), site_id),
        )
        self._conn.commit()
        return self.get(site_id)

    def touch(self, site_id: str) -> None:
        self._conn.execute(
            "UPDATE sites SET updated_at = ? WHERE id = ?", (utc_now_iso(), site_id)
        )
        self._conn.commit()

    def delete(self, site_id: str) -> None:
        self.delete_many([site_id])

    def delete_many(self, site_ids: list[str]) -> None:
        if not site_ids:
            return
        marks = ",".join("?" for _ in site_ids)
        self._conn.execute(f"DELETE FROM sites WHERE id IN ({marks})", tuple(site_ids))
        self._conn.commit()
