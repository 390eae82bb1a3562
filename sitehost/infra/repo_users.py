import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: str
    email: str | None
    is_admin: bool
    created_at: str

    @property
    def handle(self) -> str:
        """Public URL segment: email local-part, else the first 8 id characters."""
        if self.email:
            return self.email.split("@")[0]
        return self.id[:8]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=str(row["id"]),
        email=row["email"],
        is_admin=bool(row["is_admin"]),
        created_at=str(row["created_at"]),
    )


class UserRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, email: str | None, is_admin: bool = False, user_id: str | None = None) -> User:
        uid = user_id or uuid.uuid4().hex
        self._conn.execute(
            "INSERT INTO users(id, email, is_admin, created_at) VALUES(?, ?, ?, ?)",
            (uid, email, 1 if is_admin else 0, utc_now_iso()),
        )
        self._conn.commit()
        return self.get(uid)

    def get(self, user_id: str) -> User:
        user = self.find(user_id)
        if user is None:
            raise KeyError(f"User not found: {user_id}")
        return user

    def find(self, user_id: str) -> User | None:
        row = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def list_users(self) -> list[User]:
        rows = self._conn.execute("SELECT * FROM users ORDER BY created_at ASC, id ASC").fetchall()
        return [_row_to_user(r) for r in rows]

    def find_by_handle(self, handle: str) -> User | None:
        """First account whose public handle equals `handle`.

        Handles are not unique: two emails can share a local-part. Listing
        order (creation time, then id) decides; collisions are logged.
        """

        matches = [u for u in self.list_users() if u.handle == handle]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "handle %r matches %d accounts; using the oldest", handle, len(matches)
            )
        return matches[0]
