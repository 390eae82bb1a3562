import logging
import re
import sqlite3
from dataclasses import dataclass

from sitehost.domain.errors import NotFoundError, ObjectNotFound
from sitehost.domain.policy import classify_extension, normalize_relative_path, object_key
from sitehost.infra.object_store import ObjectStore
from sitehost.infra.repo_sites import SiteRepo
from sitehost.infra.repo_users import UserRepo

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=3600"

_HEAD_OPEN = re.compile(r"<head(?:\s[^>]*|/)?>", re.IGNORECASE)


@dataclass(frozen=True)
class PublicAsset:
    body: bytes
    content_type: str
    cache_control: str = CACHE_CONTROL


def public_base_href(owner_handle: str, slug: str) -> str:
    return f"/s/{owner_handle}/{slug}/"


def inject_base_tag(html: str, base_href: str) -> str:
    """Insert `<base href=...>` right after the first `<head>` opening tag.

    Documents without a `<head>` are returned unchanged.
    """

    m = _HEAD_OPEN.search(html)
    if m is None:
        return html
    tag = f'\n    <base href="{base_href}">'
    return html[: m.end()] + tag + html[m.end() :]


class PublicResolver:
    def __init__(self, *, conn: sqlite3.Connection, store: ObjectStore) -> None:
        self._users = UserRepo(conn)
        self._sites = SiteRepo(conn)
        self._store = store

    def resolve(self, owner_handle: str, slug: str, sub_path: list[str] | None) -> PublicAsset:
        owner = self._users.find_by_handle(owner_handle)
        if owner is None:
            logger.info("public 404: unknown owner %r", owner_handle)
            raise NotFoundError()

        path = normalize_relative_path(sub_path)

        site = self._sites.get_by_owner_slug(owner.id, slug)
        if site is None:
            logger.info("public 404: unknown site %s/%s", owner_handle, slug)
            raise NotFoundError()

        try:
            data = self._store.get(object_key(owner.id, site.id, path))
        except ObjectNotFound:
            logger.info("public 404: missing %s in %s/%s", path, owner_handle, slug)
            raise NotFoundError() from None

        content_type = classify_extension(path)
        if content_type == "text/html":
            html = data.decode("utf-8", errors="replace")
            html = inject_base_tag(html, public_base_href(owner_handle, slug))
            return PublicAsset(body=html.encode("utf-8"), content_type="text/html; charset=utf-8")
        return PublicAsset(body=data, content_type=content_type)
