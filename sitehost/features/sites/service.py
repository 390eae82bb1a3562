import logging
import sqlite3
from dataclasses import dataclass

from sitehost.domain.enums import UploadOutcome
from sitehost.domain.errors import (
    EmptyBatch,
    FileResult,
    InvalidSiteName,
    MissingHtmlEntry,
    OwnershipError,
    PathRejected,
    SiteQuotaExceeded,
    SlugTaken,
    StorageFailure,
    UploadFailed,
)
from sitehost.domain.policy import (
    DEFAULT_DOCUMENT,
    MAX_SITE_SIZE,
    check_file,
    classify_extension,
    format_size,
    is_html,
    normalize_relative_path,
    object_key,
    site_prefix,
    upload_relative_path,
    validate_slug,
)
from sitehost.features.sites.tree import FolderNode, build_tree, collect_leaf_paths, find_node
from sitehost.infra.object_store import ObjectStore, StoredObject, walk_prefix
from sitehost.infra.repo_sites import Site, SiteRepo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    data: bytes
    relative_path: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PreparedFile:
    path: str
    data: bytes
    content_type: str


@dataclass(frozen=True)
class SiteUsage:
    used_bytes: int
    limit_bytes: int
    file_count: int


@dataclass(frozen=True)
class Dashboard:
    total_count: int
    recent_sites: list[Site]


def _prepare(files: list[UploadedFile]) -> list[PreparedFile]:
    """Validate a batch; the first offending file aborts the whole batch."""

    prepared: list[PreparedFile] = []
    for f in files:
        path = upload_relative_path(f.relative_path or f.filename)
        check_file(path, f.size)
        prepared.append(PreparedFile(path=path, data=f.data, content_type=classify_extension(path)))
    return prepared


def _quota_message(current: int, attempted: int) -> str:
    return (
        f"site total size may not exceed {format_size(MAX_SITE_SIZE)} "
        f"(current: {format_size(current)}, after upload: {format_size(attempted)})"
    )


class SiteService:
    def __init__(self, *, conn: sqlite3.Connection, store: ObjectStore) -> None:
        self._conn = conn
        self._store = store
        self._sites = SiteRepo(conn)

    def _owned_site(self, actor_id: str, site_id: str) -> Site:
        site = self._sites.find(site_id)
        if site is None or site.owner_id != actor_id:
            raise OwnershipError(site_id)
        return site

    def _put_all(self, site: Site, prepared: list[PreparedFile]) -> list[FileResult]:
        results: list[FileResult] = []
        for p in prepared:
            key = object_key(site.owner_id, site.id, p.path)
            try:
                self._store.put(key, p.data, p.content_type)
            except Exception as e:
                logger.exception("upload of %s to site %s failed", p.path, site.id)
                results.append(FileResult(path=p.path, outcome=UploadOutcome.failed, error=str(e)))
            else:
                results.append(FileResult(path=p.path, outcome=UploadOutcome.stored))
        return results

    def create_site_with_files(
        self,
        *,
        owner_id: str,
        name: str,
        slug: str,
        description: str | None,
        files: list[UploadedFile],
    ) -> Site:
        validate_slug(slug)
        if self._sites.get_by_owner_slug(owner_id, slug) is not None:
            raise SlugTaken(slug)
        name = (name or "").strip()
        if not name:
            raise InvalidSiteName()

        if not files:
            raise EmptyBatch()
        if not any(is_html(f.relative_path or f.filename) for f in files):
            raise MissingHtmlEntry()
        prepared = _prepare(files)

        total = sum(len(p.data) for p in prepared)
        if total > MAX_SITE_SIZE:
            raise SiteQuotaExceeded(
                current=0, attempted=total, limit=MAX_SITE_SIZE, message=_quota_message(0, total)
            )

        try:
            site = self._sites.create(
                owner_id=owner_id, name=name, slug=slug, description=description or None
            )
        except sqlite3.Error as e:
            logger.error("could not create site %s for %s: %s", slug, owner_id, e)
            raise StorageFailure("failed to create site") from e

        results = self._put_all(site, prepared)
        if any(r.outcome == UploadOutcome.failed for r in results):
            stored = [
                object_key(site.owner_id, site.id, r.path)
                for r in results
                if r.outcome == UploadOutcome.stored
            ]
            logger.warning(
                "rolling back site %s: removing %d stored objects and the site record",
                site.id,
                len(stored),
            )
            self._store.remove_many(stored)
            self._sites.delete(site.id)
            raise UploadFailed(results)

        logger.info("created site %s (%s) with %d files, %d bytes", site.id, slug, len(prepared), total)
        return site

    def upload_site_files(self, *, actor_id: str, site_id: str, files: list[UploadedFile]) -> list[FileResult]:
        """Add or overwrite files of an existing site.

        A partial failure is reported but not undone; each key is an upsert,
        so resending the whole batch is safe.
        """

        site = self._owned_site(actor_id, site_id)
        if not files:
            raise EmptyBatch()
        prepared = _prepare(files)

        existing = walk_prefix(self._store, site_prefix(site.owner_id, site.id))
        current = sum(o.size for o in existing)
        incoming = {p.path: len(p.data) for p in prepared}
        replaced = sum(o.size for o in existing if o.path in incoming)
        attempted = current - replaced + sum(incoming.values())
        if attempted > MAX_SITE_SIZE:
            raise SiteQuotaExceeded(
                current=current,
                attempted=attempted,
                limit=MAX_SITE_SIZE,
                message=_quota_message(current, attempted),
            )

        results = self._put_all(site, prepared)
        if any(r.outcome == UploadOutcome.failed for r in results):
            raise UploadFailed(results)

        self._sites.touch(site.id)
        logger.info("uploaded %d files to site %s", len(prepared), site.id)
        return results

    def update_site(self, *, actor_id: str, site_id: str, name: str, description: str | None) -> Site:
        self._owned_site(actor_id, site_id)
        name = (name or "").strip()
        if not name:
            raise InvalidSiteName()
        return self._sites.update(site_id, name=name, description=description or None)

    def get_site(self, *, actor_id: str, site_id: str) -> Site:
        return self._owned_site(actor_id, site_id)

    def list_sites(self, *, actor_id: str) -> list[Site]:
        return self._sites.list_for_owner(actor_id)

    def dashboard(self, *, actor_id: str) -> Dashboard:
        return Dashboard(
            total_count=self._sites.count_for_owner(actor_id),
            recent_sites=self._sites.list_for_owner(actor_id, limit=5),
        )

    def list_site_files(self, *, actor_id: str, site_id: str) -> list[StoredObject]:
        site = self._owned_site(actor_id, site_id)
        objects = walk_prefix(self._store, site_prefix(site.owner_id, site.id))
        return sorted(objects, key=lambda o: o.path)

    def site_usage(self, *, actor_id: str, site_id: str) -> SiteUsage:
        objects = self.list_site_files(actor_id=actor_id, site_id=site_id)
        return SiteUsage(
            used_bytes=sum(o.size for o in objects),
            limit_bytes=MAX_SITE_SIZE,
            file_count=len(objects),
        )

    def has_index(self, *, actor_id: str, site_id: str) -> bool:
        objects = self.list_site_files(actor_id=actor_id, site_id=site_id)
        return any(o.path == DEFAULT_DOCUMENT for o in objects)

    def delete_site_file(self, *, actor_id: str, site_id: str, relative_path: str) -> None:
        site = self._owned_site(actor_id, site_id)
        path = normalize_relative_path(relative_path.split("/"), default=None)
        if path is None:
            raise PathRejected(relative_path)
        self._store.remove_many([object_key(site.owner_id, site.id, path)])
        self._sites.touch(site.id)
        logger.info("deleted %s from site %s", path, site.id)

    def delete_site_folder(self, *, actor_id: str, site_id: str, folder_path: str) -> list[str]:
        """Delete every file below a folder, one key at a time."""

        site = self._owned_site(actor_id, site_id)
        path = normalize_relative_path(folder_path.split("/"), default=None)
        if path is None:
            raise PathRejected(folder_path)
        objects = walk_prefix(self._store, site_prefix(site.owner_id, site.id))
        node = find_node(build_tree(objects), path)
        if not isinstance(node, FolderNode):
            return []
        leaves = collect_leaf_paths(node)
        for leaf in leaves:
            self._store.remove_many([object_key(site.owner_id, site.id, leaf)])
        self._sites.touch(site.id)
        logger.info("deleted folder %s (%d files) from site %s", path, len(leaves), site.id)
        return leaves

    def delete_site(self, *, actor_id: str, site_id: str) -> None:
        self.delete_sites(actor_id=actor_id, site_ids=[site_id])

    def delete_sites(self, *, actor_id: str, site_ids: list[str]) -> int:
        """Remove sites and all their objects.

        Ownership of every target is confirmed before anything is removed.
        Objects go first, records second: an interrupted run can leave
        unreferenced objects, never a record whose files are gone.
        """

        ids = list(dict.fromkeys(site_ids))
        owned = self._sites.owned_ids(actor_id, ids)
        missing = [i for i in ids if i not in owned]
        if missing:
            raise OwnershipError(missing[0])

        for site_id in ids:
            prefix = site_prefix(actor_id, site_id)
            keys = [f"{prefix}/{o.path}" for o in walk_prefix(self._store, prefix)]
            self._store.remove_many(keys)
            logger.info("removed %d objects of site %s", len(keys), site_id)

        self._sites.delete_many(ids)
        return len(ids)
