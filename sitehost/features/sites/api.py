from typing import Annotated, Any, NoReturn

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from sitehost.domain.errors import SiteError
from sitehost.domain.policy import MAX_SITE_SIZE
from sitehost.features.accounts.auth import require_user
from sitehost.features.public.service import public_base_href
from sitehost.features.sites.schemas import (
    BulkDelete,
    FileOut,
    FileResultOut,
    SiteOut,
    SiteUpdate,
    UsageOut,
)
from sitehost.features.sites.service import SiteService, UploadedFile
from sitehost.features.sites.tree import build_tree, tree_to_dict
from sitehost.infra.repo_sites import Site
from sitehost.infra.repo_users import User

router = APIRouter(prefix="/api/sites", tags=["sites"])


def _service(request: Request) -> SiteService:
    return SiteService(conn=request.app.state.db, store=request.app.state.store)


def _raise(e: SiteError) -> NoReturn:
    raise HTTPException(status_code=e.status_code, detail=e.to_detail())


def _site_out(site: Site, owner: User) -> SiteOut:
    return SiteOut(
        id=site.id,
        owner_id=site.owner_id,
        name=site.name,
        slug=site.slug,
        description=site.description,
        created_at=site.created_at,
        updated_at=site.updated_at,
        url=public_base_href(owner.handle, site.slug),
    )


async def _read_batch(files: list[UploadFile], paths: list[str]) -> list[UploadedFile]:
    if paths and len(paths) != len(files):
        raise HTTPException(status_code=400, detail={"error": "paths_mismatch"})
    batch: list[UploadedFile] = []
    for i, f in enumerate(files):
        data = await f.read()
        name = f.filename or ""
        batch.append(UploadedFile(filename=name, data=data, relative_path=paths[i] if paths else None))
    return batch


@router.post("", status_code=201)
async def create_site(
    request: Request,
    name: Annotated[str, Form()],
    slug: Annotated[str, Form()],
    files: Annotated[list[UploadFile], File()],
    description: Annotated[str | None, Form()] = None,
    paths: Annotated[list[str] | None, Form()] = None,
) -> SiteOut:
    user = require_user(request)
    batch = await _read_batch(files, paths or [])
    try:
        site = _service(request).create_site_with_files(
            owner_id=user.id, name=name, slug=slug, description=description, files=batch
        )
    except SiteError as e:
        _raise(e)
    return _site_out(site, user)


@router.get("")
def list_sites(request: Request) -> dict[str, Any]:
    user = require_user(request)
    sites = _service(request).list_sites(actor_id=user.id)
    return {"handle": user.handle, "items": [_site_out(s, user).model_dump() for s in sites]}


@router.get("/dashboard")
def dashboard(request: Request) -> dict[str, Any]:
    user = require_user(request)
    d = _service(request).dashboard(actor_id=user.id)
    return {
        "total_count": d.total_count,
        "recent_sites": [_site_out(s, user).model_dump() for s in d.recent_sites],
    }


@router.post("/bulk-delete")
def delete_sites(request: Request, body: BulkDelete) -> dict[str, Any]:
    user = require_user(request)
    try:
        count = _service(request).delete_sites(actor_id=user.id, site_ids=body.site_ids)
    except SiteError as e:
        _raise(e)
    return {"deleted": count}


@router.get("/{site_id}")
def get_site(request: Request, site_id: str) -> dict[str, Any]:
    user = require_user(request)
    svc = _service(request)
    try:
        site = svc.get_site(actor_id=user.id, site_id=site_id)
        has_index = svc.has_index(actor_id=user.id, site_id=site_id)
    except SiteError as e:
        _raise(e)
    return {"site": _site_out(site, user).model_dump(), "has_index": has_index}


@router.patch("/{site_id}")
def update_site(request: Request, site_id: str, body: SiteUpdate) -> SiteOut:
    user = require_user(request)
    try:
        site = _service(request).update_site(
            actor_id=user.id, site_id=site_id, name=body.name, description=body.description
        )
    except SiteError as e:
        _raise(e)
    return _site_out(site, user)


@router.delete("/{site_id}")
def delete_site(request: Request, site_id: str) -> dict[str, Any]:
    user = require_user(request)
    try:
        _service(request).delete_site(actor_id=user.id, site_id=site_id)
    except SiteError as e:
        _raise(e)
    return {"deleted": 1}


@router.post("/{site_id}/files")
async def upload_files(
    request: Request,
    site_id: str,
    files: Annotated[list[UploadFile], File()],
    paths: Annotated[list[str] | None, Form()] = None,
) -> dict[str, Any]:
    user = require_user(request)
    svc = _service(request)
    # Ownership is checked inside the service before any validation.
    batch = await _read_batch(files, paths or [])
    try:
        results = svc.upload_site_files(actor_id=user.id, site_id=site_id, files=batch)
    except SiteError as e:
        _raise(e)
    return {
        "count": len(results),
        "results": [
            FileResultOut(path=r.path, outcome=r.outcome.value, error=r.error).model_dump()
            for r in results
        ],
    }


@router.get("/{site_id}/files")
def list_files(request: Request, site_id: str) -> dict[str, Any]:
    user = require_user(request)
    try:
        objects = _service(request).list_site_files(actor_id=user.id, site_id=site_id)
    except SiteError as e:
        _raise(e)
    usage = UsageOut(
        used_bytes=sum(o.size for o in objects),
        limit_bytes=MAX_SITE_SIZE,
        file_count=len(objects),
    )
    return {
        "files": [FileOut(path=o.path, size=o.size, last_modified=o.last_modified).model_dump() for o in objects],
        "usage": usage.model_dump(),
    }


@router.get("/{site_id}/tree")
def file_tree(request: Request, site_id: str) -> dict[str, Any]:
    user = require_user(request)
    try:
        objects = _service(request).list_site_files(actor_id=user.id, site_id=site_id)
    except SiteError as e:
        _raise(e)
    return {"tree": tree_to_dict(build_tree(objects))}


@router.delete("/{site_id}/files/{file_path:path}")
def delete_file(request: Request, site_id: str, file_path: str) -> dict[str, Any]:
    user = require_user(request)
    try:
        _service(request).delete_site_file(actor_id=user.id, site_id=site_id, relative_path=file_path)
    except SiteError as e:
        _raise(e)
    return {"deleted": [file_path]}


@router.delete("/{site_id}/folders/{folder_path:path}")
def delete_folder(request: Request, site_id: str, folder_path: str) -> dict[str, Any]:
    user = require_user(request)
    try:
        removed = _service(request).delete_site_folder(
            actor_id=user.id, site_id=site_id, folder_path=folder_path
        )
    except SiteError as e:
        _raise(e)
    return {"deleted": removed}
