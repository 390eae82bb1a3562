from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from sitehost.domain.errors import NotFoundError
from sitehost.features.public.service import PublicResolver

router = APIRouter(prefix="/s", tags=["public"])


def _serve(request: Request, user: str, slug: str, segments: list[str]) -> Response:
    resolver = PublicResolver(conn=request.app.state.db, store=request.app.state.store)
    try:
        asset = resolver.resolve(user, slug, segments)
    except NotFoundError:
        return PlainTextResponse("Not found", status_code=404)
    return Response(
        content=asset.body,
        media_type=asset.content_type,
        headers={"Cache-Control": asset.cache_control},
    )


@router.get("/{user}/{slug}")
def serve_site_root(request: Request, user: str, slug: str) -> Response:
    return _serve(request, user, slug, [])


@router.get("/{user}/{slug}/{file_path:path}")
def serve_site_file(request: Request, user: str, slug: str, file_path: str) -> Response:
    return _serve(request, user, slug, file_path.split("/"))
