from fastapi import HTTPException, Request

from sitehost.infra.repo_users import User, UserRepo


def require_admin(request: Request) -> None:
    cfg = request.app.state.cfg
    expected = getattr(cfg, "admin_secret", None)
    provided = request.headers.get("X-Admin-Secret")
    if not expected or not provided or provided != expected:
        raise HTTPException(status_code=401, detail="admin_unauthorized")


def require_user(request: Request) -> User:
    """Resolve the acting account from the session layer.

    The session layer in front of this service authenticates the caller and
    forwards the account id in `X-User-Id`.
    """

    user_id = request.headers.get("X-User-Id")
    if not user_id:
        raise HTTPException(status_code=401, detail="unauthenticated")
    user = UserRepo(request.app.state.db).find(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="unauthenticated")
    return user
