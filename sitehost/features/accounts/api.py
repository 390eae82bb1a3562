import sqlite3
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from sitehost.features.accounts.auth import require_admin, require_user
from sitehost.features.accounts.schemas import UserCreate, UserOut
from sitehost.infra.repo_users import User, UserRepo

router = APIRouter(prefix="/api", tags=["accounts"])


def _user_out(u: User) -> UserOut:
    return UserOut(id=u.id, email=u.email, handle=u.handle, is_admin=u.is_admin, created_at=u.created_at)


@router.post("/admin/users", status_code=201)
def create_user(request: Request, body: UserCreate) -> UserOut:
    require_admin(request)
    repo = UserRepo(request.app.state.db)
    try:
        user = repo.create(email=body.email, is_admin=body.is_admin)
    except sqlite3.IntegrityError as e:
        raise HTTPException(status_code=409, detail=f"create_failed:{type(e).__name__}")
    return _user_out(user)


@router.get("/admin/users")
def list_users(request: Request) -> dict[str, Any]:
    require_admin(request)
    users = UserRepo(request.app.state.db).list_users()
    return {"items": [_user_out(u).model_dump() for u in users]}


@router.get("/me")
def me(request: Request) -> UserOut:
    return _user_out(require_user(request))
