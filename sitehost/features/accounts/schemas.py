from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    email: str | None = Field(default=None, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    is_admin: bool = False


class UserOut(BaseModel):
    id: str
    email: str | None
    handle: str = Field(description="Segment used in public site URLs")
    is_admin: bool
    created_at: str
