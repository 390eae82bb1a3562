from pydantic import BaseModel, Field


class SiteUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class BulkDelete(BaseModel):
    site_ids: list[str] = Field(min_length=1, max_length=100)


class SiteOut(BaseModel):
    id: str
    owner_id: str
    name: str
    slug: str
    description: str | None
    created_at: str
    updated_at: str
    url: str


class FileOut(BaseModel):
    path: str
    size: int
    last_modified: str | None


class UsageOut(BaseModel):
    used_bytes: int
    limit_bytes: int
    file_count: int


class FileResultOut(BaseModel):
    path: str
    outcome: str
    error: str | None = None
