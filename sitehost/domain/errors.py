from __future__ import annotations

from dataclasses import dataclass

from sitehost.domain.enums import ErrorCode, UploadOutcome


class SiteError(Exception):
    """Base for every failure the site core reports to its callers."""

    code: ErrorCode = ErrorCode.storage_failure
    status_code: int = 500

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename

    def to_detail(self) -> dict[str, object]:
        detail: dict[str, object] = {"error": self.code.value, "message": self.message}
        if self.filename is not None:
            detail["filename"] = self.filename
        return detail


class SiteValidationError(SiteError):
    code = ErrorCode.invalid_slug
    status_code = 400


class InvalidSlug(SiteValidationError):
    code = ErrorCode.invalid_slug

    def __init__(self, slug: str) -> None:
        super().__init__(
            f"slug {slug!r} may only contain lowercase letters, digits and single hyphens"
        )
        self.slug = slug


class InvalidSiteName(SiteValidationError):
    code = ErrorCode.invalid_site_name

    def __init__(self) -> None:
        super().__init__("site name must not be empty")


class PathRejected(SiteValidationError):
    code = ErrorCode.path_rejected

    def __init__(self, path: str) -> None:
        super().__init__(f"path {path!r} is not a valid relative path", filename=path)


class UnsupportedType(SiteValidationError):
    code = ErrorCode.unsupported_type

    def __init__(self, filename: str) -> None:
        super().__init__(f"unsupported file type: {filename}", filename=filename)


class FileTooLarge(SiteValidationError):
    code = ErrorCode.file_too_large

    def __init__(self, filename: str, size: int, limit: int) -> None:
        super().__init__(
            f"file {filename} is {size} bytes, the per-file limit is {limit} bytes",
            filename=filename,
        )
        self.size = size
        self.limit = limit


class EmptyBatch(SiteValidationError):
    code = ErrorCode.empty_batch

    def __init__(self) -> None:
        super().__init__("select at least one file")


class MissingHtmlEntry(SiteValidationError):
    code = ErrorCode.missing_html_entry

    def __init__(self) -> None:
        super().__init__("the upload must contain at least one .html or .htm file")


class SlugTaken(SiteError):
    code = ErrorCode.slug_taken
    status_code = 409

    def __init__(self, slug: str) -> None:
        super().__init__(f"slug {slug!r} is already in use")
        self.slug = slug


class SiteQuotaExceeded(SiteError):
    code = ErrorCode.site_quota_exceeded
    status_code = 413

    def __init__(self, *, current: int, attempted: int, limit: int, message: str) -> None:
        super().__init__(message)
        self.current = current
        self.attempted = attempted
        self.limit = limit

    def to_detail(self) -> dict[str, object]:
        detail = super().to_detail()
        detail.update(current=self.current, attempted=self.attempted, limit=self.limit)
        return detail


class NotFoundError(SiteError):
    """Opaque not-found; never says which lookup missed."""

    code = ErrorCode.not_found
    status_code = 404

    def __init__(self) -> None:
        super().__init__("not found")


class OwnershipError(SiteError):
    # Reported like a missing site so other tenants' ids are not confirmed.
    code = ErrorCode.site_not_found
    status_code = 404

    def __init__(self, site_id: str) -> None:
        super().__init__("site not found or access denied")
        self.site_id = site_id


class StorageFailure(SiteError):
    code = ErrorCode.storage_failure
    status_code = 502

    def __init__(self, message: str = "storage operation failed") -> None:
        super().__init__(message)


class ObjectNotFound(KeyError):
    pass


@dataclass(frozen=True)
class FileResult:
    path: str
    outcome: UploadOutcome
    error: str | None = None


class UploadFailed(SiteError):
    code = ErrorCode.upload_failed
    status_code = 502

    def __init__(self, results: list[FileResult]) -> None:
        failed = [r.path for r in results if r.outcome == UploadOutcome.failed]
        super().__init__(f"some files failed to upload: {', '.join(failed)}")
        self.results = results
        self.failed = failed

    def to_detail(self) -> dict[str, object]:
        detail = super().to_detail()
        detail["failed"] = self.failed
        return detail
