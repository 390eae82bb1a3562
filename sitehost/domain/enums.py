from enum import Enum


class ErrorCode(str, Enum):
    invalid_slug = "invalid_slug"
    invalid_site_name = "invalid_site_name"
    slug_taken = "slug_taken"
    path_rejected = "path_rejected"
    unsupported_type = "unsupported_type"
    file_too_large = "file_too_large"
    empty_batch = "empty_batch"
    missing_html_entry = "missing_html_entry"
    site_quota_exceeded = "site_quota_exceeded"
    not_found = "not_found"
    site_not_found = "site_not_found"
    storage_failure = "storage_failure"
    upload_failed = "upload_failed"


class UploadOutcome(str, Enum):
    stored = "stored"
    failed = "failed"
