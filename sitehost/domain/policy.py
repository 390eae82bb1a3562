"""Path, content-type and size rules shared by upload and public serving."""

from __future__ import annotations

import re
from collections.abc import Iterable

from sitehost.domain.errors import FileTooLarge, InvalidSlug, PathRejected, UnsupportedType

MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_SITE_SIZE = 50 * 1024 * 1024

DEFAULT_DOCUMENT = "index.html"
OCTET_STREAM = "application/octet-stream"

SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")

MIME_TYPES: dict[str, str] = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "mjs": "application/javascript",
    "cjs": "application/javascript",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "ico": "image/x-icon",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "eot": "application/vnd.ms-fontobject",
    "txt": "text/plain",
    "xml": "application/xml",
    "pdf": "application/pdf",
}

# Servable but not accepted for upload: pdf, eot, xml.
UPLOADABLE_EXTENSIONS: frozenset[str] = frozenset(MIME_TYPES) - {"pdf", "eot", "xml"}

HTML_EXTENSIONS = frozenset({"html", "htm"})


def extension_of(filename: str) -> str:
    name = filename.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def classify_extension(filename: str) -> str:
    return MIME_TYPES.get(extension_of(filename), OCTET_STREAM)


def is_uploadable(filename: str) -> bool:
    return extension_of(filename) in UPLOADABLE_EXTENSIONS


def is_html(filename: str) -> bool:
    return extension_of(filename) in HTML_EXTENSIONS


def normalize_relative_path(
    segments: Iterable[str] | None, default: str | None = DEFAULT_DOCUMENT
) -> str | None:
    """Join path segments after dropping empty, `.` and `..` entries.

    This runs on every externally supplied path before it becomes part of a
    storage key. An empty result yields `default`.
    """

    clean = [s for s in (segments or []) if s and s not in (".", "..")]
    if not clean:
        return default
    return "/".join(clean)


def upload_relative_path(raw: str) -> str:
    """Relative path for an uploaded file; rejects traversal and empty names."""

    segments = raw.replace("\\", "/").split("/")
    if ".." in segments:
        raise PathRejected(raw)
    path = normalize_relative_path(segments, default=None)
    if path is None:
        raise PathRejected(raw)
    return path


def validate_slug(slug: str) -> None:
    if not SLUG_PATTERN.fullmatch(slug or ""):
        raise InvalidSlug(slug)


def check_file(filename: str, size: int) -> None:
    if not is_uploadable(filename):
        raise UnsupportedType(filename)
    if size > MAX_FILE_SIZE:
        raise FileTooLarge(filename, size, MAX_FILE_SIZE)


def format_size(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KB"
    return f"{n / 1024 / 1024:.1f} MB"


def site_prefix(owner_id: str, site_id: str) -> str:
    return f"{owner_id}/{site_id}"


def object_key(owner_id: str, site_id: str, relative_path: str) -> str:
    return f"{site_prefix(owner_id, site_id)}/{relative_path}"
