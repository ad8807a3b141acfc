"""Upload validation and storage naming rules."""

import re
import secrets
from datetime import UTC, datetime
from enum import Enum
from pathlib import PurePosixPath

from protean.exceptions import ValidationError

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB
MAX_FILENAME_LENGTH = 255

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.oasis.opendocument.text",
        "text/plain",
        "text/rtf",
        "application/rtf",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "application/zip",
        "application/x-rar-compressed",
        "application/x-7z-compressed",
    }
)

DANGEROUS_EXTENSIONS = frozenset({"php", "exe", "bat", "cmd", "com", "pif", "scr", "vbs", "js"})


class FileType(Enum):
    MANUSCRIPT = "manuscript"
    DOCUMENT = "document"
    IMAGE = "image"
    ARCHIVE = "archive"
    COVER = "cover"
    ILLUSTRATION = "illustration"
    DELIVERABLE = "deliverable"


def extension_of(name):
    return PurePosixPath(name).suffix.lstrip(".").lower()


def validate_upload(size, original_name, mime_type, file_type, max_size=MAX_FILE_SIZE):
    """Raise ``ValidationError`` listing every problem with the upload."""
    errors = {}

    if size <= 0:
        errors.setdefault("file", []).append("File is empty")
    elif size > max_size:
        errors.setdefault("file", []).append(f"File exceeds the {max_size // (1024 * 1024)}MB limit")

    if not original_name or "\x00" in original_name:
        errors.setdefault("original_name", []).append("Invalid file name")
    elif len(original_name) > MAX_FILENAME_LENGTH:
        errors.setdefault("original_name", []).append(f"File name exceeds {MAX_FILENAME_LENGTH} characters")
    elif extension_of(original_name) in DANGEROUS_EXTENSIONS:
        errors.setdefault("original_name", []).append("This file type is not allowed")

    if (mime_type or "").lower() not in ALLOWED_MIME_TYPES:
        errors.setdefault("mime_type", []).append(f"Unsupported file type: {mime_type}")

    try:
        FileType(file_type)
    except ValueError:
        errors.setdefault("file_type", []).append(f"Unknown file type: {file_type}")

    if errors:
        raise ValidationError(errors)


def storage_filename(original_name):
    """``<slug>_<8 random chars>.<ext>``, never the caller's raw name."""
    path = PurePosixPath(original_name)
    slug = re.sub(r"[^a-z0-9]+", "-", path.stem.lower()).strip("-")[:100] or "file"
    ext = extension_of(original_name)
    token = secrets.token_hex(4)
    return f"{slug}_{token}.{ext}" if ext else f"{slug}_{token}"


def storage_path(file_type, user_id, filename, now=None):
    now = now or datetime.now(UTC)
    return f"uploads/{file_type}/{now:%Y}/{now:%m}/{user_id}/{filename}"
