"""Upload policy for customer documents.

Accepted: PDF, JPG/JPEG, PNG and DOCX up to MAX_UPLOAD_SIZE_BYTES. The
router rejects obvious violations before reading further; the version store
runs validate_upload() again so that every write path is covered.

The ``validate_*`` helpers return ``(ok, error)`` pairs; validate_upload
raises BadRequestError with the first failing rule's message.
"""

import os
import re
from typing import Optional, Tuple

from ...config import settings
from ...errors import BadRequestError

Verdict = Tuple[bool, Optional[str]]

OK: Verdict = (True, None)

SUPPORTED_MIME_TYPES = {
    "application/pdf": (".pdf",),
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
}

MAX_FILE_SIZE = settings.MAX_UPLOAD_SIZE_BYTES
MAX_FILENAME_LENGTH = 255

_UNSAFE_CHARS = re.compile(r"[^\w\s.-]")
_RUNS = re.compile(r"[\s_]+")


def is_supported_mime_type(mime_type: str) -> bool:
    """Known to the policy and not switched off via ALLOWED_UPLOAD_MIME_TYPES."""
    return mime_type in SUPPORTED_MIME_TYPES and mime_type in settings.allowed_upload_mime_types


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Verdict:
    limit = MAX_FILE_SIZE if max_size is None else max_size
    if size_bytes == 0:
        return False, "File is empty (0 bytes)"
    if size_bytes > limit:
        return False, f"File exceeds maximum size of {limit} bytes (got {size_bytes} bytes)"
    return OK


def validate_filename(filename: str) -> Verdict:
    """Reject blank names, overlong names, separators and control characters."""
    if not filename or not filename.strip():
        return False, "Filename cannot be empty"
    if len(filename) > MAX_FILENAME_LENGTH:
        return False, f"Filename exceeds {MAX_FILENAME_LENGTH} characters (got {len(filename)})"
    if ".." in filename or any(sep in filename for sep in ("/", "\\")):
        return False, "Filename contains path traversal or directory separators"
    if any(ord(ch) < 32 for ch in filename):
        return False, "Filename contains control characters"
    return OK


def validate_extension(filename: str, mime_type: str) -> Verdict:
    extension = os.path.splitext(filename)[1].lower()
    if extension in SUPPORTED_MIME_TYPES.get(mime_type, ()):
        return OK
    return False, f"File extension '{extension}' does not match type {mime_type}"


def sanitize_filename(filename: str) -> str:
    """Storage-key safe form of an uploaded name.

    >>> sanitize_filename('salary (final).pdf')
    'salary_final_.pdf'
    """
    cleaned = _RUNS.sub("_", _UNSAFE_CHARS.sub("_", os.path.basename(filename)))
    if len(cleaned) <= MAX_FILENAME_LENGTH:
        return cleaned
    stem, extension = os.path.splitext(cleaned)
    return stem[:MAX_FILENAME_LENGTH - len(extension)] + extension


def validate_upload(filename: str, mime_type: str, size_bytes: int) -> None:
    """Raises BadRequestError for the first rule the file breaks."""
    checks = (
        lambda: validate_filename(filename),
        lambda: OK if is_supported_mime_type(mime_type) else (
            False, f"Unsupported file type {mime_type}. Allowed: PDF, JPG, JPEG, PNG, DOCX"
        ),
        lambda: validate_extension(filename, mime_type),
        lambda: validate_file_size(size_bytes),
    )
    for check in checks:
        ok, error = check()
        if not ok:
            raise BadRequestError(error)
