"""Documents domain module - review status, categories, upload policy"""

from .document_status import (
    DocumentStatus,
    NOT_UPLOADED,
    REVIEW_OUTCOMES,
    NOTE_REQUIRED_OUTCOMES,
    REUPLOADABLE_STATUSES,
    MIN_REJECTION_NOTE_LENGTH,
    ALLOWED_TRANSITIONS,
    can_transition,
    is_reuploadable,
)
from .categories import DocumentCategory, CHECKLIST_MAP, required_categories, category_label
from .validation import (
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
    validate_extension,
    validate_upload,
    sanitize_filename,
    SUPPORTED_MIME_TYPES,
    MAX_FILE_SIZE,
)

__all__ = [
    "DocumentStatus",
    "NOT_UPLOADED",
    "REVIEW_OUTCOMES",
    "NOTE_REQUIRED_OUTCOMES",
    "REUPLOADABLE_STATUSES",
    "MIN_REJECTION_NOTE_LENGTH",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "is_reuploadable",
    "DocumentCategory",
    "CHECKLIST_MAP",
    "required_categories",
    "category_label",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_filename",
    "validate_extension",
    "validate_upload",
    "sanitize_filename",
    "SUPPORTED_MIME_TYPES",
    "MAX_FILE_SIZE",
]
