"""Document versioning, review and checklist services"""

from .version_store import DocumentVersionStore, DocumentChain, DocumentWithVersions, build_storage_key
from .review import DocumentReviewPipeline
from .checklist import ChecklistEngine, Checklist, ChecklistItem

__all__ = [
    "DocumentVersionStore",
    "DocumentChain",
    "DocumentWithVersions",
    "build_storage_key",
    "DocumentReviewPipeline",
    "ChecklistEngine",
    "Checklist",
    "ChecklistItem",
]
