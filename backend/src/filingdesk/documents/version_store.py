"""Document version chains.

A chain is every version produced by one upload and its re-uploads. All
rows of a chain share chain_root_id (the id of version 1) and the chain's
current state is its highest version, the "head". Listings of "my
documents" show one entry per chain, keyed by its root.

Deletion tombstones the whole chain. Tombstoned rows are invisible to every
read path here, but the rows and their blobs stay in place for the audit
trail.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from ..audit.ports import AuditSink
from ..audit.service import AuditAction, DatabaseAuditSink
from ..config import settings
from ..database import is_unique_violation
from ..domain.documents import (
    DocumentCategory,
    DocumentStatus,
    is_reuploadable,
    sanitize_filename,
    validate_upload,
)
from ..domain.documents.ports import UploadStorePort
from ..errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ..models.base import utcnow
from ..models.document import Document
from ..models.filing import Filing
from ..pagination import DEFAULT_LIMIT, Page, paginate

logger = logging.getLogger(__name__)


@dataclass
class DocumentChain:
    """One chain: its root (version 1), its head (highest version) and size."""
    root: Document
    head: Document
    version_count: int

    @property
    def chain_root_id(self) -> UUID:
        return self.root.chain_root_id

    @property
    def status(self) -> str:
        return self.head.status

    @property
    def category(self) -> str:
        return self.head.category


@dataclass
class DocumentWithVersions:
    document: Document
    versions: List[Document] = field(default_factory=list)  # newest first


def parse_category(value) -> DocumentCategory:
    try:
        return DocumentCategory(value)
    except ValueError:
        raise BadRequestError(f"Unknown document category: {value}")


def build_storage_key(
    owner_user_id: UUID,
    filing_id: Optional[UUID],
    category: DocumentCategory,
    file_name: str,
    now: Optional[datetime] = None,
) -> str:
    """Deterministic key: users/{owner}[/filings/{filing}]/{category}/{ms}_{name}

    Example:
        >>> build_storage_key(owner, None, DocumentCategory.NID, 'my nid.pdf', now)
        'users/<owner>/NID/1735689600000_my_nid.pdf'
    """
    now = now or utcnow()
    timestamp_ms = int(now.timestamp() * 1000)
    prefix = f"users/{owner_user_id}"
    if filing_id:
        prefix += f"/filings/{filing_id}"
    return f"{prefix}/{DocumentCategory(category).value}/{timestamp_ms}_{sanitize_filename(file_name)}"


class DocumentVersionStore:
    """Owns Document rows and their version chains.

    Blobs are written to the upload store before the row is flushed, so a
    failure leaves at worst an orphaned blob, never a row pointing at
    nothing. The caller commits.
    """

    def __init__(
        self,
        db: Session,
        upload_store: UploadStorePort,
        audit_sink: Optional[AuditSink] = None,
    ):
        self.db = db
        self.upload_store = upload_store
        self.audit = audit_sink or DatabaseAuditSink(db)

    # ─── Writes ───────────────────────────────────────

    def upload(
        self,
        owner_user_id: UUID,
        file_name: str,
        data: bytes,
        mime_type: str,
        category,
        filing_id: Optional[UUID] = None,
    ) -> Document:
        """Store a new document as version 1 of a new chain.

        Raises:
            BadRequestError: Unknown category, upload policy violated, or the
                filing does not belong to the owner
        """
        category = parse_category(category)
        validate_upload(file_name, mime_type, len(data))

        if filing_id is not None:
            filing = self.db.query(Filing).filter(
                Filing.id == filing_id,
                Filing.owner_user_id == owner_user_id,
            ).first()
            if not filing:
                raise BadRequestError("Filing not found or does not belong to you")

        key = build_storage_key(owner_user_id, filing_id, category, file_name)
        self.upload_store.put(key, data, mime_type)

        document_id = uuid.uuid4()
        document = Document(
            id=document_id,
            owner_user_id=owner_user_id,
            filing_id=filing_id,
            category=category.value,
            file_name=file_name,
            storage_key=key,
            file_size_bytes=len(data),
            mime_type=mime_type,
            status=DocumentStatus.PENDING.value,
            version=1,
            chain_root_id=document_id,
        )
        self._insert(document)

        logger.info(
            f"Document uploaded: {document.id}",
            extra={
                "document_id": str(document.id),
                "owner_user_id": str(owner_user_id),
                "category": category.value,
                "filing_id": str(filing_id) if filing_id else None,
            },
        )
        return document

    def reupload(
        self,
        owner_user_id: UUID,
        document_id: UUID,
        file_name: str,
        data: bytes,
        mime_type: str,
    ) -> Document:
        """Append a new version to the chain of document_id.

        document_id may be any version of the chain; the new version is
        always head.version + 1 and starts over as PENDING.

        Raises:
            NotFoundError: Document missing or not owned
            BadRequestError: Chain head is not REJECTED / NEEDS_REUPLOAD
            ConflictError: A concurrent re-upload took the same version number
        """
        document = self._get_owned(owner_user_id, document_id)
        head = self.get_chain_head(document.chain_root_id)

        if not is_reuploadable(head.status):
            raise BadRequestError(
                f"Only rejected documents or documents needing re-upload can be re-uploaded "
                f"(current: {head.status})"
            )

        validate_upload(file_name, mime_type, len(data))

        key = build_storage_key(owner_user_id, head.filing_id, head.category, file_name)
        self.upload_store.put(key, data, mime_type)

        new_version = Document(
            id=uuid.uuid4(),
            owner_user_id=owner_user_id,
            filing_id=head.filing_id,
            category=head.category,
            file_name=file_name,
            storage_key=key,
            file_size_bytes=len(data),
            mime_type=mime_type,
            status=DocumentStatus.PENDING.value,
            version=head.version + 1,
            chain_root_id=head.chain_root_id,
        )
        self._insert(new_version)

        logger.info(
            f"Document re-uploaded: {new_version.id} (v{new_version.version})",
            extra={
                "document_id": str(new_version.id),
                "chain_root_id": str(new_version.chain_root_id),
                "version": new_version.version,
            },
        )
        return new_version

    def delete(self, owner_user_id: UUID, document_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Tombstone the whole chain of document_id.

        Raises:
            NotFoundError: Document missing or not owned
            ForbiddenError: The chain's current version is ACCEPTED
            ConflictError: The head was reviewed or replaced after it was read
        """
        document = self._get_owned(owner_user_id, document_id)
        head = self.get_chain_head(document.chain_root_id)

        if head.status == DocumentStatus.ACCEPTED.value:
            raise ForbiddenError("Cannot delete an accepted document")

        now = utcnow()
        actor_id = actor_id or owner_user_id
        # Tombstone the head only while it is still the head, with the status checked above
        newer = aliased(Document)
        guarded = self.db.execute(
            update(Document)
            .where(
                Document.id == head.id,
                Document.status == head.status,
                Document.deleted_at.is_(None),
                ~select(newer.id)
                .where(newer.chain_root_id == head.chain_root_id, newer.version > head.version)
                .exists(),
            )
            .values(deleted_at=now, deleted_by_user_id=actor_id)
            .execution_options(synchronize_session="fetch")
        )
        if guarded.rowcount == 0:
            raise ConflictError("Document was modified concurrently, please retry")

        self.db.execute(
            update(Document)
            .where(
                Document.chain_root_id == document.chain_root_id,
                Document.deleted_at.is_(None),
            )
            .values(deleted_at=now, deleted_by_user_id=actor_id)
            .execution_options(synchronize_session="fetch")
        )

        self.audit.append(
            actor_id,
            AuditAction.DOCUMENT_DELETED,
            "Document",
            document.chain_root_id,
            old_value={"status": head.status, "version": head.version},
            new_value={"deleted": True},
        )
        self.db.flush()

        logger.info(
            f"Document chain {document.chain_root_id} deleted",
            extra={"document_id": str(document_id), "deleted_by": str(actor_id)},
        )

    # ─── Reads ────────────────────────────────────────

    def get_chain_head(self, chain_root_id: UUID) -> Document:
        head = self.db.query(Document).filter(
            Document.chain_root_id == chain_root_id,
            Document.deleted_at.is_(None),
        ).order_by(Document.version.desc()).first()
        if not head:
            raise NotFoundError("Document not found")
        return head

    def get_versions(self, chain_root_id: UUID) -> List[Document]:
        return self.db.query(Document).filter(
            Document.chain_root_id == chain_root_id,
            Document.deleted_at.is_(None),
        ).order_by(Document.version.desc()).all()

    def get_document(self, document_id: UUID, owner_user_id: Optional[UUID] = None) -> DocumentWithVersions:
        """Document plus every version of its chain, newest first.

        Without owner_user_id the lookup is unscoped (staff).
        """
        if owner_user_id is not None:
            document = self._get_owned(owner_user_id, document_id)
        else:
            document = self._get(document_id)
        return DocumentWithVersions(document=document, versions=self.get_versions(document.chain_root_id))

    def get_download_url(self, document_id: UUID, owner_user_id: Optional[UUID] = None) -> str:
        """Time-limited download URL (DOWNLOAD_URL_EXPIRES_SECONDS)."""
        if owner_user_id is not None:
            document = self._get_owned(owner_user_id, document_id)
        else:
            document = self._get(document_id)

        try:
            return self.upload_store.url_for(
                document.storage_key,
                expires_in_seconds=settings.DOWNLOAD_URL_EXPIRES_SECONDS,
            )
        except FileNotFoundError:
            raise NotFoundError("Document file not found in storage")

    def list_roots(
        self,
        owner_user_id: UUID,
        category: Optional[str] = None,
        filing_id: Optional[UUID] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
    ) -> Page:
        """The owner's chains, newest first, one entry per root."""
        query, root, head = self._chains_query()
        query = query.filter(root.owner_user_id == owner_user_id)
        query = self._apply_filters(query, head, category=category, filing_id=filing_id, status=status)
        return paginate(query.order_by(root.created_at.desc()), page, limit, transform=_to_chain)

    def list_all_chains_for_filing(self, filing_id: UUID) -> List[DocumentChain]:
        query, root, head = self._chains_query()
        rows = query.filter(root.filing_id == filing_id).order_by(root.created_at).all()
        return [_to_chain(row) for row in rows]

    def list_all(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
        filing_id: Optional[UUID] = None,
        owner_user_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
    ) -> Page:
        """Every chain across owners (staff), newest first."""
        query, root, head = self._chains_query()
        if owner_user_id is not None:
            query = query.filter(root.owner_user_id == owner_user_id)
        query = self._apply_filters(query, head, category=category, filing_id=filing_id, status=status)
        return paginate(query.order_by(root.created_at.desc()), page, limit, transform=_to_chain)

    def review_queue(self, category: Optional[str] = None, page: int = 1, limit: int = DEFAULT_LIMIT) -> Page:
        """Chains whose current version awaits review, oldest first."""
        query, root, head = self._chains_query()
        query = self._apply_filters(query, head, category=category, status=DocumentStatus.PENDING.value)
        return paginate(query.order_by(head.created_at, head.id), page, limit, transform=_to_chain)

    # ─── Internals ────────────────────────────────────

    def _insert(self, document: Document) -> None:
        try:
            with self.db.begin_nested():
                self.db.add(document)
        except IntegrityError as e:
            if is_unique_violation(e, "uq_document_chain_version"):
                raise ConflictError("Document was modified concurrently, please retry")
            raise

    def _get(self, document_id: UUID) -> Document:
        document = self.db.query(Document).filter(
            Document.id == document_id,
            Document.deleted_at.is_(None),
        ).first()
        if not document:
            raise NotFoundError("Document not found")
        return document

    def _get_owned(self, owner_user_id: UUID, document_id: UUID) -> Document:
        document = self.db.query(Document).filter(
            Document.id == document_id,
            Document.owner_user_id == owner_user_id,
            Document.deleted_at.is_(None),
        ).first()
        if not document:
            raise NotFoundError("Document not found")
        return document

    def _chains_query(self):
        """Query yielding (root, head, version_count) per live chain."""
        root = aliased(Document, name="root")
        head = aliased(Document, name="head")
        stats = (
            self.db.query(
                Document.chain_root_id.label("chain_root_id"),
                func.count(Document.id).label("version_count"),
                func.max(Document.version).label("head_version"),
            )
            .filter(Document.deleted_at.is_(None))
            .group_by(Document.chain_root_id)
            .subquery()
        )
        query = (
            self.db.query(root, head, stats.c.version_count)
            .join(stats, stats.c.chain_root_id == root.chain_root_id)
            .join(
                head,
                and_(
                    head.chain_root_id == root.chain_root_id,
                    head.version == stats.c.head_version,
                ),
            )
            .filter(root.version == 1, root.deleted_at.is_(None))
        )
        return query, root, head

    @staticmethod
    def _apply_filters(query, head, category=None, filing_id=None, status=None):
        if category:
            query = query.filter(head.category == parse_category(category).value)
        if filing_id is not None:
            query = query.filter(head.filing_id == filing_id)
        if status:
            query = query.filter(head.status == status)
        return query


def _to_chain(row) -> DocumentChain:
    root, head, version_count = row
    return DocumentChain(root=root, head=head, version_count=version_count)
