"""Domain events raised by the filing and document services.

Services never notify anyone directly. They build one of the events below
and hand it to the outbox, which stores it in the same transaction as the
mutation. The notification dispatcher later turns each stored event back
into an instance (from_payload) and renders its notifications.

Identifiers are carried as strings so payloads are plain JSON.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import ClassVar, Dict, List, Optional, Type

from .documents.categories import category_label
from .filings.filing_status import status_label


class NotificationType:
    FILING_UPDATE = "filing_update"
    DOCUMENT_STATUS = "document_status"
    DOCUMENT_REQUEST = "document_request"


@dataclass(frozen=True)
class NotificationMessage:
    """One rendered notification for one recipient."""
    user_id: str
    type: str
    title: str
    body: str
    link: Optional[str] = None


@dataclass(frozen=True)
class DomainEvent(ABC):
    event_type: ClassVar[str] = "domain_event"

    @abstractmethod
    def notifications(self) -> List[NotificationMessage]:
        """Render the in-app notifications this event produces."""

    def to_payload(self) -> dict:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: dict) -> "DomainEvent":
        return cls(**payload)


@dataclass(frozen=True)
class FilingInitiated(DomainEvent):
    event_type: ClassVar[str] = "filing.initiated"

    filing_id: str
    owner_user_id: str
    assessment_year: str
    service_type: str

    def notifications(self) -> List[NotificationMessage]:
        return [
            NotificationMessage(
                user_id=self.owner_user_id,
                type=NotificationType.FILING_UPDATE,
                title="Filing Initiated",
                body=f"Your {self.service_type} tax filing for {self.assessment_year} has been created.",
                link=f"/filings/{self.filing_id}",
            )
        ]


@dataclass(frozen=True)
class FilingStatusChanged(DomainEvent):
    event_type: ClassVar[str] = "filing.status_changed"

    filing_id: str
    owner_user_id: str
    assessment_year: str
    from_status: str
    to_status: str
    actor_id: Optional[str] = None
    note: Optional[str] = None

    def notifications(self) -> List[NotificationMessage]:
        body = f"Your filing for {self.assessment_year} has been updated: {status_label(self.to_status)}"
        if self.note:
            body += f". {self.note}"
        return [
            NotificationMessage(
                user_id=self.owner_user_id,
                type=NotificationType.FILING_UPDATE,
                title="Filing Status Updated",
                body=body,
                link=f"/filings/{self.filing_id}",
            )
        ]


@dataclass(frozen=True)
class AdvisorAssigned(DomainEvent):
    event_type: ClassVar[str] = "filing.advisor_assigned"

    filing_id: str
    owner_user_id: str
    advisor_user_id: str
    assessment_year: str
    service_type: str
    actor_id: Optional[str] = None

    def notifications(self) -> List[NotificationMessage]:
        return [
            NotificationMessage(
                user_id=self.owner_user_id,
                type=NotificationType.FILING_UPDATE,
                title="Advisor Assigned",
                body=f"A tax advisor has been assigned to your filing for {self.assessment_year}.",
                link=f"/filings/{self.filing_id}",
            ),
            NotificationMessage(
                user_id=self.advisor_user_id,
                type=NotificationType.FILING_UPDATE,
                title="New Filing Assignment",
                body=f"You have been assigned a {self.service_type} filing for {self.assessment_year}.",
                link=f"/admin/filings/{self.filing_id}",
            ),
        ]


_REVIEW_TITLES = {
    "ACCEPTED": "Document Approved",
    "REJECTED": "Document Rejected",
    "NEEDS_REUPLOAD": "Document Needs Re-upload",
}


@dataclass(frozen=True)
class DocumentReviewed(DomainEvent):
    event_type: ClassVar[str] = "document.reviewed"

    document_id: str
    owner_user_id: str
    category: str
    old_status: str
    new_status: str
    reviewer_id: Optional[str] = None
    note: Optional[str] = None

    def notifications(self) -> List[NotificationMessage]:
        if self.new_status == "ACCEPTED":
            body = f"Your {category_label(self.category)} document has been accepted."
        else:
            body = f"Your {category_label(self.category)} document: {self.note}"
        return [
            NotificationMessage(
                user_id=self.owner_user_id,
                type=NotificationType.DOCUMENT_STATUS,
                title=_REVIEW_TITLES.get(self.new_status, "Document Update"),
                body=body,
                link=f"/documents/{self.document_id}",
            )
        ]


@dataclass(frozen=True)
class DocumentRequested(DomainEvent):
    event_type: ClassVar[str] = "document.requested"

    target_user_id: str
    category: str
    note: str
    filing_id: Optional[str] = None
    requester_id: Optional[str] = None

    def notifications(self) -> List[NotificationMessage]:
        link = f"/filings/{self.filing_id}/documents" if self.filing_id else "/documents"
        return [
            NotificationMessage(
                user_id=self.target_user_id,
                type=NotificationType.DOCUMENT_REQUEST,
                title="Document Requested",
                body=f"Please upload: {category_label(self.category)}. {self.note}",
                link=link,
            )
        ]


EVENT_TYPES: Dict[str, Type[DomainEvent]] = {
    cls.event_type: cls
    for cls in (
        FilingInitiated,
        FilingStatusChanged,
        AdvisorAssigned,
        DocumentReviewed,
        DocumentRequested,
    )
}


def event_from_payload(event_type: str, payload: dict) -> DomainEvent:
    """Rebuild a stored event.

    Raises:
        ValueError: If event_type is not a known event
    """
    try:
        cls = EVENT_TYPES[event_type]
    except KeyError:
        raise ValueError(f"Unknown event type: {event_type}")
    return cls.from_payload(payload)
