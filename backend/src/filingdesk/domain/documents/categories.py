"""Document categories and the per-service-type checklist map."""

from enum import Enum
from typing import Dict, List

from ..filings.service_type import ServiceType


class DocumentCategory(str, Enum):
    """Closed set of identity, tax, financial and legal document kinds."""
    NID = "NID"
    TIN_CERTIFICATE = "TIN_CERTIFICATE"
    SALARY_CERTIFICATE = "SALARY_CERTIFICATE"
    BANK_STATEMENT = "BANK_STATEMENT"
    RENTAL_AGREEMENT = "RENTAL_AGREEMENT"
    INVESTMENT_PROOF = "INVESTMENT_PROOF"
    PREVIOUS_RETURN = "PREVIOUS_RETURN"
    TRADE_LICENSE = "TRADE_LICENSE"
    ASSET_STATEMENT = "ASSET_STATEMENT"
    FILED_RETURN = "FILED_RETURN"
    ACKNOWLEDGEMENT = "ACKNOWLEDGEMENT"
    OTHER = "OTHER"


# Ordered required categories per service type
CHECKLIST_MAP: Dict[ServiceType, List[DocumentCategory]] = {
    ServiceType.INDIVIDUAL: [
        DocumentCategory.NID,
        DocumentCategory.TIN_CERTIFICATE,
        DocumentCategory.SALARY_CERTIFICATE,
        DocumentCategory.BANK_STATEMENT,
    ],
    ServiceType.CORPORATE: [
        DocumentCategory.TRADE_LICENSE,
        DocumentCategory.TIN_CERTIFICATE,
        DocumentCategory.BANK_STATEMENT,
        DocumentCategory.ASSET_STATEMENT,
    ],
    ServiceType.NRB: [
        DocumentCategory.NID,
        DocumentCategory.TIN_CERTIFICATE,
        DocumentCategory.BANK_STATEMENT,
        DocumentCategory.ASSET_STATEMENT,
    ],
}


def required_categories(service_type: ServiceType) -> List[DocumentCategory]:
    return list(CHECKLIST_MAP[ServiceType(service_type)])


def category_label(category: DocumentCategory) -> str:
    return DocumentCategory(category).value.replace("_", " ")
