"""Filing service types and assessment year format."""

import re
from enum import Enum

from ...errors import BadRequestError


class ServiceType(str, Enum):
    """Kind of engagement. Drives the required-document checklist."""
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"
    NRB = "nrb"  # non-resident


ASSESSMENT_YEAR_PATTERN = re.compile(r"^\d{4}-\d{4}$")


def parse_service_type(value: str) -> ServiceType:
    """Parse a service type, rejecting anything outside the known set.

    Raises:
        BadRequestError: If the value is not a known service type
    """
    try:
        return ServiceType(value.strip().lower())
    except (ValueError, AttributeError):
        allowed = ", ".join(s.value for s in ServiceType)
        raise BadRequestError(f"Unknown service type '{value}'. Expected one of: {allowed}")


def validate_assessment_year(value: str) -> str:
    """Validate the YYYY-YYYY assessment year format.

    Raises:
        BadRequestError: If the format does not match
    """
    if not value or not ASSESSMENT_YEAR_PATTERN.match(value):
        raise BadRequestError("Assessment year must be in format YYYY-YYYY")
    return value
