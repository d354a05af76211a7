"""Domain error taxonomy.

Every failure raised by the core is one of four kinds. The HTTP layer maps
them to a structured ``{"error": kind, "message": message}`` body; nothing
else in the core knows about status codes beyond the attribute carried here.
"""


class FilingDeskError(Exception):
    """Base class for all domain errors raised by core services."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class NotFoundError(FilingDeskError):
    """Entity missing, or not owned by the caller."""

    kind = "not_found"
    status_code = 404


class ConflictError(FilingDeskError):
    """Uniqueness violation or lost compare-and-swap race."""

    kind = "conflict"
    status_code = 409


class BadRequestError(FilingDeskError):
    """Input or state precondition not met."""

    kind = "bad_request"
    status_code = 400


class ForbiddenError(FilingDeskError):
    """Mutation of an immutable entity or cross-owner access."""

    kind = "forbidden"
    status_code = 403
