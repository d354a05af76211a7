"""Per-request correlation context.

Two ContextVars follow a request through threadpool endpoints and into log
records: the request id (from X-Request-ID or generated) and the id of the
authenticated user acting on filings and documents.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
actor_id_var: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    return request_id_var.set(request_id)


def get_actor_id() -> Optional[str]:
    return actor_id_var.get()


def bind_actor(user_id) -> Token:
    """Attach the authenticated user to subsequent log lines."""
    return actor_id_var.set(str(user_id) if user_id else None)
