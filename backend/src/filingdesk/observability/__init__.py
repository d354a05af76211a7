"""Logging and request correlation"""

from .logging_config import configure_logging, JSONFormatter, RequestIDFilter
from .middleware import RequestIDMiddleware
from .request_id import bind_actor, get_actor_id, get_request_id, set_request_id, generate_request_id

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "RequestIDFilter",
    "RequestIDMiddleware",
    "bind_actor",
    "get_actor_id",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
]
