"""FastAPI dependencies and error handling shared by the routes."""

from .error_handlers import (
    graph_exception_handler,
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)
from .user_context import get_user_id

__all__ = [
    "get_user_id",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "graph_exception_handler",
    "internal_exception_handler",
]
