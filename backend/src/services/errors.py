"""Domain errors raised by the store and the graph services."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class GraphError(Exception):
    """Base error carrying the fields of the HTTP error envelope."""

    error = "graph_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class NotFoundError(GraphError):
    """A topic, note or link does not exist for the user."""

    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidReferenceError(GraphError):
    """Self-referential prerequisite, malformed id or unknown referenced entity."""

    error = "invalid_reference"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(GraphError):
    """The requested edge or link already exists."""

    error = "conflict"
    status_code = status.HTTP_409_CONFLICT


class UpstreamFailureError(GraphError):
    """The underlying database could not be reached or failed mid-query."""

    error = "upstream_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


__all__ = [
    "GraphError",
    "NotFoundError",
    "InvalidReferenceError",
    "ConflictError",
    "UpstreamFailureError",
]
