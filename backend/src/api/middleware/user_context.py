"""Request-scoped user partition helpers."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Header

from ...services.config import get_config


def get_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-Id")] = None,
) -> str:
    """
    Return the owner partition for the request.

    This only selects whose notes are read and written; it is not
    authentication. Requests without the header use the configured default.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_config().default_user_id


__all__ = ["get_user_id"]
