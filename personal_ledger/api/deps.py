"""
Shared request dependencies.

Authentication lives in front of this service; by the time a
request arrives here the caller's id has been put in the
X-User-Id header.
"""

import uuid

from fastapi import Header, HTTPException


def get_current_user_id(
    x_user_id: str | None = Header(default=None),
) -> uuid.UUID:
    """Return the authenticated user's id, or reject the request."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header")
