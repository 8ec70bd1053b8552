"""Admin authentication for maintenance routes."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from ..core import ADMIN_TOKEN


def require_admin(authorization: Optional[str] = Header(None)) -> None:
    expected = f"Bearer {ADMIN_TOKEN}"
    if authorization != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = ["require_admin"]
