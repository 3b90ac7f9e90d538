"""
Acting‑user identity.

The gateway in front of this service authenticates the caller and forwards
``X-User-Id`` / ``X-User-Role``; these dependencies only read them.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from app.config import settings


class Actor(BaseModel):
    user_id: str
    role: str = "user"

    @property
    def is_reviewer(self) -> bool:
        return self.role in settings.REVIEWER_ROLES


def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return Actor(user_id=x_user_id.strip(), role=(x_user_role or "user").strip().lower())


def require_reviewer(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_reviewer:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Reviewer role required")
    return actor
