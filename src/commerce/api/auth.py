"""Caller identity for the Commerce API.

Authentication happens upstream; the gateway in front of this service
forwards the authenticated user as ``X-User-Id`` and ``X-User-Role`` headers.
"""

from typing import Literal

from fastapi import Depends, Header
from pydantic import BaseModel, Field

from commerce.errors import UnauthorizedError

Role = Literal["user", "admin"]


class Principal(BaseModel):
    uid: str = Field(..., description="Authenticated user id")
    role: Role = Field("user", description="user | admin")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal:
    if not x_user_id:
        raise UnauthorizedError("Not authorized to access this route")

    role = (x_user_role or "user").lower()
    if role not in ("user", "admin"):
        raise UnauthorizedError(f"User role {role} is not authorized to access this route")
    return Principal(uid=x_user_id, role=role)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise UnauthorizedError(f"User role {principal.role} is not authorized to access this route")
    return principal
