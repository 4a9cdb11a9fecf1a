from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

UserRole = Literal["ADMIN", "EDITOR", "VIEWER"]
UserStatus = Literal["Active", "Inactive"]


class UserIdentity(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole = "VIEWER"
    status: UserStatus = "Active"
    avatar: str | None = None


def fallback_identity(user_id: str, email: str) -> UserIdentity:
    """Identity used when no profile is stored: the name is the local part of the email."""
    local_part = email.split("@", 1)[0] or email
    return UserIdentity(id=user_id, email=email, name=local_part)
