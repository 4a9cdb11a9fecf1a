from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone

from insightflow.errors import SessionRequiredError
from insightflow.modules.auth.domain.models import UserIdentity, fallback_identity
from insightflow.modules.auth.domain.ports import ProfileRepositoryPort

logger = logging.getLogger("uvicorn.error")


class IdentityResolver:
    def __init__(self, profiles: ProfileRepositoryPort) -> None:
        self._profiles = profiles

    def resolve(self, user_id: str, email: str) -> UserIdentity:
        """Stored profile for the user, or a fallback identity when the lookup misses or fails."""
        try:
            profile = self._profiles.get(user_id)
        except Exception as exc:
            logger.warning(
                "insightflow.profile_lookup_failed | %s",
                {"user_id": user_id, "error": str(exc)},
            )
            profile = None
        if profile is None:
            return fallback_identity(user_id, email)
        return profile


@dataclass(slots=True)
class UserSession:
    token: str
    user: UserIdentity
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    def __init__(self) -> None:
        self._sessions: dict[str, UserSession] = {}

    def start(self, identity: UserIdentity) -> UserSession:
        session = UserSession(token=secrets.token_urlsafe(32), user=identity)
        self._sessions[session.token] = session
        return session

    def get(self, token: str | None) -> UserSession:
        session = self._sessions.get(token) if token else None
        if session is None:
            raise SessionRequiredError()
        return session

    def end(self, token: str) -> None:
        if self._sessions.pop(token, None) is None:
            raise SessionRequiredError()
