from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from insightflow import models
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.auth.domain.ports import ProfileRepositoryPort


class SqlAlchemyProfileRepository(ProfileRepositoryPort):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, user_id: str) -> UserIdentity | None:
        with self._session_factory() as db:
            row = db.get(models.Profile, user_id)
            if row is None:
                return None
            return UserIdentity(
                id=row.id,
                email=row.email,
                name=row.name,
                role=row.role or "VIEWER",
                status=row.status or "Active",
                avatar=row.avatar_url,
            )
