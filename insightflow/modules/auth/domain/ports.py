from __future__ import annotations

from typing import Protocol

from insightflow.modules.auth.domain.models import UserIdentity


class ProfileRepositoryPort(Protocol):
    def get(self, user_id: str) -> UserIdentity | None:
        raise NotImplementedError
