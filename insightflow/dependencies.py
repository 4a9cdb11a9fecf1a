from fastapi import Depends, Header, Request

from insightflow.container import AppServices
from insightflow.modules.auth.application.session import UserSession
from insightflow.modules.auth.domain.models import UserIdentity


def get_services(request: Request) -> AppServices:
    return request.app.state.services


async def get_current_session(
    x_session_token: str | None = Header(default=None),
    services: AppServices = Depends(get_services),
) -> UserSession:
    return services.sessions.get(x_session_token)


async def get_current_user(session: UserSession = Depends(get_current_session)) -> UserIdentity:
    return session.user
