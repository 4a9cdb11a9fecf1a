from fastapi import APIRouter, Depends, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_session, get_services
from insightflow.modules.auth.application.session import UserSession
from insightflow.schemas import SessionResponse, SessionStartRequest

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    request: SessionStartRequest,
    services: AppServices = Depends(get_services),
):
    """Open a session for a user already authenticated upstream."""
    identity = services.identities.resolve(request.user_id, request.email)
    session = services.sessions.start(identity)
    return SessionResponse(token=session.token, user=session.user)


@router.get("/current", response_model=SessionResponse)
async def current_session(session: UserSession = Depends(get_current_session)):
    return SessionResponse(token=session.token, user=session.user)


@router.delete("/current", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(
    session: UserSession = Depends(get_current_session),
    services: AppServices = Depends(get_services),
):
    services.sessions.end(session.token)
