"""
Auth API Endpoints

Admin login, session state and logout.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from backoffice.auth.sessions import AdminSession, AdminView, InvalidCredentialsError
from backoffice.serving.api.dependencies import Services, get_services, require_session

router = APIRouter()


class LoginRequest(BaseModel):
    """Login form"""
    email: str = ""
    password: str = ""


class SessionResponse(BaseModel):
    """Session state as the client sees it"""
    authenticated: bool
    email: str
    last_view: Optional[AdminView]
    redirect_to: AdminView

    @classmethod
    def from_session(cls, session: AdminSession) -> "SessionResponse":
        return cls(
            authenticated=session.authenticated,
            email=session.email,
            last_view=session.last_view,
            redirect_to=session.redirect_to,
        )


class LoginResponse(BaseModel):
    """Issued bearer token"""
    access_token: str
    token_type: str = "bearer"
    session: SessionResponse


class LastViewRequest(BaseModel):
    view: AdminView


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    services: Services = Depends(get_services),
) -> LoginResponse:
    """Exchange admin credentials for a bearer token."""
    if not payload.email.strip() or not payload.password:
        raise HTTPException(status_code=422, detail="Please enter email and password.")

    try:
        session, token = await services.sessions.login(payload.email, payload.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return LoginResponse(access_token=token, session=SessionResponse.from_session(session))


@router.get("/session", response_model=SessionResponse)
async def get_session(session: AdminSession = Depends(require_session)) -> SessionResponse:
    """Current session and the view to restore on reload."""
    return SessionResponse.from_session(session)


@router.put("/session/last-view", response_model=SessionResponse)
async def set_last_view(
    payload: LastViewRequest,
    session: AdminSession = Depends(require_session),
    services: Services = Depends(get_services),
) -> SessionResponse:
    """Remember the last visited view."""
    updated = await services.sessions.record_view(session, payload.view)
    return SessionResponse.from_session(updated)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: AdminSession = Depends(require_session),
    services: Services = Depends(get_services),
) -> None:
    """End the session; its token stops working immediately."""
    await services.sessions.logout(session)
