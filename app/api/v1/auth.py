"""Authentication endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.deps import get_auth_service, get_login_rate_limiter
from app.core.rate_limit import LoginRateLimiter
from app.core.security import (
    SessionPrincipal,
    clear_auth_cookies,
    require_auth,
    require_csrf,
    set_auth_cookies,
)
from app.schemas.auth import (
    LoginRequest,
    MessageResponse,
    PasswordUpdateRequest,
    SessionResponse,
    UserSummary,
)
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=SessionResponse)
async def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login with username and password; sets the session and CSRF cookies."""
    await limiter(request)

    result = await auth_service.login(body.username, body.password)
    set_auth_cookies(response, result["token"], result["csrf_token"])
    return result["principal"].to_dict()


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout():
    """Clear session cookies. The token itself stays valid until it expires."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_auth_cookies(response)
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(principal: SessionPrincipal = Depends(require_auth)):
    """Current principal."""
    return principal.to_dict()


@router.get("/users", response_model=List[UserSummary])
async def list_users(auth_service: AuthService = Depends(get_auth_service)):
    """Technician list for the login screen."""
    return await auth_service.list_users()


@router.put("/users/{username}/password", response_model=MessageResponse)
async def update_password(
    username: str,
    body: PasswordUpdateRequest,
    principal: SessionPrincipal = Depends(require_csrf),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Change a technician's password.

    Admin sessions may change any password. Other sessions must authorize
    the change with an admin's credentials in the override fields.
    """
    updated = await auth_service.update_password(
        principal,
        username,
        body.newPassword,
        override_username=body.overrideUsername,
        override_password=body.overridePassword,
    )
    return {"message": f"Password updated for {updated}"}
