"""Security utilities: password hashing, session tokens, CSRF, RBAC."""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.utils.constants import (
    AUTH_COOKIE_NAME,
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    SAFE_METHODS,
)

logger = logging.getLogger(__name__)

# PBKDF2 keeps memory use flat; the hash string carries rounds and salt,
# so raising PASSWORD_HASH_ROUNDS later still verifies older hashes.
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=settings.PASSWORD_HASH_ROUNDS,
)


class Role(str, Enum):
    """User roles."""

    ADMIN = "admin"
    USER = "user"


# Permission definitions
ROLE_PERMISSIONS = {
    Role.ADMIN: [
        "items:create",
        "items:read",
        "items:update",
        "items:delete",
        "items:backup",
        "admin:access",
    ],
    Role.USER: [
        "items:create",
        "items:read",
        "items:update",
    ],
}


@dataclass(frozen=True)
class SessionPrincipal:
    """Identity reconstructed from a verified session token."""

    username: str
    role: str
    display_name: str
    csrf_token: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def to_dict(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "role": self.role,
            "displayName": self.display_name,
            "csrfToken": self.csrf_token,
        }


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def get_password_hash(password: str) -> str:
    """Hash a password with a fresh random salt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash is malformed")
        return False


def dummy_verify_password() -> None:
    """Spend one hash verification so unknown usernames cost the same as known ones."""
    pwd_context.dummy_verify()


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    return secrets.token_hex(24)


def create_session_token(
    username: str,
    role: str,
    display_name: str,
    csrf_token: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed, time-limited session token."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": username,
        "username": username,
        "role": role,
        "displayName": display_name,
        "csrfToken": csrf_token,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.AUTH_TOKEN_SECRET, algorithm=settings.ALGORITHM)


def verify_session_token(token: Optional[str]) -> Optional[SessionPrincipal]:
    """
    Verify signature and expiry of a session token.

    Returns None for every kind of failure so callers cannot tell a bad
    signature from an expired or malformed token.
    """
    if not token or not isinstance(token, str):
        return None

    try:
        payload: Dict[str, Any] = jwt.decode(
            token,
            settings.AUTH_TOKEN_SECRET,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None

    username = payload.get("username")
    role = payload.get("role")
    csrf_token = payload.get("csrfToken")
    if not username or not role or not csrf_token:
        return None

    return SessionPrincipal(
        username=username,
        role=role,
        display_name=payload.get("displayName") or username,
        csrf_token=csrf_token,
    )


def set_auth_cookies(response: Response, token: str, csrf_token: str) -> None:
    max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    secure = settings.is_production

    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )
    # Readable by script so the frontend can echo it in the CSRF header
    response.set_cookie(
        CSRF_COOKIE_NAME,
        csrf_token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=False,
        samesite="strict",
    )


def clear_auth_cookies(response: Response) -> None:
    secure = settings.is_production
    response.delete_cookie(AUTH_COOKIE_NAME, path="/", secure=secure, httponly=True, samesite="strict")
    response.delete_cookie(CSRF_COOKIE_NAME, path="/", secure=secure, httponly=False, samesite="strict")


# ---------------------------------------------------------------------------
# CSRF
# ---------------------------------------------------------------------------

def tokens_match(given: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison of two token strings."""
    if not given or not expected:
        return False
    return hmac.compare_digest(str(given).encode("utf-8"), str(expected).encode("utf-8"))


def csrf_is_valid(
    method: str,
    header_token: Optional[str],
    cookie_token: Optional[str],
    principal: Optional[SessionPrincipal],
) -> bool:
    """Header, cookie and session-embedded token must all agree on unsafe methods."""
    if method.upper() in SAFE_METHODS:
        return True
    expected = principal.csrf_token if principal else None
    header_ok = tokens_match(header_token, expected)
    cookie_ok = tokens_match(cookie_token, expected)
    return header_ok and cookie_ok


# ---------------------------------------------------------------------------
# RBAC
# ---------------------------------------------------------------------------

def check_permission(role: Optional[str], permission: str) -> bool:
    """Check if a role has a specific permission."""
    try:
        user_role = Role(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(user_role, [])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_optional_principal(request: Request) -> Optional[SessionPrincipal]:
    """Principal from the session cookie, or None when anonymous."""
    if not hasattr(request.state, "principal"):
        request.state.principal = verify_session_token(request.cookies.get(AUTH_COOKIE_NAME))
    return request.state.principal


def require_auth(
    principal: Optional[SessionPrincipal] = Depends(get_optional_principal),
) -> SessionPrincipal:
    """Reject anonymous requests."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return principal


def require_csrf(
    request: Request,
    principal: SessionPrincipal = Depends(require_auth),
) -> SessionPrincipal:
    """Enforce the CSRF double-submit check on unsafe methods."""
    if not csrf_is_valid(
        request.method,
        request.headers.get(CSRF_HEADER_NAME),
        request.cookies.get(CSRF_COOKIE_NAME),
        principal,
    ):
        logger.warning(f"CSRF validation failed for {principal.username} on {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="CSRF validation failed",
        )
    return principal


def require_permission(permission: str):
    """Dependency to check if the session's role has a specific permission."""

    async def permission_checker(principal: SessionPrincipal = Depends(require_auth)) -> SessionPrincipal:
        if not check_permission(principal.role, permission):
            logger.warning(f"Permission denied: {principal.username} ({principal.role}) lacks {permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
        return principal

    return permission_checker
