from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from crackcheck.core.config import settings
from crackcheck.core.security import decode_session_token

security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    email: str | None = None


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_session_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session token.",
        )
    return CurrentUser(id=str(payload["sub"]), email=payload.get("email"))


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser | None:
    if not credentials:
        return None
    payload = decode_session_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        return None
    return CurrentUser(id=str(payload["sub"]), email=payload.get("email"))


def is_admin(user: CurrentUser | None) -> bool:
    """Only the configured ADMIN_EMAIL is an admin; no config means nobody is."""
    admin_email = settings.admin_email.lower()
    if not user or not user.email or not admin_email:
        return False
    return user.email.strip().lower() == admin_email


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
