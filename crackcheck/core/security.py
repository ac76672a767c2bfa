from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from .config import settings

ALGORITHM = "HS256"
# Clerk signs session tokens with RS256; its PEM key is configured as CLERK_JWT_KEY
PROVIDER_ALGORITHM = "RS256"
SESSION_TOKEN_EXPIRE_MINUTES = 60 * 24  # 1 day


def create_session_token(claims: dict, expires_minutes: int = SESSION_TOKEN_EXPIRE_MINUTES) -> str:
    """HS256 session token for local development and tests (production tokens come from Clerk)."""
    to_encode = claims.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict | None:
    try:
        if settings.clerk_jwt_key:
            return jwt.decode(
                token,
                settings.clerk_jwt_key,
                algorithms=[PROVIDER_ALGORITHM],
                options={"verify_aud": False},
            )
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
