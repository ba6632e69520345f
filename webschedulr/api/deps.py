from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging
import redis

from ..core.config import get_settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, TokenPayload
)
from ..models.user import User
from ..services.installation_service import InstallationService

logger = logging.getLogger(__name__)


async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token = credentials.credentials

    # Signature and expiry are checked against the installed secret
    token_payload = verify_token(token)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload


async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if token_payload.user_id is None:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.user_id).first()
    if not user:
        raise AuthenticationError("User not found")

    return user


async def get_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Require admin role."""
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


# Optional authentication (for endpoints that report auth state)
async def get_token_optional(request: Request) -> Optional[TokenPayload]:
    """Return the verified token payload if one was sent, None otherwise."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ", 1)[1]
    token_payload = verify_token(token)
    if not token_payload or token_payload.token_type != "access":
        logger.info("Invalid token during auth check")
        return None
    return token_payload


# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for authentication endpoints."""
    settings = get_settings()
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    try:
        current_requests = redis_client.get(key)
        if current_requests is None:
            redis_client.setex(key, 3600, 1)  # 1 hour window
        else:
            if int(current_requests) >= settings.LOGIN_RATE_LIMIT:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Too many requests. Please try again later."
                )
            redis_client.incr(key)
    except redis.RedisError as exc:
        # Fail open when Redis is unreachable
        logger.warning(f"Rate limiting unavailable: {exc}")


def get_installation_service() -> InstallationService:
    return InstallationService()


async def require_admin_when_installed(
    token_payload: Optional[TokenPayload] = Depends(get_token_optional),
    service: InstallationService = Depends(get_installation_service)
) -> None:
    """Once installed, only an admin may run the installation again."""
    if not service.status().installed:
        return

    if token_payload is None:
        raise AuthenticationError("Application is already installed. Log in as an admin to reinstall.")
    if not token_payload.is_admin:
        raise AuthorizationError("Admin access required")
