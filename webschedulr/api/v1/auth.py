from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ...core.config import get_settings
from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import get_current_user, get_token_optional, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import UserLogin, TokenResponse, AuthCheck
from ...schemas.user import UserResponse
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)
    return auth_service.authenticate_user(login_data)


@router.get("/check", response_model=AuthCheck)
async def check_authentication(
    token_payload: Optional[TokenPayload] = Depends(get_token_optional)
):
    """Report whether the request carries a valid access token."""
    if token_payload is None:
        return AuthCheck(authenticated=False)

    return AuthCheck(
        authenticated=True,
        user_id=token_payload.user_id,
        username=token_payload.username,
        is_admin=token_payload.is_admin
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.get("/status")
async def auth_status():
    """Auth subsystem status; never exposes the secret itself."""
    settings = get_settings()
    return {
        "success": True,
        "message": "Auth routes are working",
        "env": {
            "dbType": settings.DB_TYPE or "not set",
            "dbFilename": settings.DB_FILENAME if settings.DB_TYPE == "sqlite" else "not set",
            "jwtSecret": "set" if settings.SECRET_KEY else "not set"
        }
    }
