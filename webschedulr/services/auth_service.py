from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..models.user import User
from ..core.security import verify_password, get_password_hash, create_user_token
from ..schemas.auth import UserLogin, TokenResponse
from ..schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserCreate) -> User:
        """Create a user account with a hashed password."""
        existing_user = self.db.query(User).filter(
            (User.email == user_data.email) | (User.username == user_data.username)
        ).first()

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email or username already registered"
            )

        new_user = User(
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            email=user_data.email,
            username=user_data.username,
            password_hash=get_password_hash(user_data.password),
            is_admin=user_data.is_admin,
        )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        logger.info(f"Created user {new_user.username}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        logger.info(f"Attempting login for user: {login_data.username}")

        user = self.db.query(User).filter(
            User.username == login_data.username
        ).first()

        if not user:
            logger.info(f"Login failed: User {login_data.username} not found")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password"
            )

        if not verify_password(login_data.password, user.password_hash):
            logger.info(f"Login failed: Invalid password for user {login_data.username}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password"
            )

        token = create_user_token(user.id, user.username, user.email, user.is_admin)
        logger.info(f"Login successful for user {login_data.username}")

        return TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            user=UserResponse.model_validate(user)
        )
