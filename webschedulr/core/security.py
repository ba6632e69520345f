from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import secrets
import string

from .config import get_settings

# Password hashing; cost 10 is roughly 100ms on commodity hardware
BCRYPT_ROUNDS = 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# JWT Security
security = HTTPBearer()

SECRET_KEY_LENGTH = 32
SECRET_KEY_ALPHABET = string.ascii_letters + string.digits


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
    exp: Optional[int] = None
    token_type: Optional[str] = None

    @property
    def user_id(self) -> Optional[int]:
        try:
            return int(self.sub) if self.sub is not None else None
        except ValueError:
            return None


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def generate_secret_key(length: int = SECRET_KEY_LENGTH) -> str:
    """Generate an alphanumeric secret used to sign tokens."""
    return "".join(secrets.choice(SECRET_KEY_ALPHABET) for _ in range(length))


# JWT utilities
def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    settings = get_settings()
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not configured")

    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "token_type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify signature and expiry of a JWT and decode its payload."""
    settings = get_settings()
    if not settings.SECRET_KEY:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )

        return TokenPayload(**payload)

    except JWTError:
        return None


def create_user_token(user_id: int, username: str, email: str, is_admin: bool) -> Token:
    """Create an access token for an authenticated user."""
    token_data = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "is_admin": is_admin,
    }

    return Token(
        access_token=create_access_token(token_data),
        expires_in=get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )


# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
