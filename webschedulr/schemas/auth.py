from pydantic import BaseModel
from typing import Optional

from .user import UserResponse


class UserLogin(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    success: bool = True
    message: str = "Authentication successful"
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class AuthCheck(BaseModel):
    authenticated: bool
    user_id: Optional[int] = None
    username: Optional[str] = None
    is_admin: Optional[bool] = None
