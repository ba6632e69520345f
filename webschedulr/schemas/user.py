from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", max_length=255)
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=7)
    is_admin: bool = False


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    username: str
    is_admin: bool
    created_at: Optional[datetime] = None
