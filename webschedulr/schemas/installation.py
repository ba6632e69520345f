from pydantic import BaseModel, Field, field_validator
from typing import Optional


class AdminAccount(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)


class CompanyInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class DatabaseConfig(BaseModel):
    """Connection descriptor, tagged by ``type`` ("mysql" or "sqlite")."""

    type: str
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    database: Optional[str] = None
    filename: Optional[str] = None
    reinstall: bool = False

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.strip().lower()


class InstallationRequest(BaseModel):
    admin: AdminAccount
    company: Optional[CompanyInfo] = None
    database: DatabaseConfig


class InstallationStatus(BaseModel):
    installed: bool


class ConnectionTestResult(BaseModel):
    success: bool
    message: str


class InstallationResponse(BaseModel):
    success: bool = True
    message: str
    envUpdated: bool
    redirect: str
