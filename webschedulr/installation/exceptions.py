"""Failure taxonomy for the installation workflow.

Every error carries a stable ``kind`` (returned to clients as ``code``), a
user-facing ``message`` and an optional ``detail``. None of them may include
database credentials.
"""
from fastapi import status


class InstallationError(Exception):
    kind = "InstallationError"
    message = "Installation failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "", message: str = None):
        super().__init__(detail or self.message)
        self.detail = detail
        if message is not None:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.detail, "code": self.kind}


class ValidationError(InstallationError):
    kind = "ValidationError"
    message = "Invalid installation data"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAdminData(ValidationError):
    kind = "InvalidAdminData"
    message = "Invalid admin data"


class UnsupportedBackend(InstallationError):
    kind = "UnsupportedBackend"
    message = "Unsupported database type"
    status_code = status.HTTP_400_BAD_REQUEST


class ConnectionFailed(InstallationError):
    kind = "ConnectionFailed"
    message = "Could not connect to the database"
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(InstallationError):
    kind = "PermissionDenied"
    message = "The database location is not writable"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyInstalled(InstallationError):
    kind = "AlreadyInstalled"
    message = "Database already installed"
    status_code = status.HTTP_409_CONFLICT


class SchemaInstallFailed(InstallationError):
    kind = "SchemaInstallFailed"
    message = "Database installation failed"


class PersistFailed(InstallationError):
    kind = "PersistFailed"
    message = "Settings file could not be written"
