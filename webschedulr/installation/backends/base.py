"""Common contract and shared steps for backend-specific installers.

A backend knows how to ``probe`` a connection descriptor without touching
any state, and how to ``install`` the schema plus the admin and company
rows for its database kind as a single unit of work.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
import logging

from pydantic import BaseModel
from sqlalchemy import func, inspect, select
from sqlalchemy.engine import Connection

from ...core.config import Settings
from ...core.database import Base
from ...core.security import get_password_hash
from ...models.appointment import Appointment
from ...models.company import Company, DEFAULT_COMPANY_NAME
from ...models.user import User
from ...schemas.installation import AdminAccount, CompanyInfo, DatabaseConfig
from ..exceptions import AlreadyInstalled, ConnectionFailed, ValidationError

logger = logging.getLogger(__name__)

# Tables created by the installer, in dependency order
INSTALL_TABLES = [User.__table__, Company.__table__, Appointment.__table__]

# Descriptor fields written verbatim into the settings artifact
CONNECTION_FIELDS = ("host", "username", "password", "database", "filename")


class ProbeResult(BaseModel):
    ok: bool
    message: str


class InstallResult(BaseModel):
    ok: bool = True
    message: str
    redirect_hint: str


class SchemaState(str, Enum):
    NO_SCHEMA = "no_schema"
    EMPTY_SCHEMA = "empty_schema"
    HAS_DATA = "has_data"


class InstallerBackend(ABC):
    """Probe and install strategy for one database kind."""

    kind: str = ""
    display_name: str = ""
    # Raised by the orchestrator when probe() reports a failure
    probe_error = ConnectionFailed

    def __init__(self, settings: Settings):
        self.settings = settings

    def validate_config(self, config: DatabaseConfig) -> None:
        """Reject descriptors that cannot be used, before any I/O."""
        # The settings loader expands ${VAR} even inside quoted values
        for field in CONNECTION_FIELDS:
            value = getattr(config, field)
            if value and "${" in value:
                raise ValidationError(
                    f"Database {field} may not contain the sequence '${{'"
                )

    @abstractmethod
    def probe(self, config: DatabaseConfig) -> ProbeResult:
        """Check connectivity or writability without mutating anything."""

    @abstractmethod
    def install(
        self, admin: AdminAccount, company: CompanyInfo, config: DatabaseConfig
    ) -> InstallResult:
        """Create the schema and seed the admin and company rows."""

    def inspect_schema(self, conn: Connection) -> SchemaState:
        tables = inspect(conn).get_table_names()
        if not tables:
            return SchemaState.NO_SCHEMA

        if User.__tablename__ in tables:
            count = conn.execute(select(func.count()).select_from(User.__table__)).scalar()
            if count:
                return SchemaState.HAS_DATA

        return SchemaState.EMPTY_SCHEMA

    def guard_existing(self, state: SchemaState, reinstall: bool) -> None:
        """Refuse to overwrite an existing installation unless asked to."""
        if reinstall:
            return

        if state is SchemaState.HAS_DATA:
            logger.warning(f"{self.display_name} database already contains user data")
            raise AlreadyInstalled(
                "The database already contains user data. To reinstall, please select "
                "the \"Reinstall\" option or use a different database name."
            )

        if (
            state is SchemaState.EMPTY_SCHEMA
            and self.settings.INSTALL_REQUIRE_REINSTALL_FOR_EXISTING_SCHEMA
        ):
            raise AlreadyInstalled(
                "The database already contains tables. Select the \"Reinstall\" "
                "option to recreate them."
            )

    def create_schema(self, conn: Connection) -> None:
        logger.info("Creating application tables")
        Base.metadata.create_all(conn, tables=INSTALL_TABLES, checkfirst=True)

    def drop_schema(self, conn: Connection) -> None:
        logger.warning("Dropping existing application tables")
        Base.metadata.drop_all(conn, tables=INSTALL_TABLES, checkfirst=True)

    def seed(self, conn: Connection, admin: AdminAccount, company: CompanyInfo) -> None:
        self._insert_admin(conn, admin)
        self._insert_company(conn, company, admin.email)

    def _insert_admin(self, conn: Connection, admin: AdminAccount) -> None:
        logger.info(f"Creating admin user {admin.username}")
        conn.execute(
            User.__table__.insert().values(
                first_name=admin.first_name,
                last_name=admin.last_name,
                email=admin.email,
                username=admin.username,
                password_hash=get_password_hash(admin.password),
                is_admin=True,
            )
        )

    def _insert_company(
        self, conn: Connection, company: CompanyInfo, admin_email: str
    ) -> None:
        name = (company.name or "").strip() or DEFAULT_COMPANY_NAME
        logger.info(f"Creating company record {name}")
        conn.execute(
            Company.__table__.insert().values(
                name=name,
                email=company.email or admin_email,
                website=company.website,
                address=company.address,
                phone=company.phone,
            )
        )

    def _rollback(self, conn: Optional[Connection]) -> None:
        """Best-effort rollback; a failure here is logged, never raised."""
        if conn is None:
            return
        try:
            conn.rollback()
        except Exception:
            logger.exception(f"{self.display_name} rollback failed")

    def _close(self, conn: Optional[Connection]) -> None:
        if conn is None:
            return
        try:
            conn.close()
        except Exception:
            logger.exception(f"Error closing {self.display_name} connection")

    def _success(self) -> InstallResult:
        return InstallResult(
            message=f"{self.display_name} installation completed successfully",
            redirect_hint=self.settings.INSTALL_REDIRECT,
        )
