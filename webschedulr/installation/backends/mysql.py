import logging
import re
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ...core.config import mysql_url
from ...schemas.installation import AdminAccount, CompanyInfo, DatabaseConfig
from ..exceptions import (
    ConnectionFailed, InstallationError, SchemaInstallFailed, ValidationError
)
from .base import InstallerBackend, InstallResult, ProbeResult

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306
DEFAULT_DATABASE = "webschedulr"

# MySQL client/server error codes
CR_CONNECTION_ERROR = 2002
CR_CONN_HOST_ERROR = 2003
CR_UNKNOWN_HOST = 2005
CR_SERVER_LOST = 2013
ER_ACCESS_DENIED_ERROR = 1045

DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,64}$")


class MySQLBackend(InstallerBackend):
    kind = "mysql"
    display_name = "MySQL"

    def validate_config(self, config: DatabaseConfig) -> None:
        super().validate_config(config)
        name = config.database or DEFAULT_DATABASE
        if not DATABASE_NAME_PATTERN.match(name):
            raise ValidationError(
                "Database name may only contain letters, digits and underscores"
            )

    def create_engine(self, config: DatabaseConfig, database: Optional[str] = None) -> Engine:
        """Engine for a single operation; NullPool closes connections on release."""
        url = mysql_url(
            config.host,
            config.port or DEFAULT_PORT,
            config.username,
            config.password or "",
            database,
        )
        return create_engine(url, poolclass=NullPool)

    def describe_error(self, exc: Exception, config: DatabaseConfig) -> str:
        """Map driver error codes to user-facing text."""
        orig = getattr(exc, "orig", None) or exc
        args = getattr(orig, "args", ())
        code = args[0] if args and isinstance(args[0], int) else None
        address = f"{config.host}:{config.port or DEFAULT_PORT}"

        if code in (CR_CONNECTION_ERROR, CR_CONN_HOST_ERROR, CR_SERVER_LOST):
            return f"Could not connect to MySQL server at {address}. Make sure MySQL is running."
        if code == CR_UNKNOWN_HOST:
            return f"Could not connect to MySQL server at {address}. Unknown host."
        if code == ER_ACCESS_DENIED_ERROR:
            return "Access denied. Check your username and password."

        if len(args) > 1:
            return str(args[1])
        return str(orig)

    def probe(self, config: DatabaseConfig) -> ProbeResult:
        if not config.host or not config.username:
            return ProbeResult(
                ok=False,
                message="Missing required fields: host and username are required",
            )

        logger.info(
            f"Testing MySQL connection to {config.host}:{config.port or DEFAULT_PORT} "
            f"as {config.username}"
        )

        # Server-level check first, independent of the database existing
        engine = self.create_engine(config)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning(f"MySQL connection test failed: {exc.__class__.__name__}")
            return ProbeResult(ok=False, message=self.describe_error(exc, config))
        finally:
            engine.dispose()

        if not config.database:
            return ProbeResult(ok=True, message="Connected to MySQL server successfully!")

        engine = self.create_engine(config, database=config.database)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.info(f"Database {config.database} not reachable: {self.describe_error(exc, config)}")
            return ProbeResult(
                ok=True,
                message=(
                    f"Connected to MySQL server, but database '{config.database}' might not "
                    f"exist. It will be created during installation."
                ),
            )
        finally:
            engine.dispose()

        return ProbeResult(ok=True, message=f"Connected to database: {config.database}")

    def install(
        self, admin: AdminAccount, company: CompanyInfo, config: DatabaseConfig
    ) -> InstallResult:
        name = config.database or DEFAULT_DATABASE
        engine = self.create_engine(config)
        conn = None
        created_database = False

        try:
            logger.info(f"Connecting to MySQL server at {config.host}")
            try:
                conn = engine.connect()
            except SQLAlchemyError as exc:
                raise ConnectionFailed(self.describe_error(exc, config)) from exc

            quoted = conn.dialect.identifier_preparer.quote_identifier(name)

            try:
                exists = self._database_exists(conn, name)
                if exists and config.reinstall:
                    logger.warning(f"Reinstall option selected - dropping database {name}")
                    conn.exec_driver_sql(f"DROP DATABASE {quoted}")
                    exists = False
                elif exists:
                    conn.exec_driver_sql(f"USE {quoted}")
                    self.guard_existing(self.inspect_schema(conn), config.reinstall)

                # Pre-checks ran in an implicit transaction; close it before ours
                conn.commit()

                if not exists:
                    logger.info(f"Creating database {name}")
                    conn.exec_driver_sql(
                        f"CREATE DATABASE IF NOT EXISTS {quoted} CHARACTER SET utf8mb4"
                    )
                    created_database = True
                    conn.commit()

                conn.exec_driver_sql(f"USE {quoted}")
                conn.commit()

                with conn.begin():
                    self.create_schema(conn)
                    self.seed(conn, admin, company)
                logger.info("MySQL database setup completed successfully")
            except InstallationError:
                self._rollback(conn)
                raise
            except Exception as exc:
                logger.error(f"MySQL installation error: {exc}")
                self._rollback(conn)
                if created_database:
                    self._drop_database(conn, quoted)
                raise SchemaInstallFailed(self.describe_error(exc, config)) from exc

            return self._success()
        finally:
            self._close(conn)
            engine.dispose()

    def _database_exists(self, conn: Connection, name: str) -> bool:
        logger.info(f"Checking if database {name} exists")
        row = conn.execute(
            text("SELECT SCHEMA_NAME FROM INFORMATION_SCHEMA.SCHEMATA WHERE SCHEMA_NAME = :name"),
            {"name": name},
        ).first()
        return row is not None

    def _drop_database(self, conn: Connection, quoted: str) -> None:
        """Remove a database created by a failed attempt.

        MySQL commits DDL implicitly, so rolling back alone can leave tables
        behind.
        """
        try:
            conn.exec_driver_sql(f"DROP DATABASE IF EXISTS {quoted}")
            conn.commit()
        except Exception:
            logger.exception("Could not drop partially created database")
