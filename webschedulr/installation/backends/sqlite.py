import logging
import os
import tempfile
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ...core.config import resolve_sqlite_path, sqlite_url
from ...schemas.installation import AdminAccount, CompanyInfo, DatabaseConfig
from ..exceptions import (
    ConnectionFailed, InstallationError, PermissionDenied, SchemaInstallFailed
)
from .base import InstallerBackend, InstallResult, ProbeResult, SchemaState

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "database.sqlite"


def _enable_transactional_ddl(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so DDL joins the transaction.

    The stdlib driver otherwise only opens a transaction before DML, leaving
    CREATE/DROP TABLE outside of it.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def ensure_writable_directory(directory: Path) -> bool:
    """Create ``directory`` if needed and prove a file can be written to it.

    Returns True when the directory had to be created. Raises OSError when it
    cannot be created or written to.
    """
    created = False
    if not directory.is_dir():
        directory.mkdir(parents=True, exist_ok=True)
        created = True

    if not os.access(directory, os.W_OK):
        raise PermissionError(f"Directory {directory} is not writable")

    fd, probe_path = tempfile.mkstemp(prefix=".write-test-", dir=directory)
    try:
        os.write(fd, b"Test write permissions")
    finally:
        os.close(fd)
        os.unlink(probe_path)

    return created


class SQLiteBackend(InstallerBackend):
    kind = "sqlite"
    display_name = "SQLite"
    probe_error = PermissionDenied

    def database_path(self, config: DatabaseConfig) -> Path:
        return resolve_sqlite_path(config.filename or DEFAULT_FILENAME, self.settings.app_root)

    def create_engine(self, path: Path) -> Engine:
        engine = create_engine(sqlite_url(path), poolclass=NullPool)
        _enable_transactional_ddl(engine)
        return engine

    def probe(self, config: DatabaseConfig) -> ProbeResult:
        directory = self.database_path(config).parent
        logger.info(f"Testing SQLite directory {directory}")

        try:
            created = ensure_writable_directory(directory)
        except OSError as exc:
            logger.warning(f"SQLite directory check failed: {exc}")
            return ProbeResult(
                ok=False,
                message=f"Cannot write to SQLite directory {directory}: {exc.strerror or exc}",
            )

        if created:
            return ProbeResult(ok=True, message="SQLite directory created successfully")
        return ProbeResult(ok=True, message="SQLite directory is writable")

    def install(
        self, admin: AdminAccount, company: CompanyInfo, config: DatabaseConfig
    ) -> InstallResult:
        path = self.database_path(config)
        logger.info(f"Starting SQLite installation at {path}")

        try:
            ensure_writable_directory(path.parent)
        except OSError as exc:
            raise PermissionDenied(
                f"Permission issue: {exc.strerror or exc}"
            ) from exc

        engine = self.create_engine(path)
        conn = None
        try:
            try:
                conn = engine.connect()
            except SQLAlchemyError as exc:
                raise ConnectionFailed(f"Could not open SQLite database {path.name}") from exc

            try:
                state = self.inspect_schema(conn)
                self.guard_existing(state, config.reinstall)

                if config.reinstall and state is not SchemaState.NO_SCHEMA:
                    self.drop_schema(conn)
                self.create_schema(conn)
                self.seed(conn, admin, company)

                conn.commit()
                logger.info("SQLite database setup completed successfully")
            except InstallationError:
                self._rollback(conn)
                raise
            except Exception as exc:
                logger.error(f"SQLite installation error: {exc}")
                self._rollback(conn)
                raise SchemaInstallFailed(str(getattr(exc, "orig", None) or exc)) from exc

            return self._success()
        finally:
            self._close(conn)
            engine.dispose()
