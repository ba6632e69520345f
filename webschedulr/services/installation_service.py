from typing import Optional
import logging

from ..core.config import Settings, get_settings, reload_settings
from ..core.database import db_manager
from ..installation.backends import InstallerBackend, ProbeResult, get_backend
from ..installation.exceptions import (
    InstallationError,
    InvalidAdminData,
    PersistFailed,
    SchemaInstallFailed,
    ValidationError,
)
from ..installation.materializer import ConfigMaterializer
from ..schemas.installation import (
    AdminAccount,
    CompanyInfo,
    ConnectionTestResult,
    DatabaseConfig,
    InstallationResponse,
    InstallationStatus,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 7


class InstallationService:
    """Coordinates probe, schema install and settings persistence."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        materializer: Optional[ConfigMaterializer] = None,
    ):
        self.settings = settings or get_settings()
        self.materializer = materializer or ConfigMaterializer()

    def status(self) -> InstallationStatus:
        """Installed means the settings artifact exists; nothing else is checked."""
        return InstallationStatus(installed=self.materializer.exists())

    def test_connection(self, config: DatabaseConfig) -> ConnectionTestResult:
        backend = self._backend_for(config)
        result = backend.probe(config)
        return ConnectionTestResult(success=result.ok, message=result.message)

    def perform(
        self,
        admin: AdminAccount,
        company: Optional[CompanyInfo],
        config: DatabaseConfig,
    ) -> InstallationResponse:
        admin = self._validate_admin(admin)
        company = company or CompanyInfo()
        backend = self._backend_for(config)
        backend.validate_config(config)

        logger.info(
            f"Installation process started - dbType: {config.type}, "
            f"adminEmail: {admin.email}, companyName: {company.name or '-'}"
        )

        probe = backend.probe(config)
        if not probe.ok:
            self._raise_probe_failure(backend, probe)

        try:
            result = backend.install(admin, company, config)
        except InstallationError as exc:
            logger.warning(f"Installation failed ({exc.kind}): {exc.detail}")
            raise
        except Exception as exc:
            logger.exception("Unexpected installation error")
            raise SchemaInstallFailed(str(exc)) from exc

        # The schema is committed; the artifact is only written now
        env_updated = self.materializer.persist(config, backend.kind)
        if not env_updated:
            raise PersistFailed(
                "The database was installed, but the settings file could not be "
                "written. Check that the application directory is writable and "
                "run the installation again with the \"Reinstall\" option."
            )

        reload_settings()
        db_manager.dispose()
        logger.info("Installation completed successfully")

        return InstallationResponse(
            success=True,
            message=result.message,
            envUpdated=env_updated,
            redirect=result.redirect_hint,
        )

    def _backend_for(self, config: DatabaseConfig) -> InstallerBackend:
        return get_backend(config.type, self.settings)

    def _validate_admin(self, admin: Optional[AdminAccount]) -> AdminAccount:
        """Reject incomplete admin data before any I/O happens."""
        if admin is None or not admin.email or not admin.password:
            raise InvalidAdminData("Admin email and password are required")

        email = admin.email.strip()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("Admin email is not a valid email address")

        if len(admin.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Admin password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        username = (admin.username or "").strip() or email.split("@", 1)[0]
        return admin.model_copy(update={"email": email, "username": username})

    def _raise_probe_failure(self, backend: InstallerBackend, probe: ProbeResult):
        logger.warning(f"Connection test failed for {backend.kind}: {probe.message}")
        raise backend.probe_error(probe.message)
