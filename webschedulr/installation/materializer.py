"""Writes the settings artifact that marks the application as installed."""
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from ..core.config import get_env_file_path
from ..core.security import generate_secret_key
from ..schemas.installation import DatabaseConfig

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_EXPIRE_MINUTES = 1440
DEFAULT_CORS_ORIGIN = "http://localhost:5173"


class ConfigMaterializer:
    def __init__(self, env_path: Optional[Path] = None):
        self.env_path = Path(env_path) if env_path else get_env_file_path()

    def exists(self) -> bool:
        return self.env_path.is_file()

    def render(
        self, config: DatabaseConfig, secret_key: str, kind: Optional[str] = None
    ) -> Dict[str, str]:
        kind = kind or config.type
        values = {
            "DB_TYPE": kind,
            "DB_HOST": config.host or "localhost",
            "DB_PORT": str(config.port or 3306),
            "DB_USER": config.username or "root",
            "DB_PASSWORD": config.password or "",
            "DB_NAME": config.database or "webschedulr",
        }
        if kind == "sqlite":
            values["DB_FILENAME"] = config.filename or "database.sqlite"

        values.update({
            "SECRET_KEY": secret_key,
            "ACCESS_TOKEN_EXPIRE_MINUTES": str(DEFAULT_TOKEN_EXPIRE_MINUTES),
            "CORS_ORIGIN": DEFAULT_CORS_ORIGIN,
        })
        return values

    def format(self, values: Dict[str, str]) -> str:
        lines = ["# Generated by the WebSchedulr installation wizard"]
        for key, value in values.items():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'{key}="{escaped}"')
        return "\n".join(lines) + "\n"

    def persist(self, config: DatabaseConfig, kind: Optional[str] = None) -> bool:
        """Atomically write the settings artifact and confirm it reads back.

        ``kind`` is the resolved backend name and wins over the raw
        descriptor tag.
        """
        values = self.render(config, generate_secret_key(), kind)
        directory = self.env_path.parent
        logger.info(f"Writing environment file to {self.env_path}")

        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".env-", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(self.format(values))
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.env_path)
            tmp_path = None
        except OSError as exc:
            logger.error(f"Error creating environment file: {exc}")
            return False
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        # Read back with interpolation, as the settings loader does
        written = dotenv_values(self.env_path, interpolate=True)
        mismatched = [key for key, value in values.items() if written.get(key) != value]
        if mismatched:
            logger.error(f"Environment file does not read back: {', '.join(mismatched)}")
            # A misread artifact must not mark the application as installed
            self.env_path.unlink()
            return False

        logger.info("Environment file created")
        return True
