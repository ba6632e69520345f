"""Installer backends, keyed by the ``type`` tag of a database descriptor."""
from typing import Dict, Type

from ...core.config import Settings
from ..exceptions import UnsupportedBackend
from .base import InstallerBackend, InstallResult, ProbeResult, SchemaState
from .mysql import MySQLBackend
from .sqlite import SQLiteBackend

BACKENDS: Dict[str, Type[InstallerBackend]] = {
    MySQLBackend.kind: MySQLBackend,
    SQLiteBackend.kind: SQLiteBackend,
}


def get_backend(kind: str, settings: Settings) -> InstallerBackend:
    """Return the installer for ``kind`` or raise UnsupportedBackend."""
    backend_class = BACKENDS.get((kind or "").lower())
    if backend_class is None:
        raise UnsupportedBackend(
            f"Database type '{kind}' is not supported. "
            f"Supported types: {', '.join(sorted(BACKENDS))}"
        )
    return backend_class(settings)


__all__ = [
    "BACKENDS",
    "InstallerBackend",
    "InstallResult",
    "MySQLBackend",
    "ProbeResult",
    "SQLiteBackend",
    "SchemaState",
    "get_backend",
]
