from fastapi import APIRouter, Depends, Response, status
import logging

from ...api.deps import get_installation_service, require_admin_when_installed
from ...schemas.installation import (
    ConnectionTestResult, DatabaseConfig, InstallationRequest,
    InstallationResponse, InstallationStatus
)
from ...services.installation_service import InstallationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/installation", tags=["Installation"])


@router.get("/status", response_model=InstallationStatus)
async def installation_status(
    service: InstallationService = Depends(get_installation_service)
):
    """Check if the application is already installed."""
    return service.status()


@router.post("/test-connection", response_model=ConnectionTestResult)
def test_connection(
    config: DatabaseConfig,
    response: Response,
    service: InstallationService = Depends(get_installation_service)
):
    """Test database connectivity without changing anything."""
    logger.info(
        f"Testing database connection - type: {config.type}, "
        f"host: {config.host}, user: {config.username}"
    )

    result = service.test_connection(config)
    if not result.success:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result


@router.post(
    "/perform",
    response_model=InstallationResponse,
    dependencies=[Depends(require_admin_when_installed)]
)
def perform_installation(
    request_data: InstallationRequest,
    service: InstallationService = Depends(get_installation_service)
):
    """Create the database schema, the admin account and the settings file."""
    return service.perform(
        request_data.admin, request_data.company, request_data.database
    )
