"""
Secrets status endpoint.

Reports which required secrets are present in the process environment.
Values are never returned. Admin only.
"""

from fastapi import APIRouter, Depends

from buildtrack_auth.core.models.domain import UserRole
from buildtrack_auth.core.models.io import SecretsStatusResponse
from buildtrack_auth.server.middleware.auth import require_role
from buildtrack_auth.server.services.deps import SecretsManagerDep

router = APIRouter(tags=["secrets"])


@router.get(
    "/status",
    response_model=SecretsStatusResponse,
    summary="Secrets Status",
    description="List required secrets and whether each one is set. Requires the admin role.",
    dependencies=[Depends(require_role(UserRole.ADMIN))],
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Caller is not an admin"},
    },
)
async def secrets_status(manager: SecretsManagerDep) -> SecretsStatusResponse:
    statuses = manager.get_secrets_status()
    missing = [s.name for s in statuses if not s.exists]
    message = "All required secrets are set" if not missing else f"Missing secrets: {', '.join(missing)}"
    return SecretsStatusResponse(message=message, secrets=statuses)
