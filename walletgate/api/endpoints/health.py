from fastapi import APIRouter, status

from walletgate.schemas.health import HealthCheck

router = APIRouter()
group_tags = ["health"]


@router.get(
    "/health",
    tags=group_tags,
    response_model=HealthCheck,
    status_code=status.HTTP_200_OK,
)
def get_health() -> HealthCheck:
    """Liveness probe."""
    return HealthCheck(status="oke")
