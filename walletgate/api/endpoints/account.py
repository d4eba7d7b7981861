from fastapi import APIRouter, Depends, status

from walletgate.core.dependencies import get_current_claims, require_role
from walletgate.models.identity import IdentityRole
from walletgate.services.session import SessionClaims
import walletgate.schemas.auth as schemas

router = APIRouter()
group_tags = ["account"]


@router.get(
    "/me",
    tags=group_tags,
    response_model=schemas.MeResponse,
    status_code=status.HTTP_200_OK,
)
def get_me(claims: SessionClaims = Depends(get_current_claims)) -> schemas.MeResponse:
    """Current identity of the bearer token."""
    return schemas.MeResponse(
        identityId=claims.identity_id,
        role=claims.role,
        address=claims.address,
        fullName=claims.full_name,
        email=claims.email,
    )


@router.get(
    "/admin-only",
    tags=group_tags,
    response_model=schemas.AdminResponse,
    status_code=status.HTTP_200_OK,
)
def admin_only(claims: SessionClaims = Depends(require_role(IdentityRole.ADMIN))) -> schemas.AdminResponse:
    return schemas.AdminResponse(message="Admin access granted successfully", role=claims.role)
