from fastapi import APIRouter, Depends, status

from walletgate.core.clock import to_iso
from walletgate.core.dependencies import get_authenticator
from walletgate.core.errors import AuthFailure
from walletgate.services.authenticator import WalletAuthenticator
import walletgate.schemas.auth as schemas

router = APIRouter()
group_tags = ["Auth"]


@router.post(
    "/challenge",
    tags=group_tags,
    response_model=schemas.ChallengeResponse,
    status_code=status.HTTP_201_CREATED,
)
def request_challenge(
    body: schemas.ChallengeRequest,
    auth: WalletAuthenticator = Depends(get_authenticator),
) -> schemas.ChallengeResponse:
    """
    Generate and store a sign-in challenge for a wallet address.

    The response does not depend on whether the address is linked to an account.
    """
    result = auth.issue_challenge(body.address)
    if isinstance(result, AuthFailure):
        raise result.to_http()
    return schemas.ChallengeResponse(
        nonceValue=result.nonce,
        message=result.message,
        expiresAt=to_iso(result.expires_at),
    )


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.VerifyResponse,
)
def verify_wallet(
    body: schemas.VerifyRequest,
    auth: WalletAuthenticator = Depends(get_authenticator),
) -> schemas.VerifyResponse:
    """Verify a signed challenge and return an access token."""
    result = auth.login(body.address, body.nonceValue, body.signature)
    if isinstance(result, AuthFailure):
        raise result.to_http()

    claims = result.session.claims
    return schemas.VerifyResponse(
        token=result.session.token,
        expiresAt=to_iso(claims.expires_at),
        identity=schemas.IdentitySummary(
            id=result.identity.id,
            fullName=result.identity.full_name,
            email=result.identity.email,
            role=claims.role,
            walletAddress=claims.address,
        ),
    )
