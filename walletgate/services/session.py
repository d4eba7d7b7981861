"""
Session credential issuance and validation.

Tokens are self-contained JWTs (see ``core.jwt_utils``). Validation still goes back to
the record store for the identity on every call, so deactivating an account locks it
out immediately instead of at token expiry.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from walletgate.core.clock import Clock, SystemClock
from walletgate.core.errors import AuthErrorKind, AuthFailure
from walletgate.core.eth_auth import normalize_address
from walletgate.core.jwt_utils import TokenConfig, TokenError, TokenExpiredError, create_access_token, decode_access_token
from walletgate.services.record_store import IdentityRecord, RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionClaims:
    identity_id: str
    role: str
    address: str
    issued_at: int
    expires_at: int
    # profile fields from the identity record as of issue/validation, not from the token
    full_name: str = ""
    email: str = ""


@dataclass(frozen=True)
class IssuedSession:
    token: str
    claims: SessionClaims


class SessionIssuer:
    def __init__(self, config: TokenConfig, clock: Clock | None = None) -> None:
        self.config = config
        self.clock = clock or SystemClock()

    def issue(self, identity: IdentityRecord, address: str) -> IssuedSession:
        wallet = normalize_address(address)
        if wallet is None:
            raise ValueError("address must be a valid wallet address")
        issued_at = self.clock.now()
        token, expires_at = create_access_token(self.config, identity.id, identity.role, wallet, issued_at)
        claims = SessionClaims(
            identity_id=identity.id,
            role=identity.role,
            address=wallet,
            issued_at=issued_at,
            expires_at=expires_at,
            full_name=identity.full_name,
            email=identity.email,
        )
        return IssuedSession(token=token, claims=claims)


class SessionValidator:
    def __init__(self, config: TokenConfig, store: RecordStore, clock: Clock | None = None) -> None:
        self.config = config
        self.store = store
        self.clock = clock or SystemClock()

    def validate(self, token: str | None) -> SessionClaims | AuthFailure:
        if not token:
            return AuthFailure(AuthErrorKind.UNAUTHENTICATED, "Missing token")
        try:
            payload = decode_access_token(self.config, token, self.clock.now())
        except TokenExpiredError:
            return AuthFailure(AuthErrorKind.UNAUTHENTICATED, "Token expired")
        except TokenError:
            return AuthFailure(AuthErrorKind.UNAUTHENTICATED, "Invalid token")

        identity = self.store.find_identity(payload["sub"])
        if identity is None or not identity.is_active:
            logger.info("token rejected: identity %s missing or inactive", payload["sub"])
            return AuthFailure(AuthErrorKind.IDENTITY_INACTIVE)

        return SessionClaims(
            identity_id=identity.id,
            role=identity.role,
            address=payload["wallet"],
            issued_at=payload["iat"],
            expires_at=payload["exp"],
            full_name=identity.full_name,
            email=identity.email,
        )


def authorize(claims: SessionClaims, required_roles: Iterable[str]) -> bool:
    """True iff the claims carry one of ``required_roles``."""
    allowed = {r.value if hasattr(r, "value") else str(r) for r in required_roles}
    return claims.role in allowed
