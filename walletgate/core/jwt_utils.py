"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet authentication.
After a user successfully verifies their wallet signature and the wallet resolves to an
active identity, this module creates a JWT token used for subsequent authenticated requests.

Flow:
1. User verifies wallet signature -> create_access_token() generates JWT
2. User makes API request with JWT in Authorization header -> decode_access_token() validates it
3. Protected endpoints use get_current_claims() from dependencies.py to obtain the claims

The JWT contains:
- sub: The identity id
- role: The identity role at issuance
- wallet: The authenticated wallet address (lowercase)
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)

Key material lives in a TokenConfig built once at startup. Tokens are always signed
with the current key; verification accepts the current key and any rotated-out keys
listed after it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import jwt

from walletgate.core.config import Settings

REQUIRED_CLAIMS = ["sub", "role", "wallet", "iat", "exp"]
MIN_KEY_LENGTH = 16


class TokenError(Exception):
    """Raised when a token cannot be decoded or verified."""


class TokenExpiredError(TokenError):
    """Raised when a token is past its exp claim."""


@dataclass(frozen=True)
class TokenConfig:
    signing_key: str
    algorithm: str = "HS256"
    expire_seconds: int = 7 * 24 * 3600
    previous_keys: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.signing_key or len(self.signing_key) < MIN_KEY_LENGTH:
            raise RuntimeError(f"ENCODE_KEY must be at least {MIN_KEY_LENGTH} characters")
        if self.expire_seconds <= 0:
            raise RuntimeError("ACCESS_TOKEN_EXPIRE_SECONDS must be positive")

    @property
    def verification_keys(self) -> List[str]:
        return [self.signing_key, *self.previous_keys]

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        if not settings.ENCODE_KEY:
            raise RuntimeError("ENCODE_KEY is not configured")
        return cls(
            signing_key=settings.ENCODE_KEY,
            algorithm=settings.ENCODE_ALGORITHM,
            expire_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
            previous_keys=tuple(settings.previous_keys),
        )


def create_access_token(config: TokenConfig, subject: str, role: str, wallet: str, issued_at: int) -> Tuple[str, int]:
    """
    Create a JWT access token for an authenticated identity.

    Args:
        config: Token key material and lifetime
        subject: Identity id, stored as ``sub``
        role: Identity role at issuance
        wallet: Normalized wallet address
        issued_at: Epoch seconds used for ``iat``

    Returns:
        (token, expires_at) where expires_at is the ``exp`` claim

    Raises:
        ValueError: If subject or wallet is empty
    """
    if not subject or not wallet:
        raise ValueError("subject and wallet are required")

    expires_at = issued_at + config.expire_seconds
    payload: Dict[str, Any] = {
        "sub": subject,
        "role": role,
        "wallet": wallet,
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, config.signing_key, algorithm=config.algorithm)
    return token, expires_at


def decode_access_token(config: TokenConfig, token: str, now: int) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    The signature is checked against each verification key in order. Expiry is checked
    against ``now`` rather than the library's own wall clock.

    Raises:
        TokenExpiredError: If ``exp`` is not after ``now``
        TokenError: If the token is malformed, signed with an unknown key, or missing claims
    """
    if not token:
        raise TokenError("Missing token")

    options = {"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False}
    payload = None
    for key in config.verification_keys:
        try:
            payload = jwt.decode(token, key, algorithms=[config.algorithm], options=options)
            break
        except jwt.InvalidSignatureError:
            continue
        except jwt.InvalidTokenError as e:
            raise TokenError("Invalid token") from e
    if payload is None:
        raise TokenError("Invalid token signature")

    if not isinstance(payload.get("sub"), str) or not isinstance(payload.get("wallet"), str):
        raise TokenError("Invalid token payload")
    if not isinstance(payload.get("exp"), int) or not isinstance(payload.get("iat"), int):
        raise TokenError("Invalid token payload")
    if payload["exp"] <= now:
        raise TokenExpiredError("Token expired")

    return payload
