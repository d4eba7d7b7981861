"""
Authentication outcome kinds.

Services in walletgate return an ``AuthFailure`` value for every expected, caller
recoverable outcome instead of raising. Only infrastructure faults are exceptions
(``RecordStoreError`` and friends); those propagate to the HTTP layer and are turned
into an opaque 500.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from fastapi import HTTPException, status


class AuthErrorKind(str, Enum):
    INVALID_ADDRESS = "INVALID_ADDRESS"
    CHALLENGE_CREATION_FAILED = "CHALLENGE_CREATION_FAILED"
    INVALID_CHALLENGE = "INVALID_CHALLENGE"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"
    WALLET_NOT_LINKED = "WALLET_NOT_LINKED"
    IDENTITY_INACTIVE = "IDENTITY_INACTIVE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"


HTTP_STATUS: Dict[AuthErrorKind, int] = {
    AuthErrorKind.INVALID_ADDRESS: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.CHALLENGE_CREATION_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorKind.INVALID_CHALLENGE: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.SIGNATURE_MISMATCH: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.WALLET_NOT_LINKED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.IDENTITY_INACTIVE: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}

DEFAULT_MESSAGES: Dict[AuthErrorKind, str] = {
    AuthErrorKind.INVALID_ADDRESS: "Invalid wallet address",
    AuthErrorKind.CHALLENGE_CREATION_FAILED: "Failed to create authentication challenge, please retry",
    AuthErrorKind.INVALID_CHALLENGE: "Invalid or expired nonce",
    AuthErrorKind.SIGNATURE_MISMATCH: "Signature mismatch, verification failed",
    AuthErrorKind.WALLET_NOT_LINKED: "Wallet is not linked to an account",
    AuthErrorKind.IDENTITY_INACTIVE: "Account is inactive or not found",
    AuthErrorKind.UNAUTHENTICATED: "Not authenticated",
    AuthErrorKind.FORBIDDEN: "Access denied: insufficient role permission",
}


@dataclass(frozen=True)
class AuthFailure:
    kind: AuthErrorKind
    message: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            object.__setattr__(self, "message", DEFAULT_MESSAGES[self.kind])

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_http(self) -> HTTPException:
        headers: Optional[Dict[str, str]] = None
        if self.kind is AuthErrorKind.UNAUTHENTICATED:
            headers = {"WWW-Authenticate": "Bearer"}
        return HTTPException(
            status_code=self.status_code,
            detail={"code": self.kind.value, "message": self.message},
            headers=headers,
        )


class RecordStoreError(Exception):
    """Raised when the record store cannot complete an operation."""


class ChallengeConflictError(RecordStoreError):
    """Raised when a challenge with the same nonce already exists."""
