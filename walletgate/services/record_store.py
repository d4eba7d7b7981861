"""
Record store consumed by the authentication services.

The services never talk to SQLAlchemy directly: they go through ``RecordStore`` so the
same flow runs on the SQL backend (``sql_store.SqlRecordStore``) and on the in-process
backend (``memory_store.MemoryRecordStore``). Both guarantee that
``mark_challenge_used`` is a single compare-and-set on ``used_at``.

Every backend fault surfaces as ``RecordStoreError``; a duplicate nonce on insert
surfaces as ``ChallengeConflictError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChallengeRecord:
    id: str
    address: str
    nonce: str
    message: str
    expires_at: int
    created_at: int
    used_at: Optional[int] = None


@dataclass(frozen=True)
class WalletBindingRecord:
    address: str
    identity_id: str
    is_primary: bool = False
    is_verified: bool = False


@dataclass(frozen=True)
class IdentityRecord:
    id: str
    role: str
    is_active: bool
    full_name: str = ""
    email: str = ""


class RecordStore(ABC):
    @abstractmethod
    def insert_challenge(self, record: ChallengeRecord) -> str:
        """Persist a new challenge and return its id."""

    @abstractmethod
    def find_unredeemed_challenge(self, address: str, nonce: str, now: int) -> Optional[ChallengeRecord]:
        """Challenge for (address, nonce) with used_at unset and expires_at > now."""

    @abstractmethod
    def mark_challenge_used(self, challenge_id: str, now: int) -> bool:
        """Set used_at = now iff it is still unset. True when this call made the transition."""

    @abstractmethod
    def invalidate_outstanding_challenges(self, address: str, now: int) -> int:
        """Close every unredeemed, unexpired challenge for address. Returns how many."""

    @abstractmethod
    def find_wallet_binding(self, address: str) -> Optional[WalletBindingRecord]:
        ...

    @abstractmethod
    def record_wallet_login(self, address: str, now: int) -> bool:
        """Mark the binding verified and stamp its last use."""

    @abstractmethod
    def find_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        ...
