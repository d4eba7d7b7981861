import logging

from walletgate.core.errors import AuthErrorKind, AuthFailure
from walletgate.core.eth_auth import normalize_address
from walletgate.services.record_store import IdentityRecord, RecordStore

logger = logging.getLogger(__name__)


class IdentityBinder:
    """Resolves an authenticated wallet address to the active identity that owns it."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def resolve_identity(self, address: str) -> IdentityRecord | AuthFailure:
        normalized = normalize_address(address)
        if normalized is None:
            return AuthFailure(AuthErrorKind.INVALID_ADDRESS)

        binding = self.store.find_wallet_binding(normalized)
        if binding is None:
            return AuthFailure(AuthErrorKind.WALLET_NOT_LINKED)

        identity = self.store.find_identity(binding.identity_id)
        if identity is None or not identity.is_active:
            logger.info("identity %s for %s is missing or inactive", binding.identity_id, normalized[:10])
            return AuthFailure(AuthErrorKind.IDENTITY_INACTIVE)
        return identity

    def bind_login(self, address: str, now: int) -> bool:
        """Record a proven login: the binding becomes verified and gets a last-used stamp."""
        return self.store.record_wallet_login(address.lower(), now)
