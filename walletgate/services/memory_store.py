from dataclasses import replace
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

import yaml

from walletgate.core.errors import ChallengeConflictError
from walletgate.core.eth_auth import normalize_address
from walletgate.services.record_store import (
    ChallengeRecord,
    IdentityRecord,
    RecordStore,
    WalletBindingRecord,
)


class MemoryRecordStore(RecordStore):
    """
    In-process RecordStore for single-process deployments and tests.

    There is no transactional storage underneath, so every operation runs inside one
    lock; find/mark on the same challenge can never interleave with another caller's.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._challenges: Dict[str, ChallengeRecord] = {}
        self._by_nonce: Dict[str, str] = {}
        self._wallets: Dict[str, WalletBindingRecord] = {}
        self._wallet_last_used: Dict[str, int] = {}
        self._identities: Dict[str, IdentityRecord] = {}

    # provisioning helpers, not part of RecordStore

    def add_identity(self, identity: IdentityRecord) -> None:
        with self._lock:
            self._identities[identity.id] = identity

    def set_identity_active(self, identity_id: str, is_active: bool) -> None:
        with self._lock:
            self._identities[identity_id] = replace(self._identities[identity_id], is_active=is_active)

    def link_wallet(self, binding: WalletBindingRecord) -> None:
        address = binding.address.lower()
        with self._lock:
            owner = self._wallets.get(address)
            if owner is not None and owner.identity_id != binding.identity_id:
                raise ValueError(f"address already linked to identity {owner.identity_id}")
            if binding.is_primary and any(
                w.is_primary and w.identity_id == binding.identity_id and w.address != address
                for w in self._wallets.values()
            ):
                raise ValueError("identity already has a primary wallet")
            self._wallets[address] = replace(binding, address=address)

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        with self._lock:
            return self._challenges.get(challenge_id)

    def wallet_last_used(self, address: str) -> Optional[int]:
        with self._lock:
            return self._wallet_last_used.get(address.lower())

    # RecordStore

    def insert_challenge(self, record: ChallengeRecord) -> str:
        with self._lock:
            if record.nonce in self._by_nonce or record.id in self._challenges:
                raise ChallengeConflictError("challenge nonce already exists")
            self._challenges[record.id] = record
            self._by_nonce[record.nonce] = record.id
        return record.id

    def find_unredeemed_challenge(self, address: str, nonce: str, now: int) -> Optional[ChallengeRecord]:
        with self._lock:
            challenge_id = self._by_nonce.get(nonce)
            if challenge_id is None:
                return None
            record = self._challenges[challenge_id]
            if record.address != address or record.used_at is not None or record.expires_at <= now:
                return None
            return record

    def mark_challenge_used(self, challenge_id: str, now: int) -> bool:
        with self._lock:
            record = self._challenges.get(challenge_id)
            if record is None or record.used_at is not None:
                return False
            self._challenges[challenge_id] = replace(record, used_at=now)
            return True

    def invalidate_outstanding_challenges(self, address: str, now: int) -> int:
        closed = 0
        with self._lock:
            for challenge_id, record in list(self._challenges.items()):
                if record.address == address and record.used_at is None and record.expires_at > now:
                    self._challenges[challenge_id] = replace(record, used_at=now)
                    closed += 1
        return closed

    def find_wallet_binding(self, address: str) -> Optional[WalletBindingRecord]:
        with self._lock:
            return self._wallets.get(address.lower())

    def record_wallet_login(self, address: str, now: int) -> bool:
        address = address.lower()
        with self._lock:
            binding = self._wallets.get(address)
            if binding is None:
                return False
            self._wallets[address] = replace(binding, is_verified=True)
            self._wallet_last_used[address] = now
            return True

    def find_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        with self._lock:
            return self._identities.get(identity_id)


def load_memory_store(path: str | Path | None = None) -> MemoryRecordStore:
    """
    Build a MemoryRecordStore, optionally provisioned from a YAML file:

        identities:
          - id: id-alice
            role: ADMIN
            full_name: Alice
            email: alice@example.com
            wallets:
              - address: "0x..."
                primary: true

    Addresses must be quoted; an unquoted 0x literal is parsed by YAML as an integer.
    """
    store = MemoryRecordStore()
    if path is None:
        return store

    path = Path(path)
    if not path.exists():
        raise ValueError(f"memory store seed file not found: {path}")
    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse memory store seed file: {exc}") from exc

    for entry in data.get("identities") or []:
        identity_id = entry.get("id")
        if not isinstance(identity_id, str) or not identity_id:
            raise ValueError("identity entry must include a string id")
        store.add_identity(
            IdentityRecord(
                id=identity_id,
                role=str(entry.get("role", "USER")).upper(),
                is_active=bool(entry.get("is_active", True)),
                full_name=entry.get("full_name") or "",
                email=entry.get("email") or "",
            )
        )
        for wallet in entry.get("wallets") or []:
            raw = wallet.get("address")
            address = normalize_address(raw) if isinstance(raw, str) else None
            if address is None:
                raise ValueError(f"invalid wallet address for identity {identity_id}: {raw!r}")
            store.link_wallet(
                WalletBindingRecord(
                    address=address,
                    identity_id=identity_id,
                    is_primary=bool(wallet.get("primary", False)),
                    is_verified=bool(wallet.get("verified", True)),
                )
            )
    return store
