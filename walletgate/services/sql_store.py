import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from walletgate.core.errors import ChallengeConflictError, RecordStoreError
from walletgate.models.auth import AuthChallenge
from walletgate.models.identity import Identity, WalletBinding
from walletgate.services.record_store import (
    ChallengeRecord,
    IdentityRecord,
    RecordStore,
    WalletBindingRecord,
)

logger = logging.getLogger(__name__)


def _challenge_record(row: AuthChallenge) -> ChallengeRecord:
    return ChallengeRecord(
        id=row.id,
        address=row.address,
        nonce=row.nonce,
        message=row.message,
        expires_at=row.expires_at,
        created_at=row.created_at,
        used_at=row.used_at,
    )


class SqlRecordStore(RecordStore):
    """RecordStore on a SQLAlchemy session. Each write commits on its own."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def insert_challenge(self, record: ChallengeRecord) -> str:
        self.db.add(
            AuthChallenge(
                id=record.id,
                address=record.address,
                nonce=record.nonce,
                message=record.message,
                expires_at=record.expires_at,
                used_at=record.used_at,
                created_at=record.created_at,
            )
        )
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ChallengeConflictError("challenge nonce already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to insert challenge") from e
        return record.id

    def find_unredeemed_challenge(self, address: str, nonce: str, now: int) -> Optional[ChallengeRecord]:
        try:
            row = (
                self.db.query(AuthChallenge)
                .filter(
                    AuthChallenge.address == address,
                    AuthChallenge.nonce == nonce,
                    AuthChallenge.used_at.is_(None),
                    AuthChallenge.expires_at > now,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to query challenge") from e
        return _challenge_record(row) if row is not None else None

    def mark_challenge_used(self, challenge_id: str, now: int) -> bool:
        stmt = (
            update(AuthChallenge)
            .where(AuthChallenge.id == challenge_id, AuthChallenge.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to mark challenge used") from e
        return result.rowcount == 1

    def invalidate_outstanding_challenges(self, address: str, now: int) -> int:
        stmt = (
            update(AuthChallenge)
            .where(
                AuthChallenge.address == address,
                AuthChallenge.used_at.is_(None),
                AuthChallenge.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to invalidate challenges") from e
        return result.rowcount

    def find_wallet_binding(self, address: str) -> Optional[WalletBindingRecord]:
        try:
            row = self.db.query(WalletBinding).filter(WalletBinding.address == address.lower()).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to query wallet") from e
        if row is None:
            return None
        return WalletBindingRecord(
            address=row.address,
            identity_id=row.identity_id,
            is_primary=bool(row.is_primary),
            is_verified=bool(row.is_verified),
        )

    def record_wallet_login(self, address: str, now: int) -> bool:
        stmt = (
            update(WalletBinding)
            .where(WalletBinding.address == address.lower())
            .values(is_verified=True, last_used_at=datetime.fromtimestamp(now, tz=timezone.utc))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to update wallet") from e
        return result.rowcount == 1

    def find_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        try:
            row = (
                self.db.query(Identity)
                .populate_existing()
                .filter(Identity.id == identity_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError("failed to query identity") from e
        if row is None:
            return None
        role = row.role.value if hasattr(row.role, "value") else str(row.role)
        return IdentityRecord(
            id=row.id,
            role=role,
            is_active=bool(row.is_active),
            full_name=row.full_name or "",
            email=row.email or "",
        )
