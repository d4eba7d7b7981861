import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.sql import func

from walletgate.db.base import Base


class IdentityRole(str, Enum):
    USER = "USER"
    APPROVER = "APPROVER"
    ADMIN = "ADMIN"


def _uuid() -> str:
    return str(uuid.uuid4())


class Identity(Base):
    """Model for the accounts that wallets log in as

    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "full_name": "Ada Lovelace",
        "email": "ada@example.com",
        "role": "ADMIN",
        "is_active": true
    }
    """

    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=_uuid)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(SAEnum(IdentityRole, name="identity_role"), nullable=False, default=IdentityRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class WalletBinding(Base):
    """Model for wallets linked to an identity

    Addresses are stored lowercase, so the unique constraint is case-insensitive.
    """

    __tablename__ = "wallets"
    __table_args__ = (
        # at most one primary wallet per identity
        Index(
            "ux_wallets_primary_per_identity",
            "identity_id",
            unique=True,
            postgresql_where=text("is_primary = true"),
            sqlite_where=text("is_primary = 1"),
        ),
        Index("ix_wallets_identity", "identity_id"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    identity_id = Column(String(36), ForeignKey("identities.id", ondelete="CASCADE"), nullable=False)
    address = Column(String(42), nullable=False, unique=True)  # 0x + 40 hex, lowercase
    is_primary = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    nickname = Column(String(100), nullable=True)
    wallet_type = Column(String(50), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
