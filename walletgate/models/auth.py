from sqlalchemy import BigInteger, Column, Index, String, Text

from walletgate.db.base import Base


class AuthChallenge(Base):
    """Model for storing wallet authentication challenges.

    Timestamps are UTC epoch seconds. ``used_at`` is null until the challenge is
    redeemed, and is only ever set through a conditional update on ``used_at IS NULL``.

    Example:
    {
        "id": "7d9c1c0e-3f8a-4b3e-9c55-1f0b2a7d9e11",
        "address": "0x52908400098527886e0f7030069857d2e4169ee7",
        "nonce": "a1b2c3...",
        "message": "example.com wants you to sign in with your Ethereum account:...",
        "expires_at": 1763462100,
        "used_at": null,
        "created_at": 1763461800
    }
    """

    __tablename__ = "auth_challenges"
    __table_args__ = (
        Index("ix_auth_challenges_addr", "address"),
        Index("ix_auth_challenges_expiry", "expires_at"),
    )

    id = Column(String(36), primary_key=True)
    address = Column(String(42), nullable=False)  # stored lowercase
    nonce = Column(String(160), nullable=False, unique=True)
    message = Column(Text, nullable=False)  # exact message to sign
    expires_at = Column(BigInteger, nullable=False)
    used_at = Column(BigInteger, nullable=True)
    created_at = Column(BigInteger, nullable=False)
