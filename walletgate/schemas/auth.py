from pydantic import BaseModel, Field

from walletgate.schemas.my_base_model import CustomBaseModel


class ChallengeRequest(BaseModel):
    """Request model for challenge generation - input validation"""

    address: str = Field(..., max_length=128, description="Ethereum wallet address, any case, 0x prefix optional")


class ChallengeResponse(CustomBaseModel):
    """Response model for challenge generation - output"""

    nonceValue: str = ""
    message: str = ""
    expiresAt: str = ""  # ISO 8601, UTC


class VerifyRequest(BaseModel):
    """Request model for wallet verification - input validation"""

    address: str = Field(..., max_length=128, description="Wallet address the challenge was issued to")
    nonceValue: str = Field(..., min_length=1, max_length=160, description="Nonce from /auth/challenge")
    signature: str = Field(..., min_length=1, max_length=256, description="personal_sign signature, 0x hex")


class IdentitySummary(CustomBaseModel):
    id: str = ""
    fullName: str = ""
    email: str = ""
    role: str = ""
    walletAddress: str = ""


class VerifyResponse(CustomBaseModel):
    """Response model for authentication - output"""

    token: str
    tokenType: str = "bearer"
    expiresAt: str = ""
    identity: IdentitySummary = Field(default_factory=IdentitySummary)


class MeResponse(CustomBaseModel):
    identityId: str = ""
    role: str = ""
    address: str = ""
    fullName: str = ""
    email: str = ""


class AdminResponse(CustomBaseModel):
    message: str = ""
    role: str = ""
