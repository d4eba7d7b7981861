"""
Ethereum Wallet Authentication Utilities

This module handles Ethereum-specific cryptographic operations for wallet authentication.
It implements the signature verification flow using EIP-191 (``personal_sign``).

Authentication Flow:
1. Backend generates a random nonce -> generate_nonce()
2. Backend builds the exact text the wallet must sign -> build_sign_in_message()
3. Frontend signs the message with the wallet (personal_sign)
4. Frontend sends: address, nonce, signature
5. Backend verifies: verify_signature()
   - Hashes the stored message with the EIP-191 prefix
   - Recovers the signer address from the signature
   - Compares it with the claimed address, case-insensitively

The signature verification uses:
- secp256k1 ECDSA public key recovery (Ethereum's signature algorithm)
- eth_account library for the EIP-191 digest and recovery
"""

import logging
import re
import secrets
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 32  # 32 bytes = 64 hex characters
SIGNATURE_NUM_BYTES = 65  # r (32) + s (32) + v (1)

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for wallet authentication.

    Args:
        num_bytes: Number of random bytes to generate (default: 32 = 64 hex chars)

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes < 16:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


def normalize_address(address: Optional[str]) -> Optional[str]:
    """
    Return the canonical lowercase ``0x`` form of an account address, or None if the
    input is not a 20-byte hex address. Accepts any letter case and a missing prefix.
    """
    if not isinstance(address, str):
        return None
    value = address.strip().lower()
    if not value.startswith("0x"):
        value = "0x" + value
    if not _ADDRESS_RE.match(value):
        return None
    return value


def build_sign_in_message(domain: str, address: str, nonce: str) -> str:
    """
    Build the text the wallet signs.

    The stored copy of this string is the only thing ever verified, so it must be
    byte-identical to what the signer was shown: fixed lines, no trailing whitespace.
    """
    lines = [
        f"{domain} wants you to sign in with your Ethereum account:",
        address,
        "",
        "This request will not trigger a blockchain transaction or cost any gas fees.",
        "",
        f"Nonce: {nonce}",
    ]
    return "\n".join(lines)


def _signature_bytes(signature: str) -> Optional[bytes]:
    """Helper: decode a 0x-prefixed (or bare) hex signature, None if malformed."""
    if not isinstance(signature, str):
        return None
    value = signature.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    if len(value) != SIGNATURE_NUM_BYTES * 2 or not _HEX_RE.match(value):
        return None
    return bytes.fromhex(value)


def recover_address(message: str, signature: str) -> Optional[str]:
    """
    Recover the lowercase address that produced ``signature`` over ``message``.

    Returns None for malformed signatures or when recovery fails.
    """
    raw = _signature_bytes(signature)
    if raw is None:
        return None
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=raw)
    except Exception as e:  # eth_keys raises several unrelated types on bad v/r/s
        logger.debug("signature recovery failed: %s", type(e).__name__)
        return None
    return recovered.lower()


def verify_signature(claimed_address: str, message: str, signature: str) -> bool:
    """
    Verify an EIP-191 signature over ``message`` against ``claimed_address``.

    This never raises: malformed input simply does not verify.

    Example:
        if verify_signature("0xabc...", stored_message, "0x1b2c..."):
            # the caller controls the key for 0xabc...
    """
    expected = normalize_address(claimed_address)
    if expected is None:
        return False
    recovered = recover_address(message, signature)
    if recovered is None:
        return False
    return secrets.compare_digest(recovered, expected)
