"""
Challenge issuance and redemption.

A challenge moves through exactly one transition, unused -> used. Redemption looks the
challenge up, verifies the signature over the stored message and then claims it with
the store's conditional ``mark_challenge_used``; losing that race is reported the same
way as a missing, expired or reused challenge.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from walletgate.core.clock import Clock, SystemClock
from walletgate.core.errors import AuthErrorKind, AuthFailure, ChallengeConflictError, RecordStoreError
from walletgate.core.eth_auth import build_sign_in_message, generate_nonce, normalize_address, verify_signature
from walletgate.services.record_store import ChallengeRecord, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_INSERT_ATTEMPTS = 3


@dataclass(frozen=True)
class IssuedChallenge:
    nonce: str
    message: str
    expires_at: int


@dataclass(frozen=True)
class RedeemedChallenge:
    challenge_id: str
    address: str
    used_at: int


class ChallengeIssuer:
    def __init__(
        self,
        store: RecordStore,
        domain: str,
        clock: Clock | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        insert_attempts: int = DEFAULT_INSERT_ATTEMPTS,
        supersede_prior: bool = True,
        nonce_factory: Callable[[], str] = generate_nonce,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.store = store
        self.domain = domain
        self.clock = clock or SystemClock()
        self.ttl_seconds = ttl_seconds
        self.insert_attempts = max(1, insert_attempts)
        self.supersede_prior = supersede_prior
        self.nonce_factory = nonce_factory

    def issue_challenge(self, address: str) -> IssuedChallenge | AuthFailure:
        """Create and store a challenge for ``address``. Never consults wallet bindings."""
        normalized = normalize_address(address)
        if normalized is None:
            return AuthFailure(AuthErrorKind.INVALID_ADDRESS)

        now = self.clock.now()
        expires_at = now + self.ttl_seconds

        try:
            # not atomic with the insert below: concurrent issues for one address can both stay open
            if self.supersede_prior:
                closed = self.store.invalidate_outstanding_challenges(normalized, now)
                if closed:
                    logger.info("superseded %d outstanding challenge(s) for %s", closed, normalized[:10])

            for attempt in range(1, self.insert_attempts + 1):
                nonce = self.nonce_factory()
                message = build_sign_in_message(self.domain, normalized, nonce)
                record = ChallengeRecord(
                    id=str(uuid.uuid4()),
                    address=normalized,
                    nonce=nonce,
                    message=message,
                    expires_at=expires_at,
                    created_at=now,
                )
                try:
                    self.store.insert_challenge(record)
                except ChallengeConflictError:
                    logger.warning("nonce collision on attempt %d for %s", attempt, normalized[:10])
                    continue
                logger.info("challenge issued for %s, nonce %s..., expires %d", normalized[:10], nonce[:8], expires_at)
                return IssuedChallenge(nonce=nonce, message=message, expires_at=expires_at)
        except RecordStoreError:
            logger.exception("record store failure while issuing challenge")
            return AuthFailure(AuthErrorKind.CHALLENGE_CREATION_FAILED)

        logger.error("giving up after %d nonce collisions", self.insert_attempts)
        return AuthFailure(AuthErrorKind.CHALLENGE_CREATION_FAILED)


class ChallengeRedeemer:
    def __init__(
        self,
        store: RecordStore,
        clock: Clock | None = None,
        verifier: Callable[[str, str, str], bool] = verify_signature,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.verifier = verifier

    def redeem(self, address: str, nonce: str, signature: str) -> RedeemedChallenge | AuthFailure:
        normalized = normalize_address(address)
        if normalized is None:
            return AuthFailure(AuthErrorKind.INVALID_ADDRESS)
        if not nonce or not isinstance(nonce, str):
            return AuthFailure(AuthErrorKind.INVALID_CHALLENGE)

        now = self.clock.now()
        record = self.store.find_unredeemed_challenge(normalized, nonce.strip(), now)
        if record is None:
            logger.info("redeem rejected for %s: no open challenge", normalized[:10])
            return AuthFailure(AuthErrorKind.INVALID_CHALLENGE)

        # only the stored message is ever verified
        if not self.verifier(normalized, record.message, signature):
            logger.info("redeem rejected for %s: signature mismatch", normalized[:10])
            return AuthFailure(AuthErrorKind.SIGNATURE_MISMATCH)

        if not self.store.mark_challenge_used(record.id, now):
            logger.info("redeem rejected for %s: challenge already claimed", normalized[:10])
            return AuthFailure(AuthErrorKind.INVALID_CHALLENGE)

        return RedeemedChallenge(challenge_id=record.id, address=normalized, used_at=now)
