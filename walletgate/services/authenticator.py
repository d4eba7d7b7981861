"""
Wallet login orchestration.

issue_challenge -> (client signs) -> login:
    redeem challenge -> resolve identity -> record wallet login -> issue session
"""

import logging
from dataclasses import dataclass

from walletgate.core.clock import Clock, SystemClock
from walletgate.core.config import Settings
from walletgate.core.errors import AuthFailure
from walletgate.core.jwt_utils import TokenConfig
from walletgate.services.challenge import ChallengeIssuer, ChallengeRedeemer, IssuedChallenge
from walletgate.services.identity import IdentityBinder
from walletgate.services.record_store import IdentityRecord, RecordStore
from walletgate.services.session import IssuedSession, SessionIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    session: IssuedSession
    identity: IdentityRecord


class WalletAuthenticator:
    def __init__(
        self,
        issuer: ChallengeIssuer,
        redeemer: ChallengeRedeemer,
        binder: IdentityBinder,
        sessions: SessionIssuer,
        clock: Clock | None = None,
    ) -> None:
        self.issuer = issuer
        self.redeemer = redeemer
        self.binder = binder
        self.sessions = sessions
        self.clock = clock or SystemClock()

    @classmethod
    def build(
        cls,
        store: RecordStore,
        token_config: TokenConfig,
        settings: Settings,
        clock: Clock | None = None,
    ) -> "WalletAuthenticator":
        clock = clock or SystemClock()
        return cls(
            issuer=ChallengeIssuer(
                store,
                domain=settings.APP_DOMAIN,
                clock=clock,
                ttl_seconds=settings.NONCE_EXPIRY_SECONDS,
                insert_attempts=settings.NONCE_INSERT_ATTEMPTS,
                supersede_prior=settings.SUPERSEDE_PRIOR_CHALLENGES,
            ),
            redeemer=ChallengeRedeemer(store, clock=clock),
            binder=IdentityBinder(store),
            sessions=SessionIssuer(token_config, clock=clock),
            clock=clock,
        )

    def issue_challenge(self, address: str) -> IssuedChallenge | AuthFailure:
        return self.issuer.issue_challenge(address)

    def login(self, address: str, nonce: str, signature: str) -> LoginResult | AuthFailure:
        redeemed = self.redeemer.redeem(address, nonce, signature)
        if isinstance(redeemed, AuthFailure):
            return redeemed

        identity = self.binder.resolve_identity(redeemed.address)
        if isinstance(identity, AuthFailure):
            logger.info("login refused for %s: %s", redeemed.address[:10], identity.kind.value)
            return identity

        self.binder.bind_login(redeemed.address, self.clock.now())
        session = self.sessions.issue(identity, redeemed.address)
        logger.info("login succeeded for identity %s", identity.id)
        return LoginResult(session=session, identity=identity)
