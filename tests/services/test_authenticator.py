from walletgate.core.config import Settings
from walletgate.core.errors import AuthErrorKind, AuthFailure
from walletgate.services.authenticator import LoginResult, WalletAuthenticator
from walletgate.services.session import SessionClaims, SessionValidator
from tests.conftest import sign


def _authenticator(memory_store, token_config, clock) -> WalletAuthenticator:
    settings = Settings(APP_DOMAIN="walletgate.test", NONCE_EXPIRY_SECONDS=300)
    return WalletAuthenticator.build(memory_store, token_config, settings, clock=clock)


class TestWalletAuthenticator:
    def test_end_to_end(self, memory_store, token_config, clock, alice):
        auth = _authenticator(memory_store, token_config, clock)

        challenge = auth.issue_challenge("0x" + alice.address[2:].upper())
        assert challenge.expires_at == clock.now() + 300
        signature = sign(alice, challenge.message)

        result = auth.login(alice.address.lower(), challenge.nonce, signature)
        assert isinstance(result, LoginResult)
        assert result.identity.id == "id-alice"
        assert result.session.claims.role == "ADMIN"

        claims = SessionValidator(token_config, memory_store, clock=clock).validate(result.session.token)
        assert isinstance(claims, SessionClaims)
        assert claims.address == alice.address.lower()

        replay = auth.login(alice.address.lower(), challenge.nonce, signature)
        assert isinstance(replay, AuthFailure)
        assert replay.kind is AuthErrorKind.INVALID_CHALLENGE

    def test_login_marks_wallet_verified(self, memory_store, token_config, clock, bob):
        auth = _authenticator(memory_store, token_config, clock)
        challenge = auth.issue_challenge(bob.address)
        auth.login(bob.address, challenge.nonce, sign(bob, challenge.message))
        assert memory_store.find_wallet_binding(bob.address).is_verified is True
        assert memory_store.wallet_last_used(bob.address) == clock.now()

    def test_unlinked_wallet_after_valid_signature(self, memory_store, token_config, clock, mallory):
        auth = _authenticator(memory_store, token_config, clock)
        challenge = auth.issue_challenge(mallory.address)
        result = auth.login(mallory.address, challenge.nonce, sign(mallory, challenge.message))
        assert result.kind is AuthErrorKind.WALLET_NOT_LINKED

    def test_inactive_identity_consumes_challenge(self, memory_store, token_config, clock, bob):
        memory_store.set_identity_active("id-bob", False)
        auth = _authenticator(memory_store, token_config, clock)
        challenge = auth.issue_challenge(bob.address)
        signature = sign(bob, challenge.message)
        assert auth.login(bob.address, challenge.nonce, signature).kind is AuthErrorKind.IDENTITY_INACTIVE
        assert memory_store.find_wallet_binding(bob.address).is_verified is False
        memory_store.set_identity_active("id-bob", True)
        assert auth.login(bob.address, challenge.nonce, signature).kind is AuthErrorKind.INVALID_CHALLENGE

    def test_signature_mismatch_issues_nothing(self, memory_store, token_config, clock, alice, mallory):
        auth = _authenticator(memory_store, token_config, clock)
        challenge = auth.issue_challenge(alice.address)
        result = auth.login(alice.address, challenge.nonce, sign(mallory, challenge.message))
        assert result.kind is AuthErrorKind.SIGNATURE_MISMATCH
        assert memory_store.find_wallet_binding(alice.address).is_verified is False
