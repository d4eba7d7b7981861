import base64
import json

import jwt
import pytest

from walletgate.core.config import Settings
from walletgate.core.jwt_utils import (
    TokenConfig,
    TokenError,
    TokenExpiredError,
    create_access_token,
    decode_access_token,
)
from tests.conftest import START_TIME, TEST_KEY

WALLET = "0x" + "ab" * 20


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


class TestTokenConfig:
    def test_rejects_short_key(self):
        with pytest.raises(RuntimeError):
            TokenConfig(signing_key="short")

    def test_from_settings_requires_key(self):
        with pytest.raises(RuntimeError):
            TokenConfig.from_settings(Settings(ENCODE_KEY=None))

    def test_from_settings_reads_rotation_keys(self):
        config = TokenConfig.from_settings(
            Settings(ENCODE_KEY=TEST_KEY, ENCODE_PREVIOUS_KEYS="old-key-0123456789abcdef, older-key-0123456789abcdef")
        )
        assert config.verification_keys == [TEST_KEY, "old-key-0123456789abcdef", "older-key-0123456789abcdef"]


class TestAccessToken:
    def test_claims(self, token_config):
        token, expires_at = create_access_token(token_config, "id-1", "ADMIN", WALLET, START_TIME)
        payload = jwt.decode(token, TEST_KEY, algorithms=["HS256"], options={"verify_exp": False, "verify_iat": False})
        assert payload == {"sub": "id-1", "role": "ADMIN", "wallet": WALLET, "iat": START_TIME, "exp": expires_at}
        assert expires_at == START_TIME + token_config.expire_seconds

    def test_requires_subject_and_wallet(self, token_config):
        with pytest.raises(ValueError):
            create_access_token(token_config, "", "USER", WALLET, START_TIME)
        with pytest.raises(ValueError):
            create_access_token(token_config, "id-1", "USER", "", START_TIME)

    def test_decode_round_trip(self, token_config):
        token, _ = create_access_token(token_config, "id-1", "USER", WALLET, START_TIME)
        payload = decode_access_token(token_config, token, START_TIME + 10)
        assert payload["sub"] == "id-1"
        assert payload["wallet"] == WALLET

    def test_expired(self, token_config):
        token, expires_at = create_access_token(token_config, "id-1", "USER", WALLET, START_TIME)
        with pytest.raises(TokenExpiredError):
            decode_access_token(token_config, token, expires_at)

    def test_wrong_key(self, token_config):
        other = TokenConfig(signing_key="another-secret-key-0123456789abcdef")
        token, _ = create_access_token(other, "id-1", "USER", WALLET, START_TIME)
        with pytest.raises(TokenError):
            decode_access_token(token_config, token, START_TIME)

    def test_rotated_key_still_verifies(self):
        old = TokenConfig(signing_key="old-secret-key-0123456789abcdef0123")
        new = TokenConfig(signing_key="new-secret-key-0123456789abcdef0123", previous_keys=(old.signing_key,))
        token, _ = create_access_token(old, "id-1", "USER", WALLET, START_TIME)
        assert decode_access_token(new, token, START_TIME)["sub"] == "id-1"

    def test_tampered_payload(self, token_config):
        token, expires_at = create_access_token(token_config, "id-1", "USER", WALLET, START_TIME)
        header, _, signature = token.split(".")
        forged = _b64({"sub": "id-1", "role": "ADMIN", "wallet": WALLET, "iat": START_TIME, "exp": expires_at})
        with pytest.raises(TokenError):
            decode_access_token(token_config, f"{header}.{forged}.{signature}", START_TIME)

    def test_missing_claim(self, token_config):
        token = jwt.encode({"sub": "id-1", "role": "USER", "iat": START_TIME, "exp": START_TIME + 60}, TEST_KEY, algorithm="HS256")
        with pytest.raises(TokenError):
            decode_access_token(token_config, token, START_TIME)

    def test_alg_none_rejected(self, token_config):
        token = jwt.encode(
            {"sub": "id-1", "role": "ADMIN", "wallet": WALLET, "iat": START_TIME, "exp": START_TIME + 60},
            None,
            algorithm="none",
        )
        with pytest.raises(TokenError):
            decode_access_token(token_config, token, START_TIME)

    @pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
    def test_garbage(self, token_config, token):
        with pytest.raises(TokenError):
            decode_access_token(token_config, token, START_TIME)
