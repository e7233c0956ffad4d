"""Tests for RS256 token signing and the published JWKS."""

from types import SimpleNamespace

import jwt

from cardwise.core.config import settings
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.core.jwt_strategy import RS256JWTStrategyWithKid, load_or_create_rsa_key


class TestSigningKey:
    def test_key_is_created_once(self, tmp_path) -> None:
        key_file = tmp_path / "keys" / "jwt.pem"

        first = load_or_create_rsa_key(key_file)
        second = load_or_create_rsa_key(key_file)

        assert key_file.exists()
        assert first.thumbprint() == second.thumbprint()


class TestStrategy:
    async def test_token_claims(self, tmp_path) -> None:
        strategy = RS256JWTStrategyWithKid(
            lifetime_seconds=60, key_id="v1", key_file=str(tmp_path / "jwt.pem")
        )
        user = SimpleNamespace(id=42, email="learner@example.com", persona=Persona.TRAVELER)

        token = await strategy.write_token(user)

        assert jwt.get_unverified_header(token)["kid"] == "v1"
        claims = jwt.decode(
            token,
            strategy.decode_key,
            algorithms=["RS256"],
            audience=[settings.jwt.application_id],
            issuer=settings.jwt.issuer,
        )
        assert claims["sub"] == "user:42"
        assert claims["user_id"] == "42"
        assert claims["email"] == "learner@example.com"
        assert claims["persona"] == "traveler"
        assert claims["exp"] - claims["iat"] == 60

    async def test_garbage_token_reads_as_anonymous(self, tmp_path) -> None:
        strategy = RS256JWTStrategyWithKid(lifetime_seconds=60, key_file=str(tmp_path / "jwt.pem"))

        assert await strategy.read_token("not-a-token", user_manager=None) is None
        assert await strategy.read_token(None, user_manager=None) is None

    def test_jwks_advertises_kid(self, tmp_path) -> None:
        strategy = RS256JWTStrategyWithKid(lifetime_seconds=60, key_file=str(tmp_path / "jwt.pem"))

        keys = strategy.get_jwks()["keys"]

        assert len(keys) == 1
        assert keys[0]["kid"] == "v1"
        assert keys[0]["kty"] == "RSA"
        assert "d" not in keys[0]
