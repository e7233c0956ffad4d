import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

import jwt
from jwcrypto import jwk
from fastapi_users import exceptions, models
from fastapi_users.authentication.strategy.jwt import JWTStrategy

from cardwise.core.config import settings
from cardwise.core.logging import get_logger

logger = get_logger(__name__)


def load_or_create_rsa_key(key_file: Path) -> jwk.JWK:
    """Load the signing key from ``key_file``, generating and saving one on first use."""
    if key_file.exists():
        return jwk.JWK.from_pem(key_file.read_bytes())

    logger.info(f"Generating new RSA signing key at {key_file}")
    key = jwk.JWK.generate(kty="RSA", size=2048)
    key_file.parent.mkdir(parents=True, exist_ok=True)
    key_file.write_bytes(key.export_to_pem(private_key=True, password=None))
    return key


class RS256JWTStrategyWithKid(JWTStrategy[models.UP, models.ID]):
    """
    JWT strategy that signs with RS256 and advertises its key id, so clients can
    verify tokens against the JWKS endpoint.
    """

    def __init__(self, lifetime_seconds: int, key_id: str = "v1", key_file: str = "jwt_rsa_key.pem"):
        self.key_id = key_id
        self.rsa_key = load_or_create_rsa_key(Path(key_file))

        private_pem = self.rsa_key.export_to_pem(private_key=True, password=None)
        public_pem = self.rsa_key.export_to_pem(private_key=False, password=None)

        super().__init__(
            secret=private_pem,
            lifetime_seconds=lifetime_seconds,
            token_audience=[settings.jwt.application_id],
            algorithm="RS256",
            public_key=public_pem,
        )

        self.public_jwk = json.loads(self.rsa_key.export_public())
        self.public_jwk["kid"] = self.key_id

    async def write_token(self, user: models.UP) -> str:
        """Generate JWT token with kid header"""
        now = int(time.time())
        data: Dict[str, Any] = {
            "sub": f"user:{user.id}",
            "user_id": str(user.id),
            "aud": self.token_audience,
            "iss": settings.jwt.issuer,
            "iat": now,
        }
        if self.lifetime_seconds:
            data["exp"] = now + self.lifetime_seconds
        if getattr(user, "email", None):
            data["email"] = str(user.email)
        persona = getattr(user, "persona", None)
        if persona is not None:
            data["persona"] = persona.value

        return jwt.encode(
            data,
            self.encode_key,
            algorithm=self.algorithm,
            headers={"kid": self.key_id},
        )

    async def read_token(
        self, token: Optional[str], user_manager
    ) -> Optional[models.UP]:
        if token is None:
            return None

        try:
            payload = jwt.decode(
                token,
                self.decode_key,
                algorithms=[self.algorithm],
                audience=self.token_audience,
                issuer=settings.jwt.issuer,
            )
            user_id = payload.get("user_id")
            if user_id is None:
                return None
            return await user_manager.get(user_manager.parse_id(user_id))
        except (jwt.PyJWTError, exceptions.UserNotExists, exceptions.InvalidID):
            return None

    def get_jwks(self) -> Dict[str, Any]:
        """Get JWKS for public key distribution"""
        return {"keys": [self.public_jwk]}
