"""JWT utilities for verifying identity-provider ID tokens using authlib"""

from typing import Dict, Optional

import httpx
from aiocache import Cache, cached
from authlib.jose import JoseError, JsonWebToken
from authlib.jose.errors import InvalidTokenError

from fest_registry.auth.models import Principal
from fest_registry.config import config
from fest_registry.logging_config import get_logger

logger = get_logger(__name__)


class JWTUtils:
    """ID token verification against the provider's JWKS (cached)"""

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self.jwt = JsonWebToken(["RS256"])
        self.jwks_url = jwks_url or config.get("identity_jwks_url")
        self.expected_issuer = issuer or config.get("identity_issuer")
        self.expected_audience = audience or config.get("identity_audience")

    @cached(ttl=3600, cache=Cache.MEMORY)
    async def _fetch_jwks(self) -> Dict:
        """
        Fetch the JWKS from the identity provider (cached for an hour)

        Returns:
            JWKS dictionary
        """
        if not self.jwks_url:
            raise InvalidTokenError("IDENTITY_JWKS_URL is not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.jwks_url, timeout=10.0)
                response.raise_for_status()
                jwks_data = response.json()

                logger.info(f"Successfully fetched JWKS from {self.jwks_url}")
                return jwks_data

        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch JWKS from {self.jwks_url}: {e}")
            raise InvalidTokenError(f"Unable to fetch JWKS: {e}")

    async def _verify_token(self, token: str) -> Dict:
        """
        Verify signature, issuer, audience and expiry of an ID token

        Raises:
            InvalidTokenError: If token is invalid or expired
        """
        jwks = await self._fetch_jwks()

        claims_options = {"exp": {"essential": True}}
        if self.expected_issuer:
            claims_options["iss"] = {"essential": True, "value": self.expected_issuer}
        if self.expected_audience:
            claims_options["aud"] = {"essential": True, "value": self.expected_audience}

        try:
            claims = self.jwt.decode(token, jwks, claims_options=claims_options)
            claims.validate()
            return claims
        except JoseError as e:
            logger.warning(f"JWT validation failed: {e}")
            raise InvalidTokenError(f"Token validation failed: {e}")

    async def extract_principal(self, token: str) -> Principal:
        """
        Extract the principal from an ID token

        Raises:
            InvalidTokenError: If token is invalid or missing the subject
        """
        claims = await self._verify_token(token)
        user_id = claims.get("sub")

        if not user_id:
            raise InvalidTokenError("Token missing 'sub' claim")

        return Principal(
            user_id=user_id,
            email=claims.get("email"),
            name=claims.get("name"),
            claims={
                "iss": claims.get("iss"),
                "aud": claims.get("aud"),
                "exp": claims.get("exp"),
                "iat": claims.get("iat"),
                "email_verified": claims.get("email_verified"),
            },
        )


# Global JWT utilities instance
jwt_utils = JWTUtils()
