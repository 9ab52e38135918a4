"""
Authentication utilities.
Verifies Clerk session tokens and exposes the caller's Clerk user ID.
"""
from typing import Optional

import jwt
from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from storytime.shared.logging import ServiceLogger
from storytime.shared.config import AuthConfig, auth_config

logger = ServiceLogger("auth")

# Security scheme; missing credentials are reported by get_current_user_id
security = HTTPBearer(auto_error=False)

UNAUTHORIZED = {"error": "Unauthorized"}


class AuthManager:
    """Validates Clerk session JWTs"""

    def __init__(self, config: AuthConfig = None):
        self.config = config or auth_config
        self._jwks_client = None

    def _signing_key(self, token: str):
        """Resolve the RS256 verification key for a token"""
        if self.config.clerk_jwt_key:
            return self.config.clerk_jwt_key

        if self._jwks_client is None:
            self._jwks_client = jwt.PyJWKClient(self.config.clerk_jwks_url)
        return self._jwks_client.get_signing_key_from_jwt(token).key

    def decode_token(self, token: str) -> dict:
        """
        Decode and verify a Clerk session token.

        Raises:
            jwt.PyJWTError: If the token is invalid
            PermissionError: If no verification key is configured
        """
        if not self.config.verification_configured:
            if not self.config.auth_allow_unverified:
                raise PermissionError("Clerk token verification is not configured")

            logger.warning("Decoding session token without signature verification")
            return jwt.decode(token, options={"verify_signature": False})

        options = {"require": ["sub", "exp"]}
        kwargs = {}
        if self.config.clerk_issuer:
            kwargs["issuer"] = self.config.clerk_issuer
        else:
            options["verify_iss"] = False

        claims = jwt.decode(
            token,
            self._signing_key(token),
            algorithms=["RS256"],
            options=options,
            leeway=5,
            **kwargs
        )

        authorized_parties = self.config.clerk_authorized_parties
        azp = claims.get("azp")
        if authorized_parties and azp and azp not in authorized_parties:
            raise jwt.InvalidTokenError(f"Unauthorized party: {azp}")

        return claims

    def get_user_id_from_token(self, authorization_header: str) -> Optional[str]:
        """
        Extract the Clerk user ID from a bearer token.

        Args:
            authorization_header: Authorization header with Bearer token

        Returns:
            User ID if valid, None otherwise
        """
        if not authorization_header or not authorization_header.startswith('Bearer '):
            return None

        token = authorization_header[len('Bearer '):].strip()
        if not token:
            return None

        try:
            claims = self.decode_token(token)
        except (jwt.PyJWTError, PermissionError) as e:
            logger.warning(f"Failed to verify session token: {e}")
            return None

        user_id = claims.get('sub')
        if user_id:
            logger.debug(f"Authenticated Clerk user: {user_id}")
        return user_id or None


# Global auth manager instance
auth_manager = AuthManager()


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Get the authenticated Clerk user ID.

    Raises:
        HTTPException: 401 when the token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED
        )

    user_id = auth_manager.get_user_id_from_token(f"Bearer {credentials.credentials}")

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED
        )

    return user_id
