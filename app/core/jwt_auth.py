import logging
from typing import Any, Dict, Optional

import jwt

from app.core.config import JWT_ALGORITHM, JWT_SECRET_KEY
from app.core.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


class JWTVerifier:
    """Verifies access tokens issued by the auth service"""

    def __init__(self, secret_key: Optional[str] = None, algorithm: str = None):
        self.secret_key = secret_key or JWT_SECRET_KEY
        self.algorithm = algorithm or JWT_ALGORITHM

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify JWT token

        Returns:
            Decoded payload. ``sub`` carries the user id and ``role`` one of
            ADMIN / STAFF.

        Raises:
            AuthenticationError: If token is invalid, expired or malformed
        """
        if not self.secret_key:
            raise ConfigurationError("JWT_SECRET_KEY", "JWT secret is not configured")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            logger.warning("Invalid JWT token provided")
            raise AuthenticationError("Invalid token")

        if payload.get("type", "access_token") != "access_token":
            raise AuthenticationError("Invalid token type")

        if not payload.get("sub") or not payload.get("role"):
            raise AuthenticationError("Token is missing subject or role")

        return payload


jwt_verifier = JWTVerifier()
