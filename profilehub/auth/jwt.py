"""JWT token generation and validation for profilehub."""

import os
import jwt
from datetime import datetime, timedelta
from typing import Optional, Dict
from dotenv import load_dotenv

from profilehub.errors import UnauthorizedError

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", str(7 * 24)))


class TokenIssuer:
    """Mints and verifies stateless bearer tokens bound to a user ID."""

    def __init__(
        self,
        secret_key: str = JWT_SECRET_KEY,
        algorithm: str = JWT_ALGORITHM,
        expiration: timedelta = timedelta(hours=JWT_EXPIRATION_HOURS),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expiration = expiration

    def issue(self, user_id: str) -> str:
        """Create a signed access token for a user.

        Args:
            user_id: User ID to encode in the ``sub`` and ``userId`` claims

        Returns:
            Encoded JWT token string
        """
        now = datetime.utcnow()
        payload = {
            "sub": user_id,
            "userId": user_id,
            "exp": now + self.expiration,
            "iat": now,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[Dict]:
        """Decode and validate a token, returning its payload or None if invalid."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    def verify(self, token: str) -> str:
        """Return the user ID a token was issued for.

        Raises:
            UnauthorizedError: If the token is expired, malformed or carries no subject
        """
        payload = self.decode(token)
        user_id = payload.get("sub") if payload else None
        if not user_id:
            raise UnauthorizedError("Invalid or expired token")
        return user_id


default_issuer = TokenIssuer()

