"""FastAPI dependencies for authentication."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from profilehub.auth.jwt import TokenIssuer, default_issuer
from profilehub.errors import UnauthorizedError

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_issuer() -> TokenIssuer:
    """Token issuer used to mint and verify session tokens."""
    return default_issuer


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """Resolve the authenticated user ID from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return token_issuer.verify(credentials.credentials)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
