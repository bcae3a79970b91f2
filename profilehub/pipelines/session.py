"""Password login."""

import logging
from typing import Optional, Tuple

from profilehub import config
from profilehub.auth.jwt import TokenIssuer
from profilehub.database.user_repository import UserRepository
from profilehub.errors import UnauthorizedError
from profilehub.integrations.blob_store import S3BlobStore
from profilehub.models.user import PublicUser

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def login(
    repository: UserRepository,
    token_issuer: TokenIssuer,
    blob_store: S3BlobStore,
    email: str,
    password: str,
    photo_url_ttl: Optional[int] = None,
) -> Tuple[str, PublicUser]:
    """Check credentials and mint a session token.

    Unknown email and wrong password fail identically.

    Raises:
        UnauthorizedError: If the credentials do not match a user
    """
    user = repository.authenticate(email, password)
    if user is None:
        logger.info("Rejected login attempt")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    token = token_issuer.issue(user.id)
    photo_url = blob_store.signed_url(user.photo, photo_url_ttl or config.PHOTO_URL_EXPIRY_SECONDS)
    return token, user.to_public(photo_url)
