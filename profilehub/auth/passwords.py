"""Salted one-way password hashing."""

from passlib.context import CryptContext

# Pure passlib scheme; no bcrypt backend required.
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Verified against when the email is unknown so both login failures cost the same.
DUMMY_PASSWORD_HASH = _pwd_context.hash("profilehub-no-such-user")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        # Unrecognised or corrupt hash
        return False

