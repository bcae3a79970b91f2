"""Repository for User database operations (the credential store)."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from profilehub.auth.passwords import DUMMY_PASSWORD_HASH, hash_password, verify_password
from profilehub.database.models import UserDB, enum_to_value
from profilehub.errors import DuplicateEmailError, PersistError, UserNotFoundError, ValidationError
from profilehub.models.user import User, UserCreate

logger = logging.getLogger(__name__)

# Attributes a partial update may touch.
UPDATABLE_FIELDS = ("first_name", "last_name", "email", "password", "dob", "gender", "hobbies", "photo", "is_email_verified")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _get_db(self, user_id: str) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self._get_db(user_id)
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        user_db = self.db.query(UserDB).filter(UserDB.email == normalize_email(email)).first()
        return user_db.to_pydantic() if user_db else None

    def list_all(self) -> List[User]:
        """Get all users, newest first."""
        users_db = self.db.query(UserDB).order_by(desc(UserDB.created_at)).all()
        return [user_db.to_pydantic() for user_db in users_db]

    def create(self, fields: UserCreate) -> User:
        """Create a new user, hashing the password before it is stored.

        Raises:
            ValidationError: If no photo locator is supplied
            DuplicateEmailError: If the email is already registered
            PersistError: For any other database failure
        """
        if not fields.photo:
            raise ValidationError.single("photo", "Photo is required")

        now = datetime.utcnow()
        user = User(
            id=str(uuid.uuid4()),
            first_name=fields.first_name,
            last_name=fields.last_name,
            email=normalize_email(fields.email),
            password_hash=hash_password(fields.password),
            dob=fields.dob,
            gender=fields.gender,
            hobbies=list(fields.hobbies),
            photo=fields.photo,
            is_email_verified=False,
            created_at=now,
            updated_at=now,
        )
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}: {user.email}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Rejected duplicate email on create: {user.email}")
            raise DuplicateEmailError() from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise PersistError(detail=str(e)) from e

    def update(self, user_id: str, changes: Dict[str, Any]) -> User:
        """Apply a partial update.

        A ``password`` entry is always hashed before it is stored; callers
        only pass it when the password actually changes.

        Raises:
            UserNotFoundError: If no user has this ID
            DuplicateEmailError: If the new email belongs to another user
            PersistError: For any other database failure
        """
        user_db = self._get_db(user_id)
        if not user_db:
            raise UserNotFoundError()

        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                raise ValueError(f"Field {field!r} cannot be updated")
            if field == "password":
                user_db.password_hash = hash_password(value)
            elif field == "email":
                user_db.email = normalize_email(value)
            elif field == "gender":
                user_db.gender = enum_to_value(value)
            elif field == "hobbies":
                user_db.hobbies = list(value)
            else:
                setattr(user_db, field, value)
        user_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user_id}: {sorted(changes)}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Rejected duplicate email on update of user {user_id}")
            raise DuplicateEmailError() from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise PersistError(detail=str(e)) from e

    def delete(self, user_id: str) -> None:
        """Delete a user record.

        Raises:
            UserNotFoundError: If no user has this ID
        """
        user_db = self._get_db(user_id)
        if not user_db:
            raise UserNotFoundError()
        try:
            self.db.delete(user_db)
            self.db.commit()
            logger.debug(f"Deleted user {user_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {type(e).__name__}: {str(e)}")
            raise PersistError(detail=str(e)) from e

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the password matches, otherwise None."""
        user = self.get_by_email(email)
        if user is None:
            verify_password(password, DUMMY_PASSWORD_HASH)
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user
