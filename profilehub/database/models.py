"""SQLAlchemy database models for profilehub."""

from datetime import datetime
from typing import Type, TypeVar, Union
import uuid
from sqlalchemy import Boolean, Column, DateTime, JSON, String, UniqueConstraint

from profilehub.database.database import Base
from profilehub.models.user import Gender

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"
    __table_args__ = (
        # Uniqueness lives in the database so concurrent registrations cannot both win.
        UniqueConstraint("email", name="uq_users_email"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Profile
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    dob = Column(DateTime, nullable=False)
    gender = Column(String, nullable=False)
    hobbies = Column(JSON, nullable=False, default=list)

    # Blob store locator (s3://bucket/key)
    photo = Column(String, nullable=False)

    is_email_verified = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from profilehub.models.user import User
        return User(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            password_hash=self.password_hash,
            dob=self.dob,
            gender=value_to_enum(self.gender, Gender, Gender.OTHER),
            hobbies=self.hobbies if isinstance(self.hobbies, list) else [],
            photo=self.photo,
            is_email_verified=bool(self.is_email_verified),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password_hash=user.password_hash,
            dob=user.dob,
            gender=enum_to_value(user.gender),
            hobbies=list(user.hobbies),
            photo=user.photo,
            is_email_verified=user.is_email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
