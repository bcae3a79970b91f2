"""Error taxonomy shared by the repository, clients, pipelines and API."""

from typing import Dict, List, Optional


class ProfileHubError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        self.message = message or self.default_message
        # Underlying error text, only exposed to clients in DEBUG mode.
        self.detail = detail
        super().__init__(self.message)


class ValidationError(ProfileHubError):
    """One or more fields failed validation."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)


class DuplicateEmailError(ProfileHubError):
    status_code = 400
    default_message = "User already exists"


class UserNotFoundError(ProfileHubError):
    status_code = 404
    default_message = "User not found"


class UnauthorizedError(ProfileHubError):
    status_code = 401
    default_message = "Not authenticated"


class UploadError(ProfileHubError):
    default_message = "Error uploading photo to cloud storage"


class DeleteError(ProfileHubError):
    """Blob deletion failed. Pipelines log and swallow this."""

    default_message = "Error deleting photo from cloud storage"


class DeliveryError(ProfileHubError):
    default_message = "Error sending email"


class PersistError(ProfileHubError):
    default_message = "Error saving user"


class InternalError(ProfileHubError):
    pass
