"""Read, update and delete operations on existing users."""

import logging
from typing import Any, Dict, List, Optional

from profilehub import config
from profilehub.database.user_repository import UserRepository
from profilehub.errors import DeleteError, ProfileHubError, UserNotFoundError
from profilehub.integrations.blob_store import S3BlobStore
from profilehub.models.user import UPDATE_MESSAGES, PublicUser, User, UserUpdate, parse_fields
from profilehub.pipelines.staging import PhotoStager, PhotoUpload, check_photo

logger = logging.getLogger(__name__)


class ProfilePipeline:
    """User management on top of the credential store and the blob store."""

    def __init__(
        self,
        repository: UserRepository,
        blob_store: S3BlobStore,
        stager: Optional[PhotoStager] = None,
        photo_url_ttl: Optional[int] = None,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.stager = stager or PhotoStager()
        self.photo_url_ttl = photo_url_ttl or config.PHOTO_URL_EXPIRY_SECONDS

    def present(self, user: User) -> PublicUser:
        """External view: no password hash, photo replaced by a fresh signed URL."""
        return user.to_public(self.blob_store.signed_url(user.photo, self.photo_url_ttl))

    def _require(self, user_id: str) -> User:
        user = self.repository.get(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def _discard_photo(self, locator: Optional[str]) -> None:
        try:
            self.blob_store.delete(locator)
        except DeleteError as e:
            logger.warning(f"Ignoring failed photo delete for {locator}: {e.detail or e.message}")

    def list_users(self) -> List[PublicUser]:
        return [self.present(user) for user in self.repository.list_all()]

    def get_user(self, user_id: str) -> PublicUser:
        return self.present(self._require(user_id))

    def get_current_user(self, user_id: str) -> PublicUser:
        """Profile of the authenticated caller."""
        return self.get_user(user_id)

    def update_user(self, user_id: str, fields: Dict[str, Any], photo: Optional[PhotoUpload] = None) -> PublicUser:
        """Merge the provided fields into a user, optionally replacing the photo.

        A new photo is uploaded before the old one is deleted; failing to
        delete the old object is logged and does not fail the update.

        Raises:
            ValidationError: If a provided field is invalid
            UserNotFoundError: If no user has this ID
            UploadError: If the new photo could not be stored
        """
        with self.stager.stage(photo) as staged:
            update = parse_fields(UserUpdate, fields, UPDATE_MESSAGES)
            check_photo(staged, required=False)
            user = self._require(user_id)
            changes = update.changes()

            old_locator = None
            if staged is not None:
                changes["photo"] = self.blob_store.upload(staged.read(), staged.filename, staged.content_type)
                old_locator = user.photo

            try:
                updated = self.repository.update(user_id, changes) if changes else user
            except ProfileHubError:
                if staged is not None:
                    logger.warning(f"Update of user {user_id} failed; removing new photo {changes['photo']}")
                    self._discard_photo(changes["photo"])
                raise

        if old_locator and old_locator != updated.photo:
            self._discard_photo(old_locator)
        return self.present(updated)

    def delete_user(self, user_id: str) -> str:
        """Delete the photo (best effort) and then the record. Returns the deleted ID."""
        user = self._require(user_id)
        if user.photo:
            self._discard_photo(user.photo)
        self.repository.delete(user_id)
        return user_id
