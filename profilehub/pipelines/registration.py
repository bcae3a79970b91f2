"""User registration workflow.

A registration walks a fixed sequence of states. Each step either advances
the outcome or aborts it with a ``ProfileHubError``; the staged photo file is
released when the ``with`` block around the run exits, whichever way it exits.

    RECEIVED -> VALIDATED -> PHOTO_STAGED -> PHOTO_UPLOADED -> RECORD_CREATED
      -> NOTIFICATION_SENT | NOTIFICATION_FAILED -> TOKEN_ISSUED -> RESPONDED

Known gap: when the record cannot be written after the photo was uploaded,
the uploaded object is left in the bucket and only logged.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from profilehub import config
from profilehub.auth.jwt import TokenIssuer
from profilehub.database.user_repository import UserRepository
from profilehub.errors import DeliveryError, DuplicateEmailError, InternalError, PersistError, ProfileHubError
from profilehub.integrations.blob_store import S3BlobStore
from profilehub.integrations.mailer import SMTPNotifier
from profilehub.models.user import PublicUser, RegistrationForm, UserCreate, parse_fields
from profilehub.pipelines.staging import PhotoStager, PhotoUpload, StagedPhoto, check_photo

logger = logging.getLogger(__name__)


class RegistrationState(str, Enum):
    """Registration workflow states."""
    RECEIVED = "received"
    VALIDATED = "validated"
    PHOTO_STAGED = "photo_staged"
    PHOTO_UPLOADED = "photo_uploaded"
    RECORD_CREATED = "record_created"
    NOTIFICATION_SENT = "notification_sent"
    NOTIFICATION_FAILED = "notification_failed"
    TOKEN_ISSUED = "token_issued"
    RESPONDED = "responded"
    ABORTED = "aborted"


@dataclass
class RegistrationOutcome:
    """Result of one registration run."""

    state: RegistrationState = RegistrationState.RECEIVED
    history: List[RegistrationState] = field(default_factory=lambda: [RegistrationState.RECEIVED])
    error: Optional[ProfileHubError] = None
    # Last state reached before the abort
    aborted_from: Optional[RegistrationState] = None
    token: Optional[str] = None
    user: Optional[PublicUser] = None
    welcome_sent: bool = False

    @property
    def ok(self) -> bool:
        return self.state == RegistrationState.RESPONDED

    def advance(self, state: RegistrationState) -> None:
        if self.state == RegistrationState.ABORTED:
            raise RuntimeError("Cannot advance an aborted registration")
        self.state = state
        self.history.append(state)

    def abort(self, error: ProfileHubError) -> None:
        self.aborted_from = self.state
        self.error = error
        self.state = RegistrationState.ABORTED
        self.history.append(RegistrationState.ABORTED)

    @property
    def message(self) -> str:
        if self.welcome_sent:
            return "User registered successfully. Welcome email sent."
        return "User registered successfully. Welcome email could not be sent."

    def unwrap(self) -> "RegistrationOutcome":
        """Return self on success, raise the abort error otherwise."""
        if self.error is not None:
            raise self.error
        return self


class RegistrationPipeline:
    """Creates users: validate, upload photo, persist, notify, issue token."""

    def __init__(
        self,
        repository: UserRepository,
        blob_store: S3BlobStore,
        notifier: SMTPNotifier,
        token_issuer: TokenIssuer,
        stager: Optional[PhotoStager] = None,
        photo_url_ttl: Optional[int] = None,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.notifier = notifier
        self.token_issuer = token_issuer
        self.stager = stager or PhotoStager()
        self.photo_url_ttl = photo_url_ttl or config.PHOTO_URL_EXPIRY_SECONDS

    def register(self, fields: Dict[str, Any], photo: Optional[PhotoUpload]) -> RegistrationOutcome:
        """Run one registration. Never raises; inspect or ``unwrap()`` the outcome."""
        outcome = RegistrationOutcome()
        try:
            with self.stager.stage(photo) as staged:
                self._run(outcome, fields, staged)
        except ProfileHubError as e:
            logger.info(f"Registration aborted after {outcome.state.value}: {e.message}")
            outcome.abort(e)
        except Exception as e:
            logger.exception(f"Registration failed unexpectedly after {outcome.state.value}")
            outcome.abort(InternalError("Error registering user", detail=str(e)))
        return outcome

    def _run(self, outcome: RegistrationOutcome, fields: Dict[str, Any], staged: Optional[StagedPhoto]) -> None:
        form = parse_fields(RegistrationForm, fields)
        check_photo(staged, required=True)
        outcome.advance(RegistrationState.VALIDATED)

        # Pre-check only; the UNIQUE constraint still decides races at insert time.
        if self.repository.get_by_email(form.email) is not None:
            raise DuplicateEmailError()
        outcome.advance(RegistrationState.PHOTO_STAGED)

        locator = self.blob_store.upload(staged.read(), staged.filename, staged.content_type)
        outcome.advance(RegistrationState.PHOTO_UPLOADED)

        try:
            user = self.repository.create(UserCreate(**form.model_dump(), photo=locator))
        except DuplicateEmailError as e:
            # Lost a uniqueness race after the pre-check
            logger.warning(f"Email {form.email} taken concurrently; uploaded photo left orphaned at {locator}")
            raise PersistError("Error registering user", detail=e.message) from e
        except ProfileHubError:
            logger.warning(f"User record not created; uploaded photo left orphaned at {locator}")
            raise
        outcome.advance(RegistrationState.RECORD_CREATED)

        # The account already exists at this point, so a mail failure is reported, not fatal.
        try:
            self.notifier.send_welcome(user.email, user.display_name)
            outcome.welcome_sent = True
            outcome.advance(RegistrationState.NOTIFICATION_SENT)
        except DeliveryError as e:
            logger.error(f"Welcome email to {user.email} failed: {e.message}")
            outcome.advance(RegistrationState.NOTIFICATION_FAILED)

        outcome.token = self.token_issuer.issue(user.id)
        outcome.advance(RegistrationState.TOKEN_ISSUED)

        outcome.user = user.to_public(self.blob_store.signed_url(user.photo, self.photo_url_ttl))
        outcome.advance(RegistrationState.RESPONDED)
