"""Process-wide external clients, handed to routes as FastAPI dependencies.

Tests replace these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from profilehub.integrations.blob_store import S3BlobStore
from profilehub.integrations.mailer import SMTPNotifier
from profilehub.pipelines.staging import PhotoStager


@lru_cache(maxsize=1)
def get_blob_store() -> S3BlobStore:
    blob_store = S3BlobStore()
    blob_store.check_configuration()
    return blob_store


@lru_cache(maxsize=1)
def get_notifier() -> SMTPNotifier:
    return SMTPNotifier()


def get_photo_stager() -> PhotoStager:
    return PhotoStager()
