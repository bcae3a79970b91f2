"""Request workflows for profilehub."""

from profilehub.pipelines.profile import ProfilePipeline
from profilehub.pipelines.registration import RegistrationOutcome, RegistrationPipeline, RegistrationState
from profilehub.pipelines.session import login
from profilehub.pipelines.staging import PhotoStager, PhotoUpload, StagedPhoto

__all__ = [
    "ProfilePipeline",
    "RegistrationOutcome",
    "RegistrationPipeline",
    "RegistrationState",
    "login",
    "PhotoStager",
    "PhotoUpload",
    "StagedPhoto",
]
