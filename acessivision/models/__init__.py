from .upload import (
    UploadRequest,
    StagedFile,
    DescriptionResult,
    AudioResult,
    ImageSource,
    DEFAULT_PROMPT
)
from .account import RegisterRequest, LoginRequest, ProfileUpdateRequest
from .billing import PlanType, BillingStatus, PixCharge

__all__ = [
    "UploadRequest",
    "StagedFile",
    "DescriptionResult",
    "AudioResult",
    "ImageSource",
    "DEFAULT_PROMPT",
    "RegisterRequest",
    "LoginRequest",
    "ProfileUpdateRequest",
    "PlanType",
    "BillingStatus",
    "PixCharge"
]
