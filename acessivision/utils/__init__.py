from .validators import detect_image_mime_type, validate_image_size, validate_email, validate_registration
from .helpers import build_filename_hint, generate_request_id, utcnow

__all__ = [
    "detect_image_mime_type",
    "validate_image_size",
    "validate_email",
    "validate_registration",
    "build_filename_hint",
    "generate_request_id",
    "utcnow"
]
