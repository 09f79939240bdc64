from .file_handler import FileHandler
from .captioner import MoondreamClient
from .translator import GoogleTranslator
from .speech import SpeechSynthesizer
from .describer import Describer
from .pipeline import UploadPipeline
from .identity import IdentityProvider
from .payment_client import PaymentClient

__all__ = [
    "FileHandler",
    "MoondreamClient",
    "GoogleTranslator",
    "SpeechSynthesizer",
    "Describer",
    "UploadPipeline",
    "IdentityProvider",
    "PaymentClient"
]
