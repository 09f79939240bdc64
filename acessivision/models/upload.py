from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum

DEFAULT_PROMPT = "Descreva a imagem."
AUDIO_MIME_TYPE = "audio/mpeg"


class ImageSource(str, Enum):
    MULTIPART = "multipart"
    BASE64 = "base64"


class Base64UploadBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: Optional[str] = Field(default=None, description="Imagem codificada em base64")
    prompt: Optional[str] = Field(default=None, description="Pergunta em português")


class UploadRequest(BaseModel):
    """Imagem normalizada, independente de como chegou (multipart ou base64)"""
    model_config = ConfigDict(frozen=True)

    image_bytes: bytes
    prompt: str = DEFAULT_PROMPT
    filename_hint: str
    source: ImageSource


class StagedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str


class DescriptionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class AudioResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = AUDIO_MIME_TYPE


class DescriptionResponse(BaseModel):
    description: str


class ErrorResponse(BaseModel):
    error: str
