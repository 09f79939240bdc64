import base64
import binascii
import json
import logging
from typing import Optional
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.requests import Request
from ..models.upload import Base64UploadBody, DEFAULT_PROMPT, ImageSource, UploadRequest
from ..utils.helpers import build_filename_hint
from ..utils.validators import validate_image_size
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

MISSING_IMAGE_MESSAGE = "Nenhuma imagem foi enviada."


def _missing_image(message: str = MISSING_IMAGE_MESSAGE) -> PipelineError:
    return PipelineError(ErrorKind.MISSING_IMAGE, message)


def _resolve_prompt(prompt: Optional[str]) -> str:
    if prompt and prompt.strip():
        return prompt.strip()
    return DEFAULT_PROMPT


def decode_base64_image(encoded: Optional[str]) -> bytes:
    """Decodifica a imagem base64, aceitando o prefixo data:<mime>;base64,"""
    if not encoded or not encoded.strip():
        raise _missing_image()

    payload = encoded.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise _missing_image("Imagem base64 inválida.")

    if not image_bytes:
        raise _missing_image()
    return image_bytes


def _check_size(image_bytes: bytes, max_size: Optional[int]) -> None:
    validation_result = validate_image_size(image_bytes, max_size)
    if not validation_result["valid"]:
        raise PipelineError(ErrorKind.IMAGE_TOO_LARGE, validation_result["message"])


async def _from_json(request: Request, max_size: Optional[int]) -> UploadRequest:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise _missing_image("Corpo JSON inválido.")

    if not isinstance(payload, dict):
        raise _missing_image()

    try:
        body = Base64UploadBody.model_validate(payload)
    except ValidationError:
        raise _missing_image("Campos image e prompt devem ser texto.")
    image_bytes = decode_base64_image(body.image)
    _check_size(image_bytes, max_size)

    return UploadRequest(
        image_bytes=image_bytes,
        prompt=_resolve_prompt(body.prompt),
        filename_hint=build_filename_hint(None),
        source=ImageSource.BASE64
    )


async def _from_multipart(request: Request, max_size: Optional[int]) -> UploadRequest:
    image_bytes = None
    original_name = None
    prompt = None

    try:
        form = await request.form()
    except Exception as e:
        logger.error(f"Erro ao processar multipart form: {e}")
        raise _missing_image("Erro ao processar os dados enviados.")

    try:
        for field_name, value in form.multi_items():
            if isinstance(value, UploadFile):
                # Apenas a primeira parte de arquivo é usada
                if image_bytes is None:
                    image_bytes = await value.read()
                    original_name = value.filename
            elif field_name == "prompt":
                prompt = value
    finally:
        await form.close()

    if not image_bytes:
        raise _missing_image()
    _check_size(image_bytes, max_size)

    return UploadRequest(
        image_bytes=image_bytes,
        prompt=_resolve_prompt(prompt),
        filename_hint=build_filename_hint(original_name),
        source=ImageSource.MULTIPART
    )


async def normalize_upload(request: Request, max_size: Optional[int] = None) -> UploadRequest:
    """Converte a requisição (multipart ou JSON base64) em um UploadRequest"""
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        return await _from_json(request, max_size)
    return await _from_multipart(request, max_size)
