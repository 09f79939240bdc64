import os
import re
import logging
import magic
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


def max_file_size() -> int:
    return int(os.getenv("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE))


def validate_image_size(data: bytes, max_size: Optional[int] = None) -> Dict[str, Any]:
    """Valida tamanho da imagem recebida"""

    max_size = max_file_size() if max_size is None else max_size
    file_size = len(data)

    if file_size > max_size:
        return {
            "valid": False,
            "message": f"Imagem muito grande. Máximo: {max_size // (1024 * 1024)}MB"
        }

    return {
        "valid": True,
        "message": "Imagem válida",
        "size": file_size
    }


def validate_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email or ""))


def validate_registration(email: Optional[str], password: Optional[str], nome: Optional[str]) -> Dict[str, Any]:
    """Valida dados de cadastro de usuário"""

    if not email or not password or not nome:
        return {"valid": False, "message": "Email, senha e nome são obrigatórios"}

    if len(password) < MIN_PASSWORD_LENGTH:
        return {
            "valid": False,
            "message": f"A senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres"
        }

    if not validate_email(email):
        return {"valid": False, "message": "Email inválido"}

    return {"valid": True, "message": "Dados válidos"}


def detect_image_mime_type(data: bytes) -> str:
    """Detecta o tipo MIME pelos primeiros bytes da imagem"""
    try:
        mime_type = magic.from_buffer(data[:2048], mime=True)
    except Exception as e:
        logger.warning(f"Não foi possível detectar o tipo da imagem: {e}")
        return DEFAULT_IMAGE_MIME_TYPE

    if not mime_type or not mime_type.startswith("image/"):
        return DEFAULT_IMAGE_MIME_TYPE
    return mime_type
