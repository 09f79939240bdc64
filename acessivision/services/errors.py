from enum import Enum


class ErrorKind(str, Enum):
    MISSING_IMAGE = "missing_image"
    IMAGE_TOO_LARGE = "image_too_large"
    STORAGE_FAILURE = "storage_failure"
    TRANSLATION_FAILURE = "translation_failure"
    CAPTIONING_FAILURE = "captioning_failure"
    SYNTHESIS_FAILURE = "synthesis_failure"


STATUS_CODES = {
    ErrorKind.MISSING_IMAGE: 400,
    ErrorKind.IMAGE_TOO_LARGE: 413,
}


class PipelineError(Exception):
    """Falha em uma etapa do pipeline de upload"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES.get(self.kind, 500)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


class PaymentError(Exception):
    """Erro retornado pelo provedor de pagamento"""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


async def guarded(kind: ErrorKind, awaitable):
    """Converte erros inesperados do colaborador no tipo de falha da etapa"""
    try:
        return await awaitable
    except PipelineError:
        raise
    except Exception as e:
        raise PipelineError(kind, str(e)) from e
