import logging
from googletrans import Translator
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)


class GoogleTranslator:
    """Tradução de texto via Google Translate (googletrans)"""

    def __init__(self, service_urls=None):
        self.service_urls = service_urls

    async def translate(self, text: str, dest: str, src: str = "auto") -> str:
        # Texto vazio volta como está, sem chamar o serviço
        if not text or not text.strip():
            return text

        try:
            kwargs = {"service_urls": self.service_urls} if self.service_urls else {}
            async with Translator(**kwargs) as translator:
                result = await translator.translate(text, src=src, dest=dest)
            return result.text
        except Exception as e:
            logger.error(f"Erro na tradução ({src} -> {dest}): {e}")
            raise PipelineError(ErrorKind.TRANSLATION_FAILURE, f"Falha na tradução: {e}") from e
