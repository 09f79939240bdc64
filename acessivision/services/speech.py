import os
import asyncio
import logging
from gtts import gTTS
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """Converte texto em áudio MP3 com gTTS"""

    def __init__(self, lang=None, tld=None):
        self.lang = lang or os.getenv("TTS_LANG", "pt")
        self.tld = tld or os.getenv("TTS_TLD", "com.br")

    async def save(self, text: str, output_path: str) -> None:
        """Sintetiza o texto e grava o MP3 em output_path"""

        def synthesize():
            gTTS(text=text, lang=self.lang, tld=self.tld).save(output_path)

        # gTTS é bloqueante; executar em thread separada
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, synthesize)
        except Exception as e:
            logger.error(f"Erro na síntese de voz: {e}")
            raise PipelineError(ErrorKind.SYNTHESIS_FAILURE, f"Falha na síntese de voz: {e}") from e
