import os
import logging
from ..models.upload import DescriptionResult, StagedFile
from .captioner import assemble_answer
from .errors import ErrorKind, guarded
from .file_handler import FileHandler
from ..utils.validators import detect_image_mime_type

logger = logging.getLogger(__name__)


class Describer:
    """Traduz o prompt, consulta o modelo de visão e traduz a resposta de volta"""

    def __init__(self, translator, captioner, file_handler: FileHandler, source_lang=None, target_lang=None):
        self.translator = translator
        self.captioner = captioner
        self.file_handler = file_handler
        self.source_lang = source_lang or os.getenv("TRANSLATE_SOURCE_LANG", "pt")
        self.target_lang = target_lang or os.getenv("TRANSLATE_TARGET_LANG", "en")

    async def describe(self, staged: StagedFile, prompt: str, request_id: str = "-") -> DescriptionResult:
        logger.info(f"[{request_id}] Traduzindo prompt: \"{prompt}\"")
        translated_prompt = await guarded(
            ErrorKind.TRANSLATION_FAILURE,
            self.translator.translate(prompt, src=self.source_lang, dest=self.target_lang)
        )
        logger.info(f"[{request_id}] Prompt traduzido: \"{translated_prompt}\"")

        image = await self.file_handler.read_bytes(staged)
        mime_type = detect_image_mime_type(image)

        answer = await guarded(
            ErrorKind.CAPTIONING_FAILURE,
            self.captioner.query(image, translated_prompt, mime_type=mime_type)
        )
        final_answer = await guarded(ErrorKind.CAPTIONING_FAILURE, assemble_answer(answer))
        logger.info(f"[{request_id}] Resposta completa do Moondream: \"{final_answer}\"")

        translated_answer = await guarded(
            ErrorKind.TRANSLATION_FAILURE,
            self.translator.translate(final_answer, dest=self.source_lang)
        )
        return DescriptionResult(text=translated_answer)
