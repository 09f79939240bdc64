import logging
from typing import Optional
from ..models.upload import AudioResult, DescriptionResult, StagedFile, UploadRequest
from ..utils.helpers import format_file_size
from .describer import Describer
from .errors import ErrorKind, guarded
from .file_handler import FileHandler

logger = logging.getLogger(__name__)


class UploadPipeline:
    """Stage -> Describe -> (Synthesize) -> Cleanup, sempre nesta ordem"""

    def __init__(self, file_handler: FileHandler, describer: Describer, synthesizer=None):
        self.file_handler = file_handler
        self.describer = describer
        self.synthesizer = synthesizer

    async def describe(self, upload: UploadRequest, request_id: str = "-") -> DescriptionResult:
        staged = await self.file_handler.save_bytes(upload.image_bytes, upload.filename_hint)
        logger.info(
            f"[{request_id}] Imagem salva em: {staged.path} ({format_file_size(len(upload.image_bytes))})"
        )

        try:
            return await self.describer.describe(staged, upload.prompt, request_id)
        finally:
            await self.file_handler.delete_file(staged)

    async def describe_as_audio(self, upload: UploadRequest, request_id: str = "-") -> AudioResult:
        if self.synthesizer is None:
            raise RuntimeError("Sintetizador de voz não configurado")

        staged = await self.file_handler.save_bytes(upload.image_bytes, upload.filename_hint)
        audio_staged: Optional[StagedFile] = None
        logger.info(f"[{request_id}] Imagem salva em: {staged.path}")

        try:
            result = await self.describer.describe(staged, upload.prompt, request_id)

            audio_staged = self.file_handler.staging_path(f"{upload.filename_hint}.mp3")
            await guarded(
                ErrorKind.SYNTHESIS_FAILURE,
                self.synthesizer.save(result.text, audio_staged.path)
            )

            audio_data = await self.file_handler.read_bytes(audio_staged)
            logger.info(f"[{request_id}] Tamanho do áudio enviado: {len(audio_data)}")
            return AudioResult(data=audio_data)
        finally:
            await self.file_handler.delete_file(staged)
            if audio_staged is not None:
                await self.file_handler.delete_file(audio_staged)
