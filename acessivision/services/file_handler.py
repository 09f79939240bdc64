import os
import logging
import tempfile
import aiofiles
from pathlib import Path
from typing import Optional
from ..models.upload import StagedFile
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)


def default_upload_dir() -> Path:
    return Path(os.getenv("UPLOAD_DIR", Path(tempfile.gettempdir()) / "uploads"))


class FileHandler:
    def __init__(self, upload_dir: Optional[Path] = None):
        self.upload_dir = Path(upload_dir) if upload_dir else default_upload_dir()

    async def save_bytes(self, data: bytes, filename: str) -> StagedFile:
        """Salva os bytes no diretório temporário e retorna o arquivo preparado"""

        file_path = self.upload_dir / filename

        try:
            # Pode ser chamado por várias requisições ao mesmo tempo
            self.upload_dir.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(file_path, 'wb') as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Falha ao salvar arquivo em {file_path}: {e}")
            raise PipelineError(ErrorKind.STORAGE_FAILURE, f"Falha ao salvar arquivo: {e}") from e

        return StagedFile(path=str(file_path))

    def staging_path(self, filename: str) -> StagedFile:
        """Reserva um caminho no diretório temporário sem escrever nada"""
        file_path = self.upload_dir / filename

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Falha ao preparar diretório {self.upload_dir}: {e}")
            raise PipelineError(ErrorKind.STORAGE_FAILURE, f"Falha ao preparar arquivo: {e}") from e

        return StagedFile(path=str(file_path))

    async def read_bytes(self, staged: StagedFile) -> bytes:
        try:
            async with aiofiles.open(staged.path, 'rb') as f:
                return await f.read()
        except OSError as e:
            raise PipelineError(ErrorKind.STORAGE_FAILURE, f"Falha ao ler arquivo: {e}") from e

    async def delete_file(self, staged: StagedFile) -> bool:
        """Remove arquivo do sistema; erros são apenas registrados"""
        try:
            os.remove(staged.path)
            logger.debug(f"Arquivo removido: {staged.path}")
            return True
        except FileNotFoundError:
            return False
        except Exception as e:
            logger.warning(f"Erro ao remover arquivo {staged.path}: {e}")
            return False

