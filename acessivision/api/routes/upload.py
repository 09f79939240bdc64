from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
import logging
from ...models.upload import DescriptionResponse, ErrorResponse
from ...services.errors import PipelineError
from ...services.intake import normalize_upload
from ...utils.helpers import generate_request_id

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error_response(request_id: str, error: Exception) -> JSONResponse:
    if isinstance(error, PipelineError):
        if error.is_client_error:
            logger.warning(f"[{request_id}] Requisição inválida: {error.message}")
            return JSONResponse(status_code=error.status_code, content={"error": error.message})
        logger.error(f"[{request_id}] Erro ao processar a requisição ({error.kind.value}): {error.message}")
        message = error.message
    else:
        logger.exception(f"[{request_id}] Erro inesperado: {error}")
        message = str(error) or "Erro ao processar a imagem."

    return JSONResponse(status_code=500, content={"error": f"Erro ao processar a imagem: {message}"})


@router.post("/upload", response_model=DescriptionResponse, responses=ERROR_RESPONSES)
async def upload_image(request: Request):
    """Recebe imagem (multipart ou JSON base64) e retorna a descrição em português"""

    request_id = generate_request_id()
    pipeline = request.app.state.pipeline

    try:
        upload = await normalize_upload(request, request.app.state.max_file_size)
        logger.info(f"[{request_id}] Upload recebido ({upload.source.value}): {upload.filename_hint}")

        result = await pipeline.describe(upload, request_id)
        return DescriptionResponse(description=result.text)

    except Exception as e:
        return _error_response(request_id, e)


@router.post(
    "/upload/audio",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}, **ERROR_RESPONSES}
)
async def upload_image_audio(request: Request):
    """Igual ao /upload, mas responde com a descrição narrada em MP3"""

    request_id = generate_request_id()
    pipeline = request.app.state.pipeline

    try:
        upload = await normalize_upload(request, request.app.state.max_file_size)
        logger.info(f"[{request_id}] Upload recebido para áudio ({upload.source.value}): {upload.filename_hint}")

        audio = await pipeline.describe_as_audio(upload, request_id)
        return Response(
            content=audio.data,
            media_type=audio.mime_type,
            headers={"Content-Disposition": 'inline; filename="audio.mp3"'}
        )

    except Exception as e:
        return _error_response(request_id, e)
