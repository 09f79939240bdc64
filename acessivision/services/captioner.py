import os
import json
import base64
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Any, Union
import httpx
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

DEFAULT_MOONDREAM_URL = "https://api.moondream.ai/v1"


@dataclass(frozen=True)
class CompleteAnswer:
    """Resposta entregue de uma só vez"""
    text: str


@dataclass(frozen=True)
class FragmentedAnswer:
    """Resposta entregue em pedaços (streaming)"""
    fragments: AsyncIterator[str]


CaptionAnswer = Union[CompleteAnswer, FragmentedAnswer]


async def assemble_answer(answer: CaptionAnswer) -> str:
    """Junta a resposta completa; em streaming, espera todos os pedaços na ordem de chegada"""
    if isinstance(answer, CompleteAnswer):
        return answer.text

    assembled = []
    async for fragment in answer.fragments:
        assembled.append(fragment)
    return "".join(assembled)


def _captioning_error(message: str) -> PipelineError:
    return PipelineError(ErrorKind.CAPTIONING_FAILURE, message)


class MoondreamClient:
    def __init__(self, api_key=None, base_url=None, stream=None, transport=None, timeout: float = 60.0):
        self.api_key = api_key or os.getenv("MOONDREAM_API_KEY")
        self.base_url = (base_url or os.getenv("MOONDREAM_API_URL", DEFAULT_MOONDREAM_URL)).rstrip("/")
        if stream is None:
            stream = os.getenv("MOONDREAM_STREAM", "false").lower() == "true"
        self.stream = stream

        self.client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "User-Agent": "AcessiVision/1.0"
            },
            timeout=timeout,
            transport=transport
        )

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise _captioning_error("MOONDREAM_API_KEY não encontrada!")
        return {"X-Moondream-Auth": self.api_key}

    async def query(self, image: bytes, question: str, mime_type: str = "image/jpeg") -> CaptionAnswer:
        """Envia imagem e pergunta ao Moondream"""
        headers = self._headers()
        encoded = base64.b64encode(image).decode("ascii")
        body: Dict[str, Any] = {
            "image_url": f"data:{mime_type};base64,{encoded}",
            "question": question,
            "stream": self.stream
        }
        url = f"{self.base_url}/query"

        if self.stream:
            return FragmentedAnswer(self._stream_fragments(url, body, headers))

        try:
            response = await self.client.post(url, json=body, headers=headers)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[Moondream] Erro | Status: {e.response.status_code} | Detalhes: {e.response.text}")
            raise _captioning_error(f"Erro Moondream: Status={e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Moondream] Falha na requisição: {e}")
            raise _captioning_error(f"Erro Moondream: {e}") from e

        answer = result.get("answer") if isinstance(result, dict) else None
        if not isinstance(answer, str):
            raise _captioning_error("Moondream não retornou uma resposta")
        return CompleteAnswer(answer)

    async def _stream_fragments(self, url: str, body: dict, headers: dict) -> AsyncIterator[str]:
        """Lê eventos SSE (data: {...}) até o evento completed"""
        try:
            async with self.client.stream("POST", url, json=body, headers=headers) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    event = json.loads(data)
                    if "chunk" in event:
                        yield event["chunk"]
                    if event.get("completed"):
                        break
        except httpx.HTTPStatusError as e:
            logger.error(f"[Moondream] Erro no streaming | Status: {e.response.status_code}")
            raise _captioning_error(f"Erro Moondream: Status={e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Moondream] Falha no streaming: {e}")
            raise _captioning_error(f"Erro Moondream: {e}") from e

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
