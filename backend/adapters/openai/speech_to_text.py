"""OpenAISpeechToTextAdapter — transcribes audio segments with the OpenAI audio API."""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from domain.models import AudioSegment, SpeechResult
from exceptions import ConfigurationError, ServiceError
from ports.transcription import SpeechToTextPort

from .errors import to_service_error

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "whisper-1"


class OpenAISpeechToTextAdapter(SpeechToTextPort):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._client = client
        self._model = model

    async def transcribe(self, segment: AudioSegment) -> SpeechResult:
        content_type = segment.content_type or "application/octet-stream"
        try:
            response = await self._client.audio.transcriptions.create(
                model=self._model,
                file=(segment.filename, segment.data, content_type),
                response_format="json",
            )
        except openai.APIError as e:
            logger.error(f"Transcription request failed for segment {segment.index + 1}: {e}")
            raise to_service_error(e, "Transcription failed", prefer_structured=False) from e

        text = getattr(response, "text", None)
        if text is None:
            logger.error(f"Transcription returned no text for segment {segment.index + 1}")
            raise ServiceError("Transcription failed: empty response")

        confidence = getattr(response, "confidence", None)
        return SpeechResult(
            text=text,
            confidence=float(confidence) if confidence is not None else None,
        )

    def model_name(self) -> str:
        return self._model
