"""OpenAITextGenerationAdapter — generates documents with chat completions."""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from domain.models import GenerationResult
from exceptions import ConfigurationError, ServiceError
from ports.text_generation import TextGenerationPort

from .errors import to_service_error

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.1


class OpenAITextGenerationAdapter(TextGenerationPort):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._client = client
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def generate(self, system_instruction: str, user_text: str) -> GenerationResult:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_text},
                ],
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except openai.APIError as e:
            logger.error(f"Report generation request failed: {e}")
            raise to_service_error(e, "Report generation failed") from e

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        if message is None:
            logger.error("Report generation returned no message")
            raise ServiceError("Report generation failed: empty response")

        usage = getattr(response, "usage", None)
        return GenerationResult(
            content=message.content or "",
            token_count=usage.total_tokens if usage is not None else None,
        )

    def model_name(self) -> str:
        return self._model
