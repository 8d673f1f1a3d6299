"""
PrepForge - Gemini Text Client.

Submits prompt text to Google Gemini and returns the completion text.
Everything problem-specific (JSON extraction, schema coercion) happens
above this layer; the client only knows about prompts and text.
"""

from __future__ import annotations

import logging
from typing import Protocol

import google.generativeai as genai
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.core.config import get_settings
from src.core.exceptions import (
    EmptyCompletionError,
    MissingAPIKeyError,
    RateLimitedError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that turns a prompt into completion text."""

    async def generate(self, prompt: str) -> str:
        ...


class GeminiTextClient:
    """
    Gemini-backed TextGenerator.

    The API is configured lazily on the first call, so constructing the
    client never requires a key.
    """

    SERVICE = "Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ):
        self._settings = get_settings()
        self._api_key = api_key or self._settings.GEMINI_API_KEY
        self._model_name = model_name or self._settings.GEMINI_MODEL
        self._temperature = (
            temperature if temperature is not None else self._settings.GENERATION_TEMPERATURE
        )
        self._max_output_tokens = max_output_tokens or self._settings.GENERATION_MAX_OUTPUT_TOKENS
        self._model = None
        self._configured = False

    def _configure(self) -> None:
        """Configure the Gemini API client (lazy initialization)."""
        if self._configured:
            return

        if not self._api_key:
            raise MissingAPIKeyError("GEMINI_API_KEY")

        genai.configure(api_key=self._api_key)
        self._model = genai.GenerativeModel(self._model_name)
        self._configured = True
        logger.info(f"✅ Gemini API configured ({self._model_name})")

    async def generate(self, prompt: str) -> str:
        self._configure()
        return await self._generate(prompt)

    @retry(
        retry=retry_if_exception_type(RateLimitedError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        """Internal method to call Gemini API."""
        try:
            generation_config = genai.GenerationConfig(
                temperature=self._temperature,
                max_output_tokens=self._max_output_tokens,
            )

            response = await self._model.generate_content_async(
                prompt,
                generation_config=generation_config,
            )
            text = response.text

        except genai.types.BlockedPromptException as e:
            logger.warning(f"Prompt blocked: {e}")
            raise EmptyCompletionError(self.SERVICE, "content was blocked by safety filters") from e
        except ValueError as e:
            # response.text raises ValueError when no candidate carries text
            raise EmptyCompletionError(self.SERVICE, str(e)) from e
        except Exception as e:
            error_str = str(e).lower()
            if "429" in error_str or "rate" in error_str or "quota" in error_str:
                raise RateLimitedError(self.SERVICE, retry_after=60) from e
            logger.error(f"Gemini error: {e}")
            raise UpstreamUnavailableError(self.SERVICE, str(e)) from e

        if not text or not text.strip():
            raise EmptyCompletionError(self.SERVICE)
        return text.strip()
