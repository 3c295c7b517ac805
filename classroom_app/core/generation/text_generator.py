"""Client for the external text-generation service.

The rest of the application only sees the ``TextGenerator`` protocol: a
prompt (plus an optional JSON response schema or image) goes in, text comes
out, and every failure is a ``GenerationError``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Protocol

import google.generativeai as genai

from classroom_app.constants.ai_constants import DEFAULT_MODEL_NAME, SERVICE_NOT_CONFIGURED_MESSAGE
from classroom_app.core.errors import GenerationError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ImagePart:
    """Raw image bytes sent alongside a prompt."""

    data: bytes
    mime_type: str


class TextGenerator(Protocol):
    def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
        image: ImagePart | None = None,
    ) -> str: ...


class GeminiTextGenerator:
    """``TextGenerator`` backed by Google's Gemini models."""

    def __init__(self, api_key: str | None, model_name: str = DEFAULT_MODEL_NAME) -> None:
        self._model_name = model_name
        self._model: Any = None
        if api_key:
            try:
                genai.configure(api_key=api_key)
                self._model = genai.GenerativeModel(model_name)
                logger.info("Gemini initialized with model %s", model_name)
            except Exception as exc:
                logger.error("Gemini init failed: %s", exc)
        else:
            logger.warning("GOOGLE_API_KEY not set; text generation is disabled.")

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
        image: ImagePart | None = None,
    ) -> str:
        if self._model is None:
            raise GenerationError(SERVICE_NOT_CONFIGURED_MESSAGE)

        contents: Any = prompt
        if image is not None:
            contents = [{"mime_type": image.mime_type, "data": image.data}, prompt]

        generation_config = None
        if response_schema is not None:
            generation_config = genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
            )

        try:
            response = self._model.generate_content(contents, generation_config=generation_config)
            text = response.text
        except Exception as exc:
            logger.error("Gemini request failed: %s", exc)
            raise GenerationError(f"Text generation failed: {exc}") from exc
        return text or ""
