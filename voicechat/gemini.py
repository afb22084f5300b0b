"""Client for the Gemini generateContent endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from voicechat.errors import UpstreamError

if TYPE_CHECKING:
    from voicechat.config import GeminiConfig, GenerationConfig

logger = logging.getLogger(__name__)


class GeminiClient:
    """Sends a single prompt to the generative language API and returns its text."""

    def __init__(
        self,
        config: "GeminiConfig",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._http = httpx.Client(
            base_url=config.base_url,
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._config.model

    def generate(self, prompt: str, generation: "GenerationConfig") -> str | None:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt text.
            generation: Sampling temperature and optional output-token ceiling.

        Returns:
            The first candidate's text, or None if the response carries none.

        Raises:
            UpstreamError: The call failed or returned a non-success status.
        """
        generation_config: dict[str, Any] = {"temperature": generation.temperature}
        if generation.max_output_tokens is not None:
            generation_config["maxOutputTokens"] = generation.max_output_tokens

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        try:
            response = self._http.post(
                f"/models/{self._config.model}:generateContent",
                params={"key": self._config.api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            logger.error("Gemini request failed: %s", e)
            raise UpstreamError("Failed to reach language model", details=str(e)) from e

        if response.is_error:
            details = self._error_detail(response)
            logger.error("Gemini returned %d: %s", response.status_code, details)
            raise UpstreamError(
                f"Language model returned status {response.status_code}",
                details=details,
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning("Gemini returned a non-JSON body")
            return None

        return extract_text(data)

    def close(self) -> None:
        self._http.close()

    @staticmethod
    def _error_detail(response: httpx.Response) -> str | None:
        try:
            data = response.json()
        except ValueError:
            return response.text or None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return None


def extract_text(data: Any) -> str | None:
    """Pull ``candidates[0].content.parts[0].text`` out of a response payload."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
