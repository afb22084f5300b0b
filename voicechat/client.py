"""HTTP transport from the dictation client to the chat backend."""

from __future__ import annotations

import logging

import httpx

from voicechat.errors import RelayNetworkError

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


class HttpChatTransport:
    """Posts confirmed text to ``/api/chat`` and returns the reply text."""

    def __init__(
        self,
        base_url: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._http = httpx.Client(base_url=base_url, transport=transport)

    def send(self, message: str, language: str) -> str:
        try:
            response = self._http.post(
                CHAT_PATH,
                json={"message": message, "language": language},
            )
        except httpx.HTTPError as e:
            raise RelayNetworkError(str(e)) from e

        if response.is_error:
            raise RelayNetworkError(f"HTTP error! status: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RelayNetworkError("Malformed response from backend") from e

        reply = data.get("response") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise RelayNetworkError("Malformed response from backend")

        if intent := data.get("intent"):
            logger.info("Backend classified intent: %s", intent)
        return reply

    def close(self) -> None:
        self._http.close()
