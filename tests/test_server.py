"""Tests for the server module."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Generator, Iterator
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedGemini, gemini_text
from voicechat.config import Config, GeminiConfig, RelayConfig, RelayMode
from voicechat.errors import InvalidRequest, UpstreamError
from voicechat.gemini import GeminiClient
from voicechat.relay import AssistantReply, ChatRelay, Intent


@pytest.fixture
def mock_relay() -> MagicMock:
    """Create a mock chat relay."""
    relay = MagicMock()
    relay.chat.return_value = AssistantReply("Spray neem oil...", intent=Intent.PEST)
    return relay


@pytest.fixture
def mock_config() -> Config:
    config = Config()
    config.gemini = GeminiConfig(api_key="test-key")
    return config


@pytest.fixture
def test_client(mock_relay: MagicMock, mock_config: Config) -> Generator[TestClient, None, None]:
    """Create a test client with mocked dependencies."""
    with patch("voicechat.server._relay", mock_relay), \
         patch("voicechat.server._config", mock_config):
        from voicechat.server import create_app

        yield TestClient(create_app(mock_config))


class TestLivenessEndpoint:
    """Tests for / endpoint."""

    def test_liveness(self, test_client: TestClient) -> None:
        """Test the liveness route returns a message."""
        response = test_client.get("/")

        assert response.status_code == 200
        assert "message" in response.json()


class TestConfigEndpoint:
    """Tests for /config endpoint."""

    def test_get_config(self, test_client: TestClient) -> None:
        """Test configuration is reported without the API key."""
        response = test_client.get("/config")

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "domain"
        assert data["model"] == "gemini-2.5-flash"
        assert data["api_key_configured"] is True
        assert "test-key" not in response.text

    def test_get_config_not_initialized(self, test_client: TestClient) -> None:
        """Test getting config when not initialized."""
        with patch("voicechat.server._config", None):
            response = test_client.get("/config")

        assert response.status_code == 503
        assert "error" in response.json()


class TestChatEndpoint:
    """Tests for /api/chat endpoint."""

    def test_chat_success(self, test_client: TestClient, mock_relay: MagicMock) -> None:
        """Test a valid message is relayed and the reply returned."""
        response = test_client.post(
            "/api/chat",
            json={"message": "my tomato plants have spots", "language": "en-US"},
        )

        assert response.status_code == 200
        assert response.json() == {"intent": "pest", "response": "Spray neem oil..."}
        mock_relay.chat.assert_called_once_with("my tomato plants have spots", "en-US")

    def test_chat_language_optional(self, test_client: TestClient, mock_relay: MagicMock) -> None:
        """Test a missing language is left for the relay to default."""
        response = test_client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 200
        mock_relay.chat.assert_called_once_with("hello", None)

    @pytest.mark.parametrize(
        "body",
        [{}, {"message": ""}, {"message": None}, {"message": 42}, {"language": "en-US"}],
    )
    def test_chat_missing_message(
        self, test_client: TestClient, mock_relay: MagicMock, body: dict
    ) -> None:
        """Test missing or empty message returns 400 without relaying."""
        response = test_client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        mock_relay.chat.assert_not_called()

    def test_chat_invalid_json(self, test_client: TestClient, mock_relay: MagicMock) -> None:
        """Test a non-JSON body is treated as a missing message."""
        response = test_client.post(
            "/api/chat",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        mock_relay.chat.assert_not_called()

    def test_chat_invalid_request_from_relay(
        self, test_client: TestClient, mock_relay: MagicMock
    ) -> None:
        """Test InvalidRequest raised by the relay maps to 400."""
        mock_relay.chat.side_effect = InvalidRequest("Message is required")

        response = test_client.post("/api/chat", json={"message": "x"})

        assert response.status_code == 400

    def test_chat_upstream_error(self, test_client: TestClient, mock_relay: MagicMock) -> None:
        """Test upstream failure returns 500 with details."""
        mock_relay.chat.side_effect = UpstreamError(
            "Language model returned status 500", details="quota exceeded"
        )

        response = test_client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Language model returned status 500"
        assert data["details"] == "quota exceeded"
        assert "response" not in data

    def test_chat_upstream_error_without_details(
        self, test_client: TestClient, mock_relay: MagicMock
    ) -> None:
        """Test details are omitted when the upstream gave none."""
        mock_relay.chat.side_effect = UpstreamError("Language model returned status 502")

        response = test_client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 500
        assert "details" not in response.json()

    def test_chat_unexpected_error(self, test_client: TestClient, mock_relay: MagicMock) -> None:
        """Test any other failure returns 500 with its message."""
        mock_relay.chat.side_effect = RuntimeError("boom")

        response = test_client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 500
        assert response.json() == {"error": "boom"}

    def test_chat_not_initialized(self, test_client: TestClient) -> None:
        """Test chat before the relay is built."""
        with patch("voicechat.server._relay", None):
            response = test_client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 503


class TestChatEndToEnd:
    """Tests for /api/chat against a scripted language model."""

    @contextmanager
    def _client(self, gemini: ScriptedGemini, mode: RelayMode) -> Iterator[TestClient]:
        config = Config()
        config.relay = RelayConfig(mode=mode)
        client = GeminiClient(GeminiConfig(api_key="test-key"), transport=gemini.transport)
        relay = ChatRelay(client, config.relay)
        with patch("voicechat.server._relay", relay), \
             patch("voicechat.server._config", config):
            from voicechat.server import create_app

            yield TestClient(create_app(config))

    def test_domain_mode(self) -> None:
        """Test classification and generation produce intent and response."""
        gemini = ScriptedGemini(gemini_text("pest"), gemini_text("Spray neem oil..."))

        with self._client(gemini, RelayMode.DOMAIN) as client:
            response = client.post(
                "/api/chat",
                json={"message": "my tomato plants have spots", "language": "en-US"},
            )

        assert response.status_code == 200
        assert response.json() == {"intent": "pest", "response": "Spray neem oil..."}

    def test_generic_mode(self) -> None:
        """Test generic mode returns only the response."""
        gemini = ScriptedGemini(gemini_text("Hola, ¿cómo estás?"))

        with self._client(gemini, RelayMode.GENERIC) as client:
            response = client.post("/api/chat", json={"message": "Hola", "language": "es-ES"})

        assert response.json() == {"response": "Hola, ¿cómo estás?"}

    def test_generation_500(self) -> None:
        """Test an upstream 500 surfaces as a server error with no response."""
        gemini = ScriptedGemini(
            gemini_text("pest"),
            httpx.Response(500, json={"error": {"message": "Internal error encountered."}}),
        )

        with self._client(gemini, RelayMode.DOMAIN) as client:
            response = client.post("/api/chat", json={"message": "spots on leaves"})

        assert response.status_code == 500
        data = response.json()
        assert data["details"] == "Internal error encountered."
        assert "response" not in data

    def test_empty_message_makes_no_upstream_call(self) -> None:
        """Test validation happens before any model call."""
        gemini = ScriptedGemini()

        with self._client(gemini, RelayMode.DOMAIN) as client:
            response = client.post("/api/chat", json={"message": "", "language": "en-US"})

        assert response.status_code == 400
        assert gemini.requests == []


class TestAppFactory:
    """Tests for create_app and its lifespan."""

    def test_lifespan_uses_passed_config(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the relay built at startup follows the config given to create_app."""
        config = Config()
        config.gemini = GeminiConfig(api_key="test-key", model="gemini-test")
        config.relay = RelayConfig(mode=RelayMode.GENERIC)

        with patch("voicechat.server._relay", None), \
             patch("voicechat.server._config", None):
            from voicechat.server import create_app

            with caplog.at_level(logging.INFO, logger="voicechat.server"):
                with TestClient(create_app(config)) as client:
                    data = client.get("/config").json()

        assert data["mode"] == "generic"
        assert data["model"] == "gemini-test"
        assert data["default_language"] == "en-US"
        assert data["api_key_configured"] is True
        assert "Relay ready: mode=generic, model=gemini-test" in caplog.text

    def test_cors_origins_from_config(self) -> None:
        """Test CORS allows only the configured origins."""
        config = Config()
        config.server.cors_origins = ["http://localhost:3000"]

        with patch("voicechat.server._relay", None), \
             patch("voicechat.server._config", config):
            from voicechat.server import create_app

            client = TestClient(create_app(config))
            allowed = client.get("/", headers={"Origin": "http://localhost:3000"})
            denied = client.get("/", headers={"Origin": "http://evil.test"})

        assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "access-control-allow-origin" not in denied.headers
