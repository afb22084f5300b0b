"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import os
from typing import Any, Generator

import httpx
import pytest

from voicechat.config import GeminiConfig


def gemini_text(text: str) -> dict[str, Any]:
    """A generateContent payload carrying one candidate text."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class ScriptedGemini:
    """Mock transport answering generateContent calls from a queue."""

    def __init__(self, *responses: httpx.Response | dict[str, Any]) -> None:
        self._responses = list(responses)
        self.prompts: list[str] = []
        self.generation_configs: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        self.prompts.append(body["contents"][0]["parts"][0]["text"])
        self.generation_configs.append(body["generationConfig"])

        if not self._responses:
            raise AssertionError("Unexpected generateContent call")
        response = self._responses.pop(0)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def gemini_config() -> GeminiConfig:
    return GeminiConfig(api_key="test-key", model="gemini-2.5-flash")


class FakeRecognizer:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.started_with: list[str | None] = []
        self.stopped = False
        self.fail_on_start: Exception | None = None

    def start(self, locale: str | None) -> None:
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.started_with.append(locale)

    def stop(self) -> None:
        self.stopped = True


class FakeSynthesizer:
    def __init__(self, voices: list | None = None) -> None:
        self._voices = voices or []
        self.spoken: list = []
        self.cancelled = 0

    def voices(self) -> list:
        return self._voices

    def speak(self, request) -> None:  # noqa: ANN001
        self.spoken.append(request)

    def cancel(self) -> None:
        self.cancelled += 1


class FakeTransport:
    def __init__(self, reply: str = "Hello!", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def send(self, message: str, language: str) -> str:
        self.calls.append((message, language))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Fixture to clean environment variables before/after tests."""
    env_vars = [
        "PORT",
        "GEMINI_API_KEY",
        "VOICECHAT_MODE",
        "VOICECHAT_MODEL",
        "VOICECHAT_CORS_ORIGINS",
        "VOICECHAT_DEFAULT_LOCALE",
        "VOICECHAT_BACKEND_URL",
        "VOICECHAT_VERBOSE",
    ]
    original_values = {var: os.environ.get(var) for var in env_vars}

    for var in env_vars:
        os.environ.pop(var, None)

    yield

    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)
