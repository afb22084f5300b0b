"""Configuration for the voicechat server and client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

AUTO_LANGUAGE = "auto"


class RelayMode(str, Enum):
    DOMAIN = "domain"
    GENERIC = "generic"


# (code, display name) pairs offered by the language picker
SUPPORTED_LOCALES = [
    (AUTO_LANGUAGE, "Auto-detect"),
    ("en-US", "English"),
    ("es-ES", "Spanish"),
    ("fr-FR", "French"),
    ("de-DE", "German"),
    ("it-IT", "Italian"),
    ("pt-BR", "Portuguese"),
    ("hi-IN", "Hindi"),
    ("zh-CN", "Chinese"),
    ("ja-JP", "Japanese"),
    ("ko-KR", "Korean"),
    ("ar-SA", "Arabic"),
    ("ru-RU", "Russian"),
]

# Language name mapping for LLM prompts, keyed by primary subtag
LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "hi": "Hindi",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "ru": "Russian",
}


def language_name(tag: str) -> str:
    """Human language name for a locale tag, e.g. ``hi-IN`` -> ``Hindi``.

    Tags that are already names, or that we don't know, pass through.
    """
    primary = tag.strip().replace("_", "-").split("-")[0].lower()
    return LANGUAGE_NAMES.get(primary, tag.strip())


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 5000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class GenerationConfig:
    temperature: float
    max_output_tokens: int | None = None


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class RelayConfig:
    mode: RelayMode = RelayMode.DOMAIN
    classification: GenerationConfig = field(
        default_factory=lambda: GenerationConfig(temperature=0.0)
    )
    domain_reply: GenerationConfig = field(
        default_factory=lambda: GenerationConfig(temperature=0.4, max_output_tokens=220)
    )
    generic_reply: GenerationConfig = field(
        default_factory=lambda: GenerationConfig(temperature=0.7, max_output_tokens=256)
    )

    @property
    def default_language(self) -> str:
        if self.mode == RelayMode.DOMAIN:
            return "Hindi"
        return "en-US"


@dataclass
class DictationConfig:
    default_locale: str = "en-US"
    speech_rate: float = 0.9
    speech_pitch: float = 1.0
    backend_url: str = "http://localhost:5000"


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    dictation: DictationConfig = field(default_factory=DictationConfig)
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if port := os.environ.get("PORT"):
            config.server.port = int(port)

        if origins := os.environ.get("VOICECHAT_CORS_ORIGINS"):
            config.server.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

        # Not validated here; a missing key surfaces as an upstream auth failure
        config.gemini.api_key = os.environ.get("GEMINI_API_KEY", "")

        if model := os.environ.get("VOICECHAT_MODEL"):
            config.gemini.model = model

        if mode := os.environ.get("VOICECHAT_MODE"):
            try:
                config.relay.mode = RelayMode(mode.lower())
            except ValueError:
                pass  # Keep default if invalid value

        if locale := os.environ.get("VOICECHAT_DEFAULT_LOCALE"):
            config.dictation.default_locale = locale

        if url := os.environ.get("VOICECHAT_BACKEND_URL"):
            config.dictation.backend_url = url.rstrip("/")

        if verbose := os.environ.get("VOICECHAT_VERBOSE"):
            config.verbose = verbose.lower() in ("1", "true", "yes")

        return config
