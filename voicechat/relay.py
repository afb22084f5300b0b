"""Prompt assembly and relay to the language model."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from voicechat.config import RelayMode, language_name
from voicechat.errors import InvalidRequest, UpstreamError

if TYPE_CHECKING:
    from voicechat.config import GenerationConfig, RelayConfig
    from voicechat.gemini import GeminiClient

logger = logging.getLogger(__name__)

FALLBACK_REPLIES = {
    "Hindi": "माफ़ कीजिए, मैं अभी जवाब नहीं दे पा रहा हूँ।",
    "English": "Sorry, I am unable to respond right now.",
}


class Intent(str, Enum):
    PEST = "pest"
    FERTILIZER = "fertilizer"
    IRRIGATION = "irrigation"
    WEATHER = "weather"
    GOVERNMENT_SCHEME = "government_scheme"
    GENERAL = "general"

    @classmethod
    def parse(cls, label: str | None) -> "Intent":
        """Normalise a model-produced label, falling back to GENERAL."""
        if not label:
            return cls.GENERAL
        normalized = label.strip().strip("\"'`.:;!- \n").lower()
        normalized = "_".join(normalized.replace("-", " ").split())
        try:
            return cls(normalized)
        except ValueError:
            return cls.GENERAL


@dataclass(frozen=True)
class AssistantReply:
    response: str
    intent: Intent | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.intent is None:
            return {"response": self.response}
        return {"intent": self.intent.value, "response": self.response}


def fallback_reply(language: str) -> str:
    return FALLBACK_REPLIES.get(language_name(language), FALLBACK_REPLIES["English"])


CLASSIFICATION_PROMPT = """
Classify the farmer's query into ONE intent only.

Possible intents:
{intents}

Reply with ONLY the intent word.

Query:
"{message}"
"""


class IntentClassifier:
    """Maps a free-text query onto the closed Intent set with one model call."""

    def __init__(self, client: "GeminiClient", generation: "GenerationConfig") -> None:
        self._client = client
        self._generation = generation

    def build_prompt(self, message: str) -> str:
        intents = "\n".join(f"- {intent.value}" for intent in Intent)
        return CLASSIFICATION_PROMPT.format(intents=intents, message=message)

    def classify(self, message: str) -> Intent:
        try:
            label = self._client.generate(self.build_prompt(message), self._generation)
        except UpstreamError as e:
            logger.warning("Intent classification failed, using general: %s", e)
            return Intent.GENERAL

        intent = Intent.parse(label)
        if label and intent.value != label.strip().lower():
            logger.debug("Classifier label %r normalised to %s", label, intent.value)
        return intent


class PromptStrategy(ABC):
    """Builds the generation prompt for one relay mode."""

    @abstractmethod
    def build(self, message: str, language: str, intent: Intent | None = None) -> str:
        ...


BASE_RULES = """
You are Kisan Mitra, an expert Indian agriculture assistant.
You think in Hindi first.
You give practical, field-tested advice.
Avoid generic AI answers.
Use simple farmer-friendly language.
"""

INTENT_PROMPTS = {
    Intent.PEST: """
You are a crop protection expert.
Ask crop name and symptoms if missing.
Suggest immediate treatment and prevention.
""",
    Intent.FERTILIZER: """
You are a soil and fertilizer expert.
Give dosage, timing, and method.
Avoid chemical overuse.
""",
    Intent.IRRIGATION: """
You are an irrigation advisor.
Suggest water quantity and schedule.
Consider season and crop stage.
""",
    Intent.WEATHER: """
You are a weather-based farming advisor.
Explain impact on crops.
Give precautions.
""",
    Intent.GOVERNMENT_SCHEME: """
You are an Indian agriculture scheme expert.
Explain eligibility and benefits clearly.
""",
    Intent.GENERAL: """
You are a helpful farming assistant.
""",
}


class DomainAdvisoryPrompt(PromptStrategy):
    """Persona rules + intent block + reply-language rules + the farmer's question."""

    def build(self, message: str, language: str, intent: Intent | None = None) -> str:
        block = INTENT_PROMPTS.get(intent or Intent.GENERAL, INTENT_PROMPTS[Intent.GENERAL])
        return (
            "\nSYSTEM:\n"
            f"{BASE_RULES}\n"
            f"{block}\n"
            "RULES:\n"
            f"- Respond ONLY in {language_name(language)}\n"
            "- Keep response practical (3-5 sentences)\n"
            "- Ask ONE follow-up question if needed\n"
            "\nFARMER QUESTION:\n"
            f"{message}\n"
        )


class GenericPrompt(PromptStrategy):
    """Single instruction: answer briefly in the user's own language."""

    def build(self, message: str, language: str, intent: Intent | None = None) -> str:
        return (
            "You are a friendly multilingual voice assistant. "
            f"The user is speaking {language_name(language)}. "
            "Respond in the same language as the user, in 2-3 short sentences "
            "that sound natural when read aloud.\n\n"
            f"User: {message}"
        )


class ChatRelay:
    """Complete relay: (classify) -> build prompt -> generate -> reply."""

    def __init__(self, client: "GeminiClient", config: "RelayConfig") -> None:
        self._client = client
        self._config = config
        self._classifier = IntentClassifier(client, config.classification)
        if config.mode == RelayMode.DOMAIN:
            self._strategy: PromptStrategy = DomainAdvisoryPrompt()
            self._generation = config.domain_reply
        else:
            self._strategy = GenericPrompt()
            self._generation = config.generic_reply

    @property
    def mode(self) -> RelayMode:
        return self._config.mode

    def chat(self, message: str | None, language: str | None = None) -> AssistantReply:
        """
        Answer one user message.

        Args:
            message: The user's confirmed text.
            language: Locale tag or language name for the reply; the mode's
                default is used when omitted.

        Returns:
            The assistant reply, tagged with the intent in domain mode.

        Raises:
            InvalidRequest: The message is absent or empty.
            UpstreamError: The generation call failed.
        """
        if not message:
            raise InvalidRequest("Message is required")

        language = language or self._config.default_language

        intent: Intent | None = None
        if self._config.mode == RelayMode.DOMAIN:
            intent = self._classifier.classify(message)
            logger.info("Detected intent: %s", intent.value)

        prompt = self._strategy.build(message, language, intent)
        text = self._client.generate(prompt, self._generation)

        if not text or not text.strip():
            logger.warning("Language model returned no text, using fallback reply")
            text = fallback_reply(language)

        return AssistantReply(response=text.strip(), intent=intent)
