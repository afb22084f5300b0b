"""Text-to-speech request building."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from voicechat.config import DictationConfig


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str


@dataclass(frozen=True)
class PlaybackRequest:
    text: str
    lang: str
    rate: float
    pitch: float
    voice: Voice | None = None


def primary_subtag(tag: str) -> str:
    return tag.replace("_", "-").split("-")[0].lower()


def find_voice(voices: "Sequence[Voice]", lang: str) -> Voice | None:
    """First installed voice that speaks the same base language."""
    prefix = primary_subtag(lang)
    for voice in voices:
        if primary_subtag(voice.lang) == prefix:
            return voice
    return None


def build_playback_request(
    text: str,
    language: str | None,
    voices: "Sequence[Voice]",
    config: "DictationConfig",
) -> PlaybackRequest:
    """
    Describe how a reply should be spoken.

    Args:
        text: Reply text.
        language: Locale tag of the turn, or None to use the default locale.
        voices: Voices installed on the playback device.
        config: Supplies default locale, rate and pitch.

    Returns:
        A playback request bound to a matching voice when one is installed.
    """
    lang = language or config.default_locale
    return PlaybackRequest(
        text=text,
        lang=lang,
        rate=config.speech_rate,
        pitch=config.speech_pitch,
        voice=find_voice(voices, lang),
    )
