"""Client-side dictation state machine.

One utterance moves through ``idle -> listening -> awaiting_confirmation ->
processing -> speaking -> idle``. A single ``Phase`` value is held at a time;
recognizer and synthesizer callbacks arrive as typed events passed to
``DictationSession.handle``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Protocol, Union

from voicechat.config import AUTO_LANGUAGE, DictationConfig
from voicechat.errors import (
    CaptureAlreadyActive,
    CaptureError,
    CaptureUnsupported,
    IllegalTransition,
)
from voicechat.speech import PlaybackRequest, Voice, build_playback_request

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    language: str


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    text: str


@dataclass
class Utterance:
    raw_text: str
    edited_text: str
    language: str


# Events delivered by the recognizer and synthesizer


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    language: str | None = None


@dataclass(frozen=True)
class RecognitionError:
    reason: str


@dataclass(frozen=True)
class RecognitionEnded:
    pass


@dataclass(frozen=True)
class PlaybackStarted:
    pass


@dataclass(frozen=True)
class PlaybackEnded:
    pass


@dataclass(frozen=True)
class PlaybackFailed:
    reason: str = ""


Event = Union[
    RecognitionResult,
    RecognitionError,
    RecognitionEnded,
    PlaybackStarted,
    PlaybackEnded,
    PlaybackFailed,
]


class SpeechRecognizer(Protocol):
    @property
    def available(self) -> bool: ...

    def start(self, locale: str | None) -> None: ...

    def stop(self) -> None: ...


class SpeechSynthesizer(Protocol):
    def voices(self) -> Sequence[Voice]: ...

    def speak(self, request: PlaybackRequest) -> None: ...

    def cancel(self) -> None: ...


class ChatTransport(Protocol):
    def send(self, message: str, language: str) -> str: ...


PhaseCallback = Callable[[Phase, Phase], None]
NoticeCallback = Callable[[Optional[Notice]], None]

CANCELLED_NOTICE = "Message cancelled. Click microphone to try again."
UNSUPPORTED_NOTICE = "Speech recognition is not supported in this environment."


class DictationSession:
    """
    Drives one browser tab's conversation.

    Speech results are held for confirmation and may be edited; only the
    confirmed (edited) text is sent to the chat backend. Replies are appended
    to the history and played back through the synthesizer.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        synthesizer: SpeechSynthesizer,
        transport: ChatTransport,
        config: DictationConfig | None = None,
        on_phase_change: PhaseCallback | None = None,
        on_notice: NoticeCallback | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._transport = transport
        self._config = config or DictationConfig()
        self._on_phase_change = on_phase_change
        self._on_notice = on_notice

        self._phase = Phase.IDLE
        self._selected_language = AUTO_LANGUAGE
        self._utterance: Utterance | None = None
        self._turn_language: str | None = None
        self._messages: list[Message] = []
        self._notice: Notice | None = None

        self._handlers: dict[type, Callable[..., None]] = {
            RecognitionResult: lambda e: self.on_recognition_result(e.text, e.language),
            RecognitionError: lambda e: self.on_recognition_error(e.reason),
            RecognitionEnded: lambda e: self.on_recognition_end(),
            PlaybackStarted: lambda e: None,
            PlaybackEnded: lambda e: self.on_playback_end(),
            PlaybackFailed: lambda e: self.on_playback_end(),
        }

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def selected_language(self) -> str:
        return self._selected_language

    @property
    def utterance(self) -> Utterance | None:
        return self._utterance

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def notice(self) -> Notice | None:
        return self._notice

    @property
    def can_capture(self) -> bool:
        """Whether the microphone control is enabled."""
        return self._phase in (Phase.IDLE, Phase.LISTENING)

    def handle(self, event: Event) -> None:
        """Dispatch a recognizer or synthesizer event to its handler."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {event!r}")
        handler(event)

    def select_language(self, language: str) -> None:
        self._selected_language = language or AUTO_LANGUAGE

    def activate_capture(self) -> None:
        if not self._recognizer.available:
            self._set_notice(NoticeLevel.ERROR, UNSUPPORTED_NOTICE)
            raise CaptureUnsupported(UNSUPPORTED_NOTICE)
        if self._phase == Phase.LISTENING:
            raise CaptureAlreadyActive("Already listening")
        if self._phase != Phase.IDLE:
            raise IllegalTransition(f"Cannot start capture while {self._phase.value}")

        self._set_notice(None)
        self._utterance = None

        locale = None if self._selected_language == AUTO_LANGUAGE else self._selected_language
        try:
            self._recognizer.start(locale)
        except Exception as e:
            self._set_notice(NoticeLevel.ERROR, f"Failed to start listening: {e}")
            raise CaptureError(str(e)) from e

        self._transition(Phase.LISTENING)

    def stop_capture(self) -> None:
        if self._phase != Phase.LISTENING:
            return
        self._recognizer.stop()
        self._transition(Phase.IDLE)

    def on_recognition_result(self, text: str, inferred_language: str | None = None) -> None:
        if self._phase != Phase.LISTENING:
            logger.debug("Ignoring recognition result while %s", self._phase.value)
            return

        if self._selected_language != AUTO_LANGUAGE:
            language = self._selected_language
        else:
            language = inferred_language or self._config.default_locale

        self._utterance = Utterance(raw_text=text, edited_text=text, language=language)
        self._transition(Phase.AWAITING_CONFIRMATION)

    def on_recognition_error(self, reason: str) -> None:
        self._set_notice(NoticeLevel.ERROR, f"Speech recognition error: {reason}")
        if self._phase == Phase.LISTENING:
            self._transition(Phase.IDLE)

    def on_recognition_end(self) -> None:
        # The recognizer also ends after delivering a result; that keeps the
        # confirmation pending.
        if self._phase == Phase.LISTENING:
            self._transition(Phase.IDLE)

    def edit_transcript(self, text: str) -> None:
        utterance = self._require_pending("edit")
        utterance.edited_text = text

    def confirm(self) -> None:
        utterance = self._require_pending("confirm")

        self._utterance = None
        self._turn_language = utterance.language
        self._messages.append(Message(Role.USER, utterance.edited_text, utterance.language))
        self._transition(Phase.PROCESSING)

        try:
            reply = self._transport.send(utterance.edited_text, utterance.language)
        except Exception as e:
            self.on_relay_failure(e)
            return

        self.on_relay_success(reply)

    def cancel(self) -> None:
        self._require_pending("cancel")
        self._utterance = None
        self._transition(Phase.IDLE)
        self._set_notice(NoticeLevel.INFO, CANCELLED_NOTICE)

    def on_relay_success(self, reply_text: str) -> None:
        if self._phase != Phase.PROCESSING:
            raise IllegalTransition(f"No request in flight while {self._phase.value}")

        language = self._turn_language or self._config.default_locale
        self._messages.append(Message(Role.ASSISTANT, reply_text, language))
        self._transition(Phase.SPEAKING)

        try:
            request = build_playback_request(
                reply_text, language, self._synthesizer.voices(), self._config
            )
            # Starting new playback replaces whatever is still playing
            self._synthesizer.cancel()
            self._synthesizer.speak(request)
        except Exception as e:
            logger.error("Playback failed: %s", e)
            self.on_playback_end()

    def on_relay_failure(self, error: Exception) -> None:
        if self._phase != Phase.PROCESSING:
            raise IllegalTransition(f"No request in flight while {self._phase.value}")

        logger.warning("Chat relay failed: %s", error)
        self._transition(Phase.IDLE)
        self._set_notice(NoticeLevel.ERROR, f"Failed to get AI response: {error}")

    def on_playback_end(self) -> None:
        if self._phase == Phase.SPEAKING:
            self._transition(Phase.IDLE)

    def stop_playback(self) -> None:
        self._synthesizer.cancel()
        self.on_playback_end()

    def dismiss_notice(self) -> None:
        self._set_notice(None)

    def _require_pending(self, action: str) -> Utterance:
        if self._phase != Phase.AWAITING_CONFIRMATION or self._utterance is None:
            raise IllegalTransition(f"Cannot {action} while {self._phase.value}")
        return self._utterance

    def _set_notice(self, level: NoticeLevel | None, text: str = "") -> None:
        self._notice = Notice(level, text) if level is not None else None
        if self._on_notice:
            self._on_notice(self._notice)

    def _transition(self, to_phase: Phase) -> None:
        from_phase = self._phase
        if from_phase == to_phase:
            return
        self._phase = to_phase
        logger.debug("Phase %s -> %s", from_phase.value, to_phase.value)
        if self._on_phase_change:
            self._on_phase_change(from_phase, to_phase)
