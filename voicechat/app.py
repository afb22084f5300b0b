"""Console voice chat client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from voicechat.client import HttpChatTransport
from voicechat.config import AUTO_LANGUAGE, SUPPORTED_LOCALES, Config
from voicechat.dictation import (
    DictationSession,
    Notice,
    NoticeLevel,
    Phase,
    PlaybackEnded,
    RecognitionEnded,
    RecognitionResult,
    Role,
)
from voicechat.errors import VoiceChatError

if TYPE_CHECKING:
    from voicechat.dictation import ChatTransport
    from voicechat.speech import PlaybackRequest, Voice

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("q", "quit", "exit")


class TypedRecognizer:
    """Stands in for speech recognition: the next typed line is the transcript."""

    available = True

    def __init__(self) -> None:
        self.locale: str | None = None
        self.listening = False

    def start(self, locale: str | None) -> None:
        self.locale = locale
        self.listening = True

    def stop(self) -> None:
        self.listening = False


class PrintSynthesizer:
    """Stands in for speech synthesis: replies are printed."""

    def voices(self) -> list["Voice"]:
        return []

    def speak(self, request: "PlaybackRequest") -> None:
        print(f"🔊 [{request.lang}] {request.text}")

    def cancel(self) -> None:
        pass


class ConsoleChatApp:
    """
    Terminal front-end for the voice chatbot.

    Each turn: type what you would have said, review and optionally edit
    the transcript, confirm to send it to the backend, and read the reply.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: "ChatTransport | None" = None,
        input_fn: Callable[[str], str] = input,
    ) -> None:
        self._config = config or Config()
        self._input = input_fn
        self._recognizer = TypedRecognizer()
        self._transport = transport or HttpChatTransport(self._config.dictation.backend_url)
        self._session = DictationSession(
            recognizer=self._recognizer,
            synthesizer=PrintSynthesizer(),
            transport=self._transport,
            config=self._config.dictation,
            on_notice=self._print_notice,
        )

    @property
    def session(self) -> DictationSession:
        return self._session

    def _print_banner(self) -> None:
        print("=" * 60)
        print("🎙️ VOICE CHAT - Speak -> Confirm -> Get AI Response")
        print("=" * 60)
        print(f"\n🌐 Backend: {self._config.dictation.backend_url}")

    def _print_instructions(self) -> None:
        print("\n" + "=" * 60)
        print("📌 INSTRUCTIONS:")
        print("   • Press Enter to talk, then type what you say.")
        print("   • Review the text: [c]onfirm, [e]dit or [x] cancel.")
        print("   • 'lang <code>' picks a language ('lang auto' to detect).")
        print("   • 'langs' lists languages, 'history' shows the chat, 'q' quits.")
        print("=" * 60)

    def _print_notice(self, notice: Notice | None) -> None:
        if notice is None:
            return
        icon = "⚠️" if notice.level == NoticeLevel.ERROR else "ℹ️"
        print(f"{icon}  {notice.text}")

    def _print_languages(self) -> None:
        for code, name in SUPPORTED_LOCALES:
            marker = " (selected)" if code == self._session.selected_language else ""
            print(f"  {code:<6} {name}{marker}")

    def run(self) -> None:
        self._print_banner()
        self._print_instructions()

        while True:
            try:
                command = self._input("\n🎤 [Enter] talk > ").strip()
            except EOFError:
                break

            if command.lower() in QUIT_COMMANDS:
                break
            if command == "langs":
                self._print_languages()
                continue
            if command == "history":
                for line in self.history():
                    print(line)
                continue
            if command.startswith("lang"):
                code = command[len("lang"):].strip() or AUTO_LANGUAGE
                self._session.select_language(code)
                print(f"🌍 Language: {code}")
                continue

            self.take_turn()

        print("\n👋 Bye")

    def take_turn(self) -> None:
        """Run one capture -> confirm -> reply cycle."""
        try:
            self._session.activate_capture()
        except VoiceChatError as e:
            logger.debug("Capture not started: %s", e)
            return

        print("🎤 Listening... type what you say")
        try:
            spoken = self._input("   > ").strip()
        except EOFError:
            spoken = ""

        if not spoken:
            self._session.handle(RecognitionEnded())
            print("⛔️ No speech captured")
            return

        self._session.handle(RecognitionResult(spoken, language=None))
        self._session.handle(RecognitionEnded())
        self._review()

    def _review(self) -> None:
        while self._session.phase == Phase.AWAITING_CONFIRMATION:
            utterance = self._session.utterance
            if utterance is None:
                break
            print(f"\n📝 You said ({utterance.language}): \"{utterance.edited_text}\"")
            try:
                choice = self._input("   [c]onfirm / [e]dit / [x] cancel > ").strip().lower()
            except EOFError:
                choice = "x"

            if choice in ("c", "confirm", ""):
                print("⏳ Getting AI response...")
                self._session.confirm()
            elif choice in ("e", "edit"):
                self._session.edit_transcript(self._input("   new text > "))
            elif choice in ("x", "cancel"):
                self._session.cancel()

        if self._session.phase == Phase.SPEAKING:
            # Printed playback finishes immediately
            self._session.handle(PlaybackEnded())

    def history(self) -> list[str]:
        lines = []
        for message in self._session.messages:
            who = "👤 You" if message.role == Role.USER else "🤖 AI"
            lines.append(f"{who} [{message.language}]: {message.content}")
        return lines
