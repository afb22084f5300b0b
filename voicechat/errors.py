"""Error types shared by the relay server and the dictation client."""

from __future__ import annotations


class VoiceChatError(Exception):
    """Base class for all voicechat errors."""


class InvalidRequest(VoiceChatError):
    """Malformed or missing input. No external call is attempted."""


class UpstreamError(VoiceChatError):
    """The language model call failed or returned a non-success status."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.details = details


class CaptureUnsupported(VoiceChatError):
    """Speech recognition is not available in this environment."""


class CaptureAlreadyActive(VoiceChatError):
    """Capture was requested while already listening."""


class CaptureError(VoiceChatError):
    """The recognizer failed to start or reported an error."""


class RelayNetworkError(VoiceChatError):
    """The client-to-backend chat call failed."""


class IllegalTransition(VoiceChatError):
    """An operation was invoked outside the phase that permits it."""
