"""
Voice Chat - Speak, confirm, and hear an AI reply

A voice chatbot backend that relays confirmed transcripts to a generative
language model, plus the client-side dictation state machine that drives it.
"""

__version__ = "1.0.0"

from voicechat.config import Config
from voicechat.dictation import DictationSession, Phase
from voicechat.relay import ChatRelay

__all__ = ["ChatRelay", "Config", "DictationSession", "Phase", "__version__"]
