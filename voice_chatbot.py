#!/usr/bin/env python3
"""
Voice Chat - Speak, confirm, and hear an AI reply

Usage:
    python voice_chatbot.py [serve|console] [options]

Environment Variables:
    PORT                      Backend port (default 5000)
    GEMINI_API_KEY            API key for the generative language model
    VOICECHAT_MODE            Relay mode: 'domain' or 'generic'
    VOICECHAT_MODEL           Model identifier (default gemini-2.5-flash)
    VOICECHAT_CORS_ORIGINS    Comma-separated allowed origins (default '*')
    VOICECHAT_DEFAULT_LOCALE  Locale used when auto-detect gives no hint
    VOICECHAT_BACKEND_URL     Backend URL used by the console client
    VOICECHAT_VERBOSE         Enable verbose logging: '1' or 'true'
"""

from voicechat.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main())
