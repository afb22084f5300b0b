"""Web server for voicechat - relays confirmed utterances to the language model."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voicechat.config import Config
from voicechat.errors import InvalidRequest, UpstreamError

if TYPE_CHECKING:
    from voicechat.relay import ChatRelay

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000

_relay: ChatRelay | None = None
_config: Config | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global _relay, _config

    from voicechat.gemini import GeminiClient
    from voicechat.relay import ChatRelay

    _config = app.state.config

    client = GeminiClient(_config.gemini)
    _relay = ChatRelay(client, _config.relay)

    logger.info(f"Relay ready: mode={_relay.mode.value}, model={client.model}")
    if not _config.gemini.api_key:
        logger.warning("GEMINI_API_KEY is not set; chat requests will fail upstream")

    yield

    logger.info("Shutting down...")
    client.close()


def create_app(config: Config | None = None) -> FastAPI:
    app = FastAPI(
        title="Voice Chatbot API",
        description="Relays confirmed voice transcripts to a generative language model",
        version="1.0.0",
        lifespan=lifespan,
    )

    if config is None:
        load_dotenv()
        config = Config.from_env()
    # Read by lifespan when the app starts
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def liveness():
        return JSONResponse({"message": "Voice Chatbot Backend is running!"})

    @app.get("/config")
    async def get_config():
        if _config is None:
            return JSONResponse({"error": "Not initialized"}, status_code=503)

        return JSONResponse({
            "mode": _config.relay.mode.value,
            "model": _config.gemini.model,
            "default_language": _config.relay.default_language,
            "api_key_configured": bool(_config.gemini.api_key),
        })

    @app.post("/api/chat")
    async def chat(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None

        message = body.get("message") if isinstance(body, dict) else None
        language = body.get("language") if isinstance(body, dict) else None

        if not isinstance(message, str) or not message:
            return JSONResponse({"error": "Message is required"}, status_code=400)
        if not isinstance(language, str):
            language = None

        if _relay is None:
            return JSONResponse({"error": "Server not ready"}, status_code=503)

        logger.info(f"Chat request: {len(message)} chars, language={language}")

        try:
            reply = await asyncio.to_thread(_relay.chat, message, language)
        except InvalidRequest as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except UpstreamError as e:
            logger.error(f"Upstream error: {e} ({e.details})")
            payload = {"error": str(e)}
            if e.details:
                payload["details"] = e.details
            return JSONResponse(payload, status_code=500)
        except Exception as e:
            logger.exception("Chat relay error")
            return JSONResponse({"error": str(e)}, status_code=500)

        return JSONResponse(reply.to_dict())

    return app


def main(argv: list[str] | None = None):
    load_dotenv()
    config = Config.from_env()

    parser = argparse.ArgumentParser(description="Voice Chatbot Backend")
    parser.add_argument("--host", default=config.server.host or DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=config.server.port or DEFAULT_PORT)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args(argv)

    import uvicorn

    print(f"\n🚀 Backend server running on http://{args.host}:{args.port}")
    print(f"   Mode: {config.relay.mode.value}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "voicechat.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
