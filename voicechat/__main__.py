"""Entry point for running voicechat as a module: python -m voicechat"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from voicechat.config import Config


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity setting."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from third-party libraries
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.ERROR)


COMMANDS = ("serve", "console")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # Without a leading command, every option goes to the server
    command = argv.pop(0) if argv and argv[0] in COMMANDS else "serve"
    if command == "console":
        # The console client takes no options
        argparse.ArgumentParser(prog="voicechat console").parse_args(argv)

    # Load .env file if it exists (before reading config)
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if command == "serve":
        from voicechat.server import main as serve

        serve(argv)
        return 0

    config = Config.from_env()
    setup_logging(config.verbose)

    from voicechat.app import ConsoleChatApp

    app = ConsoleChatApp(config)
    try:
        app.run()
        return 0
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130
    except Exception as e:
        logging.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
