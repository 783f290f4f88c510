"""Main entry point for relay-bot."""

import asyncio
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from relay_bot.chat import ChatHub
from relay_bot.chat.server import create_app
from relay_bot.config import Config, load_api_keys_from_env, load_config
from relay_bot.coordinator import Coordinator
from relay_bot.core.logging import get_session_stats


def setup_logging(debug: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_app(config: Config):
    """Wire the hub, coordinator and web app together."""
    hub = ChatHub()
    coordinator = Coordinator.from_config(config, transport=hub)
    return create_app(
        coordinator,
        hub,
        static_dir=config.server.static_dir,
        welcome_delay=config.typing.welcome_delay_seconds,
    )


async def async_main(
    config_path: str | None = None,
    debug: bool = False,
    debug_ai: bool = False,
) -> None:
    """Async main entry point."""
    setup_logging(debug)
    logger = logging.getLogger(__name__)

    # Load .env file if present
    load_dotenv()

    config = load_config(config_path)
    config = load_api_keys_from_env(config)

    if debug_ai:
        from relay_bot.core.logging import set_ai_debug
        set_ai_debug(True)
        logger.info("AI debug logging enabled - full provider inputs and outputs will be logged")

    logger.info("Starting relay-bot...")
    logger.info(f"Assistant name: {config.assistant_name}")

    app = build_app(config)
    server = uvicorn.Server(
        uvicorn.Config(app, host=config.server.host, port=config.server.port, log_level="info")
    )
    logger.info(f"Chat server running on http://{config.server.host}:{config.server.port}")

    try:
        await server.serve()
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        logger.info(f"SESSION_STATS: {get_session_stats().summary_line()}")
        logger.info("Server closed")


def main() -> None:
    """Main entry point (sync wrapper)."""
    import argparse

    parser = argparse.ArgumentParser(
        description="relay-bot: real-time chat relay with an AI participant",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--debug-ai",
        action="store_true",
        help="Log full inputs and outputs for all provider calls",
    )

    args = parser.parse_args()

    try:
        asyncio.run(async_main(
            config_path=args.config,
            debug=args.debug,
            debug_ai=args.debug_ai,
        ))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
