#!/usr/bin/env python3
"""
Main application - negotiates a session credential and holds the real-time connection open
"""

import argparse
import asyncio
import signal
import sys

from auth import AuthClient, AuthError, options_from_settings
from config import LOGGING_CONFIG, get_app_config
from core import ConnectionStatus, View, ViewController
from core.config_validator import ConfigValidationError, validate_startup_config
from core.connection_coordinator import ConnectionCoordinator
from core.logging_config import get_logger, setup_logging
from tokens import AgentSettingsNotifier, ConnectionOptions, CredentialExchangeError, TokenExchangeClient


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Connect to a voice agent session")
    parser.add_argument("--name", help="Display name sent to the agent")
    parser.add_argument("--voice", help="Agent voice")
    parser.add_argument("--personality", help="Agent personality")
    parser.add_argument("--language", help="Conversation language")
    parser.add_argument("--email", help="Sign in to load stored agent settings")
    parser.add_argument("--password", help="Password for --email")
    return parser.parse_args(argv)


async def load_options(args: argparse.Namespace, logger) -> ConnectionOptions:
    """Stored user settings first, then command-line overrides"""
    options = ConnectionOptions()

    if args.email:
        async with AuthClient() as auth:
            try:
                settings = await auth.login(args.email, args.password or "")
            except AuthError as e:
                logger.warning(f"Could not load stored settings: {e}")
            else:
                options = options_from_settings(settings)

    overrides = {
        "display_name": args.name,
        "voice": args.voice,
        "personality": args.personality,
        "language": args.language,
    }
    for key, value in overrides.items():
        if value:
            setattr(options, key, value)
    return options


def render(old_view: View, new_view: View, transition_seconds: float):
    if new_view == View.SESSION:
        print("Connected. Press Ctrl+C to leave the session.")
    else:
        print("Not connected.")


async def run(args: argparse.Namespace) -> int:
    logger = get_logger(__name__)
    app_config = get_app_config()

    notifier = AgentSettingsNotifier.from_config()
    token_client = TokenExchangeClient.from_config(notifier=notifier)
    coordinator = ConnectionCoordinator(token_client, agent_name=app_config["agent_name"])
    ViewController(coordinator.state_manager, on_render=render)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    coordinator.state_manager.add_listener(
        lambda old, new: stop.set() if new == ConnectionStatus.DISCONNECTED else None
    )

    options = await load_options(args, logger)
    print(f"{app_config['page_title']}: {app_config['start_button_text']}...")

    try:
        await coordinator.connect(options)
    except CredentialExchangeError as e:
        logger.error("Failed to connect", extra={"extra_data": {
            "error_type": type(e).__name__, "error_message": str(e)
        }})
        print(f"Connection failed: {e}")
        await coordinator.shutdown()
        return 1

    await stop.wait()
    logger.info("Leaving session", extra={"extra_data": coordinator.get_stats()})
    await coordinator.shutdown()
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    setup_logging(LOGGING_CONFIG)
    logger = get_logger(__name__)

    try:
        validate_startup_config()
    except ConfigValidationError as e:
        print(f"Configuration validation failed: {e}")
        print("Please fix the configuration errors and try again.")
        return 1

    logger.info("Starting agent session client")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
