#!/usr/bin/env python3
"""Command-line entry point.

Usage:
    oidc-console                          # Log in interactively
    oidc-console --log-level DEBUG        # Show flow diagnostics
    python -m oidc_console --env-file path/to/.env
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config import Settings, get_settings
from .interactive import InteractiveService
from .lifetime import ApplicationLifetime, ConsoleHost
from .logging_config import setup_logging
from .oauth.service import OIDCClientService


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="oidc-console",
        description="Log in to an identity provider from the console.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from OIDC_CONSOLE_* environment variables or a .env file:
    OIDC_CONSOLE_LOCAL__ISSUER=https://localhost:44395/
    OIDC_CONSOLE_GITHUB__CLIENT_ID=...
    OIDC_CONSOLE_GITHUB__CLIENT_SECRET=...
""",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: OIDC_CONSOLE_LOG_LEVEL or INFO)",
    )
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--env-file", type=Path, help="Read configuration from this .env file")
    return parser


async def run(settings: Settings) -> None:
    """Run the interactive login loop until the process is stopped."""
    lifetime = ApplicationLifetime()
    auth_service = OIDCClientService(settings)
    await ConsoleHost(lifetime).run(InteractiveService(lifetime, auth_service))


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure the application and run it."""
    args = build_parser().parse_args(argv)

    # Without --env-file, look for .env from the working directory, as Settings does
    load_dotenv(args.env_file or find_dotenv(usecwd=True))
    try:
        settings = get_settings(args.env_file)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 1

    logger = setup_logging(
        level=args.log_level or settings.log_level,
        log_file=args.log_file or settings.log_file,
    )
    logger.debug(f"Callback listener: {settings.callback_host}:{settings.callback_port}")

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        print("\nInterrupted. Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
