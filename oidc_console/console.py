"""Console input for the interactive login loop.

Reading standard input blocks and cannot be canceled, so each physical read
runs on a daemon thread that hands its line back to the event loop. A read
that outlives the wait that started it is kept and handed to the next caller,
so a line typed after an abandoned prompt is neither lost nor read twice.
"""

import asyncio
import logging
import sys
import threading
from typing import TextIO

from .config import PROVIDER_GITHUB, PROVIDER_LOCAL

logger = logging.getLogger(__name__)

PROVIDER_PROMPT = (
    "Type '1' + ENTER to log in using the local server or '2' + ENTER to log in using GitHub."
)

# Menu keys accepted at the provider prompt
PROVIDER_CHOICES: dict[str, str] = {
    "1": PROVIDER_LOCAL,
    "2": PROVIDER_GITHUB,
}


def parse_provider_choice(line: str) -> str | None:
    """Map one line of console input to a provider name.

    Args:
        line: Raw line as read from the console (trailing newline allowed)

    Returns:
        Provider name, or None if the input is not a menu choice
    """
    return PROVIDER_CHOICES.get(line.rstrip("\r\n"))


class ConsoleReader:
    """Reads lines from a text stream without blocking the event loop."""

    def __init__(self, stream: TextIO | None = None):
        """Initialize console reader.

        Args:
            stream: Stream to read from (default: sys.stdin)
        """
        self.stream = stream or sys.stdin
        self._pending: asyncio.Future[str] | None = None

    def read_line(self) -> "asyncio.Future[str]":
        """Start (or resume) reading one line.

        Returns:
            Future resolved with the line, without its trailing newline.
            The future fails with EOFError once the stream is exhausted.
        """
        if self._pending is not None and not self._pending.done():
            return self._pending

        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()
        self._pending = future

        thread = threading.Thread(
            target=self._read_into,
            args=(loop, future),
            name="console-reader",
            daemon=True,
        )
        thread.start()
        return future

    def _read_into(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future) -> None:
        try:
            line = self.stream.readline()
        except (OSError, ValueError) as e:
            # ValueError: the stream was closed while the read was pending
            self._post(loop, future, None, e)
            return

        if line == "":
            self._post(loop, future, None, EOFError("End of console input"))
        else:
            self._post(loop, future, line.rstrip("\r\n"), None)

    @staticmethod
    def _post(
        loop: asyncio.AbstractEventLoop,
        future: asyncio.Future,
        line: str | None,
        error: BaseException | None,
    ) -> None:
        def resolve() -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(line)

        try:
            loop.call_soon_threadsafe(resolve)
        except RuntimeError:
            # Event loop already closed; nobody is waiting for this line
            logger.debug("Console read completed after the event loop closed")
