"""Interactive login loop.

Prompts for an identity provider, runs the browser-based login through the
authentication service, reports the outcome and starts over until the
application is stopped.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .cancellation import wait_cancellable
from .console import PROVIDER_PROMPT, ConsoleReader, parse_provider_choice
from .errors import MissingClaimError, OperationCanceledError, ProtocolError
from .lifetime import ApplicationLifetime, BackgroundService
from .oauth.service import AuthenticationService
from .principal import Claims

logger = logging.getLogger(__name__)


class LineReader(Protocol):
    """Source of console lines (``ConsoleReader`` or a test double)."""

    def read_line(self) -> Awaitable[str]: ...


class OutcomeKind(Enum):
    """How a login attempt ended."""

    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    DENIED = "denied"
    FAILED = "failed"


@dataclass(frozen=True)
class LoginOutcome:
    """Result of one iteration of the login loop."""

    kind: OutcomeKind
    provider: str | None = None
    display_name: str | None = None
    error: Exception | None = None

    @property
    def message(self) -> str:
        """Status line shown to the user."""
        if self.kind is OutcomeKind.SUCCEEDED:
            return f"Welcome, {self.display_name}."
        return FAILURE_MESSAGES[self.kind]


FAILURE_MESSAGES: dict[OutcomeKind, str] = {
    OutcomeKind.ABORTED: "The authentication process was aborted.",
    OutcomeKind.DENIED: "The authorization was denied by the end user.",
    OutcomeKind.FAILED: "An error occurred while trying to authenticate the user.",
}

LAUNCHING_BROWSER = "Launching the system browser."


def classify_failure(error: Exception) -> OutcomeKind:
    """Map an authentication failure to an outcome, most specific case first."""
    if isinstance(error, OperationCanceledError):
        return OutcomeKind.ABORTED
    if isinstance(error, ProtocolError) and error.is_access_denied:
        return OutcomeKind.DENIED
    return OutcomeKind.FAILED


class InteractiveService(BackgroundService):
    """Runs interactive logins until the application stops."""

    def __init__(
        self,
        lifetime: ApplicationLifetime,
        auth_service: AuthenticationService,
        console: LineReader | None = None,
    ):
        """Initialize the login loop.

        Args:
            lifetime: Application lifetime providing the started notification
            auth_service: Service performing the interactive authentication
            console: Line source for the provider prompt (default: stdin)
        """
        self.lifetime = lifetime
        self.auth_service = auth_service
        self.console = console or ConsoleReader()

    async def execute(self, stopping: asyncio.Event) -> None:
        """Run the login loop until ``stopping`` is set."""
        # Prompts must not be printed before the host has finished starting
        await self.lifetime.wait_started()

        while not stopping.is_set():
            try:
                provider = await self.prompt_for_provider(stopping)
            except OperationCanceledError as e:
                outcome = LoginOutcome(OutcomeKind.ABORTED, error=e)
            except EOFError:
                logger.info("Console input closed")
                self.lifetime.stop_application()
                break
            else:
                print(LAUNCHING_BROWSER)
                outcome = await self.login(provider, stopping)

            print(outcome.message)

        logger.debug("Login loop stopped")

    async def prompt_for_provider(self, cancellation: asyncio.Event) -> str:
        """Show the provider menu until a valid choice is entered.

        Raises:
            OperationCanceledError: If cancellation was signaled while waiting
            EOFError: If console input was closed
        """
        while True:
            print(PROVIDER_PROMPT)
            line = await wait_cancellable(self.console.read_line(), cancellation)
            provider = parse_provider_choice(line)
            if provider:
                return provider
            logger.debug(f"Ignoring unrecognized provider choice: {line!r}")

    async def login(self, provider: str, cancellation: asyncio.Event) -> LoginOutcome:
        """Authenticate with a provider and classify the result.

        Failures never escape: they are reported through the returned outcome
        so the loop can prompt again.
        """
        try:
            result = await wait_cancellable(
                self.auth_service.authenticate_interactively(provider, cancellation),
                cancellation,
            )
            display_name = result.principal.find_first(Claims.NAME)
            if display_name is None:
                raise MissingClaimError(Claims.NAME, provider)
        except Exception as e:
            kind = classify_failure(e)
            if kind is OutcomeKind.FAILED:
                logger.error(f"Authentication with {provider} failed: {e}", exc_info=e)
            else:
                logger.info(f"Authentication with {provider} {kind.value}: {e}")
            return LoginOutcome(kind, provider=provider, error=e)

        return LoginOutcome(OutcomeKind.SUCCEEDED, provider=provider, display_name=display_name)
