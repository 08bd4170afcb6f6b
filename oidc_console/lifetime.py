"""Process lifecycle for the console client.

``ApplicationLifetime`` carries the two signals the login loop observes: a
one-shot "started" notification and the process-wide stop signal.
``ConsoleHost`` wires SIGINT/SIGTERM to the stop signal and runs the loop.
"""

import asyncio
import logging
import signal
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ApplicationLifetime:
    """Started and stopping notifications for the running application."""

    def __init__(self) -> None:
        self._started = asyncio.Event()
        self.stopping = asyncio.Event()

    @property
    def is_started(self) -> bool:
        """Check if the started notification has fired."""
        return self._started.is_set()

    def notify_started(self) -> None:
        """Fire the started notification. Later calls have no effect."""
        if not self._started.is_set():
            logger.debug("Application started")
            self._started.set()

    async def wait_started(self) -> None:
        """Wait until the started notification has fired."""
        await self._started.wait()

    def stop_application(self) -> None:
        """Request a graceful shutdown."""
        if not self.stopping.is_set():
            logger.info("Application is shutting down...")
            self.stopping.set()


class BackgroundService(ABC):
    """A long-running coroutine driven by ``ConsoleHost``."""

    @abstractmethod
    async def execute(self, stopping: asyncio.Event) -> None:
        """Run until ``stopping`` is set.

        Args:
            stopping: Process-wide cancellation signal
        """
        pass


class ConsoleHost:
    """Runs a background service until it finishes or the process is stopped."""

    SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, lifetime: ApplicationLifetime | None = None):
        self.lifetime = lifetime or ApplicationLifetime()
        self._installed_signals: list[signal.Signals] = []

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self.SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.lifetime.stop_application)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread
                logger.debug(f"Cannot install handler for {sig.name}")
                continue
            self._installed_signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    async def run(self, service: BackgroundService) -> None:
        """Start the service, fire the started notification and wait for it to end.

        Args:
            service: Service to run
        """
        self._install_signal_handlers()
        try:
            task = asyncio.create_task(service.execute(self.lifetime.stopping))
            self.lifetime.notify_started()
            await task
        finally:
            self._remove_signal_handlers()
        logger.debug("Host stopped")
