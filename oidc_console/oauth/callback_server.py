"""Local redirect listener for the authorization-code flow.

A short-lived aiohttp server receives the provider's redirect, checks the
``state`` parameter and hands the authorization code (or the provider's
error) back to the waiting coroutine.
"""

import asyncio
import html
import logging
from dataclasses import dataclass

from aiohttp import web

from ..errors import ProtocolError

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """
<html>
<head><title>Authorization Successful</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: green;">Authorization Successful</h1>
    <p>You can close this window and return to the terminal.</p>
</body>
</html>
"""

ERROR_PAGE = """
<html>
<head><title>Authorization Failed</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: red;">Authorization Failed</h1>
    <p><strong>Error:</strong> {error}</p>
    <p>{error_description}</p>
    <p>Please close this window and return to the terminal.</p>
</body>
</html>
"""


@dataclass
class AuthorizationResponse:
    """Parameters of a successful authorization redirect."""

    code: str
    state: str | None = None


class RedirectListener:
    """Receives a single authorization redirect on a local port.

    Usage:
        async with RedirectListener("localhost", 8739, "/callback", state) as listener:
            webbrowser.open(authorization_url)
            response = await listener.wait()
    """

    def __init__(self, host: str, port: int, path: str, expected_state: str | None):
        """Initialize redirect listener.

        Args:
            host: Interface to bind
            port: Port to bind
            path: Redirect path registered with the provider
            expected_state: ``state`` value sent in the authorization request
        """
        self.host = host
        self.port = port
        self.path = path
        self.expected_state = expected_state
        self._runner: web.AppRunner | None = None
        self._response: asyncio.Future[AuthorizationResponse] | None = None

    @property
    def url(self) -> str:
        """URL the provider redirects to."""
        return f"http://{self.host}:{self.port}{self.path}"

    def _get_response_future(self) -> "asyncio.Future[AuthorizationResponse]":
        if self._response is None:
            self._response = asyncio.get_running_loop().create_future()
        return self._response

    def _error_page(self, error: str, description: str, status: int) -> web.Response:
        return web.Response(
            text=ERROR_PAGE.format(
                error=html.escape(error), error_description=html.escape(description)
            ),
            content_type="text/html",
            status=status,
        )

    async def handle_callback(self, request: web.Request) -> web.Response:
        """Handle the provider's redirect."""
        future = self._get_response_future()
        if future.done():
            return web.Response(text="Authorization response already received", status=409)

        params = request.query
        if "code" not in params and "error" not in params:
            logger.debug("Ignoring request without an authorization response")
            return web.Response(text="Invalid callback", status=400)

        # Verify state to prevent CSRF
        if self.expected_state is not None and params.get("state") != self.expected_state:
            logger.warning("Rejected authorization response with mismatched state")
            future.set_exception(
                ProtocolError(ProtocolError.INVALID_REQUEST, "State parameter mismatch")
            )
            return self._error_page(
                ProtocolError.INVALID_REQUEST, "Invalid state parameter.", status=400
            )

        if "error" in params:
            error = params.get("error") or "unknown_error"
            error_description = params.get("error_description", "")
            logger.info(f"Provider returned error: {error}")
            future.set_exception(ProtocolError(error, error_description or None))
            return self._error_page(error, error_description, status=200)

        future.set_result(AuthorizationResponse(code=params["code"], state=params.get("state")))
        return web.Response(text=SUCCESS_PAGE, content_type="text/html")

    async def start(self) -> None:
        """Start listening for the redirect."""
        self._get_response_future()

        app = web.Application()
        app.router.add_get(self.path, self.handle_callback)

        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise

        self._runner = runner
        logger.info(f"Callback server listening on {self.url}")

    async def wait(self) -> AuthorizationResponse:
        """Wait for the provider's redirect.

        Returns:
            AuthorizationResponse carrying the authorization code

        Raises:
            ProtocolError: If the provider returned an error or the state
                did not match
        """
        return await asyncio.shield(self._get_response_future())

    async def stop(self) -> None:
        """Stop the listener and release the port."""
        if self._response is not None:
            if not self._response.done():
                self._response.cancel()
            elif not self._response.cancelled():
                # Mark an unawaited provider error as retrieved
                self._response.exception()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("Callback server stopped")

    async def __aenter__(self) -> "RedirectListener":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
