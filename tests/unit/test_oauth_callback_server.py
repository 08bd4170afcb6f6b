"""Tests for the local redirect listener."""

import asyncio
import socket

import httpx
import pytest
from aiohttp.test_utils import make_mocked_request

from oidc_console.errors import ProtocolError
from oidc_console.oauth.callback_server import AuthorizationResponse, RedirectListener

CALLBACK_PATH = "/callback/login/local"


def free_port() -> int:
    """Find a free local TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("localhost", 0))
        return sock.getsockname()[1]


@pytest.fixture
def listener() -> RedirectListener:
    return RedirectListener("localhost", 18740, CALLBACK_PATH, expected_state="state123")


class TestHandleCallback:
    """Tests for redirect handling without a running server."""

    @pytest.mark.asyncio
    async def test_code_with_matching_state(self, listener: RedirectListener) -> None:
        """A code with the expected state completes the wait."""
        request = make_mocked_request("GET", f"{CALLBACK_PATH}?code=abc&state=state123")

        response = await listener.handle_callback(request)

        assert response.status == 200
        assert "Authorization Successful" in response.text
        result = await asyncio.wait_for(listener.wait(), timeout=1)
        assert result == AuthorizationResponse(code="abc", state="state123")

    @pytest.mark.asyncio
    async def test_state_mismatch(self, listener: RedirectListener) -> None:
        """A mismatched state is rejected as an invalid request."""
        request = make_mocked_request("GET", f"{CALLBACK_PATH}?code=abc&state=forged")

        response = await listener.handle_callback(request)

        assert response.status == 400
        with pytest.raises(ProtocolError) as exc_info:
            await asyncio.wait_for(listener.wait(), timeout=1)
        assert exc_info.value.error == ProtocolError.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_missing_state(self, listener: RedirectListener) -> None:
        """A redirect without state is rejected."""
        request = make_mocked_request("GET", f"{CALLBACK_PATH}?code=abc")

        response = await listener.handle_callback(request)

        assert response.status == 400
        with pytest.raises(ProtocolError):
            await asyncio.wait_for(listener.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_access_denied(self, listener: RedirectListener) -> None:
        """The provider's access_denied error reaches the waiter."""
        request = make_mocked_request(
            "GET",
            f"{CALLBACK_PATH}?error=access_denied&error_description=User%20declined&state=state123",
        )

        response = await listener.handle_callback(request)

        assert "Authorization Failed" in response.text
        with pytest.raises(ProtocolError) as exc_info:
            await asyncio.wait_for(listener.wait(), timeout=1)
        assert exc_info.value.is_access_denied
        assert exc_info.value.description == "User declined"

    @pytest.mark.asyncio
    async def test_error_page_escapes_html(self, listener: RedirectListener) -> None:
        """Provider-supplied error text is escaped in the page."""
        request = make_mocked_request(
            "GET",
            f"{CALLBACK_PATH}?error=server_error"
            "&error_description=%3Cscript%3Ealert(1)%3C/script%3E&state=state123",
        )

        response = await listener.handle_callback(request)

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text
        await listener.stop()

    @pytest.mark.asyncio
    async def test_invalid_callback_keeps_waiting(self, listener: RedirectListener) -> None:
        """A redirect with neither code nor error does not complete the wait."""
        request = make_mocked_request("GET", f"{CALLBACK_PATH}?state=state123")

        response = await listener.handle_callback(request)

        assert response.status == 400
        with pytest.raises(TimeoutError):
            await asyncio.wait_for(listener.wait(), timeout=0.01)

    @pytest.mark.asyncio
    async def test_stray_request_does_not_consume_redirect(
        self, listener: RedirectListener
    ) -> None:
        """A request without code or error is rejected and the real redirect still completes."""
        stray = make_mocked_request("GET", CALLBACK_PATH)
        redirect = make_mocked_request("GET", f"{CALLBACK_PATH}?code=abc&state=state123")

        stray_response = await listener.handle_callback(stray)
        response = await listener.handle_callback(redirect)

        assert stray_response.status == 400
        assert response.status == 200
        result = await asyncio.wait_for(listener.wait(), timeout=1)
        assert result.code == "abc"

    @pytest.mark.asyncio
    async def test_second_callback_rejected(self, listener: RedirectListener) -> None:
        """Only the first redirect is accepted."""
        first = make_mocked_request("GET", f"{CALLBACK_PATH}?code=abc&state=state123")
        second = make_mocked_request("GET", f"{CALLBACK_PATH}?code=other&state=state123")

        await listener.handle_callback(first)
        response = await listener.handle_callback(second)

        assert response.status == 409
        assert (await listener.wait()).code == "abc"

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_wait(self, listener: RedirectListener) -> None:
        """Stopping the listener cancels a wait that never received a redirect."""
        waiter = asyncio.create_task(listener.wait())
        await asyncio.sleep(0)

        await listener.stop()

        with pytest.raises(asyncio.CancelledError):
            await waiter

    def test_url(self, listener: RedirectListener) -> None:
        """The listener URL matches the registered redirect URI."""
        assert listener.url == "http://localhost:18740/callback/login/local"


class TestRedirectListenerServer:
    """Tests against a running listener."""

    @pytest.mark.asyncio
    async def test_receives_redirect_over_http(self) -> None:
        """A real HTTP redirect delivers the authorization code."""
        port = free_port()

        async with RedirectListener("localhost", port, CALLBACK_PATH, "xyz") as listener:
            async with httpx.AsyncClient(trust_env=False) as client:
                response = await client.get(
                    f"http://localhost:{port}{CALLBACK_PATH}",
                    params={"code": "auth_code", "state": "xyz"},
                )
            result = await asyncio.wait_for(listener.wait(), timeout=5)

        assert response.status_code == 200
        assert result.code == "auth_code"

    @pytest.mark.asyncio
    async def test_stray_hit_before_redirect_over_http(self) -> None:
        """A parameterless GET before the redirect does not break the login."""
        port = free_port()
        url = f"http://localhost:{port}{CALLBACK_PATH}"

        async with RedirectListener("localhost", port, CALLBACK_PATH, "s1") as listener:
            async with httpx.AsyncClient(trust_env=False) as client:
                stray = await client.get(url)
                response = await client.get(url, params={"code": "c", "state": "s1"})
            result = await asyncio.wait_for(listener.wait(), timeout=5)

        assert stray.status_code == 400
        assert response.status_code == 200
        assert result.code == "c"

    @pytest.mark.asyncio
    async def test_port_released_after_stop(self) -> None:
        """The port can be bound again once the listener has stopped."""
        port = free_port()

        async with RedirectListener("localhost", port, CALLBACK_PATH, "xyz"):
            pass

        async with RedirectListener("localhost", port, CALLBACK_PATH, "xyz") as listener:
            assert listener.url.endswith(f":{port}{CALLBACK_PATH}")

    @pytest.mark.asyncio
    async def test_port_in_use(self) -> None:
        """Binding an occupied port raises OSError."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 0)
            sock.bind(("127.0.0.1", 0))
            sock.listen()
            port = sock.getsockname()[1]

            with pytest.raises(OSError):
                await RedirectListener("127.0.0.1", port, CALLBACK_PATH, "xyz").start()
