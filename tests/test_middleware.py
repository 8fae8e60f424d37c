"""
Tests for error classification and the session-clearing middleware.
"""

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from api.middleware import (
    SIGN_IN_REDIRECT,
    ErrorClassificationMiddleware,
    ErrorKind,
    classify_error,
)


class TestClassifyError:

    @pytest.mark.parametrize("message", [
        "Handshake token verification failed: invalid signature",
        "Unable to find a signing key in JWKS that matches the kid",
        "jwk-kid-mismatch",
        "JWKS lookup failed for kid=ins_2abc",
    ])
    def test_session_key_mismatch(self, message):
        assert classify_error(message) == ErrorKind.SESSION_KEY_MISMATCH

    @pytest.mark.parametrize("message", [
        "[StreamClient] connection closed",
        "WebSocket is already in CLOSING state",
        "ws.onerror fired",
    ])
    def test_stream_unavailable(self, message):
        assert classify_error(message) == ErrorKind.STREAM_UNAVAILABLE

    @pytest.mark.parametrize("message", [
        "division by zero",
        "JWKS endpoint timed out",
        "",
        None,
    ])
    def test_generic(self, message):
        assert classify_error(message) == ErrorKind.GENERIC


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorClassificationMiddleware)

    @app.get("/jwks")
    async def jwks():
        raise RuntimeError("Unable to find a signing key in JWKS that matches kid=ins_1")

    @app.get("/stream")
    async def stream():
        raise ConnectionError("WebSocket connection to realtime failed")

    @app.get("/boom")
    async def boom():
        raise ValueError("something else")

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    return app


@pytest_asyncio.fixture
async def app_client():
    transport = httpx.ASGITransport(app=make_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestErrorClassificationMiddleware:

    @pytest.mark.asyncio
    async def test_session_mismatch_clears_cookies(self, app_client):
        response = await app_client.get("/jwks")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Session expired. Please sign in again.",
            "redirect": SIGN_IN_REDIRECT,
        }
        cookies = response.headers.get_list("set-cookie")
        assert len(cookies) == 7
        assert all("Max-Age=0" in cookie for cookie in cookies)

    @pytest.mark.asyncio
    async def test_stream_error_is_500(self, app_client):
        response = await app_client.get("/stream")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_generic_error_is_500(self, app_client):
        response = await app_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_passes_through_success(self, app_client):
        response = await app_client.get("/ok")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
