import asyncio
import json
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from kyc_gateway.config import Settings
from kyc_gateway.main import create_app

ENGINE_URL = "http://engine.test"
IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/cnic.jpg"
SELFIE_URL = "https://res.cloudinary.com/demo/image/upload/selfie.jpg"


class FakeNetwork:
    """
    Stand-in for both the image host and the engine.

    Records every request and answers via a per-host handler so tests can
    assert on exactly what went over the wire.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handlers = {}
        self.cancelled = False

    def on(self, host: str, handler: Callable) -> None:
        self.handlers[host] = handler

    def engine_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "engine.test"]

    def engine_payload(self, index: int = 0) -> dict:
        return json.loads(self.engine_calls()[index].content)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(request.url.host)
        if handler is None:
            raise httpx.ConnectError("no route to host", request=request)
        try:
            result = handler(request)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        except asyncio.CancelledError:
            self.cancelled = True
            raise

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


def hang_forever(request: httpx.Request):
    async def _sleep():
        await asyncio.sleep(30)
        return httpx.Response(200)

    return _sleep()


@pytest.fixture
def network() -> FakeNetwork:
    net = FakeNetwork()
    net.on("engine.test", lambda r: httpx.Response(200, json={"ok": True}))
    return net


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        kyc_api_url=ENGINE_URL,
        http_download_timeout_ms=200,
        kyc_engine_timeout_ms=200,
    )


@pytest.fixture
def client(settings: Settings, network: FakeNetwork) -> TestClient:
    app = create_app(settings, transport=network.transport())
    return TestClient(app)
