from __future__ import annotations

from typing import Any, Awaitable, Callable

import pytest

from fake_webdriver import SERVER_URL, FakeWebDriver, asgi_transport
from wire_driver.client import Client
from wire_driver.config import DriverConfig
from wire_driver.factory import connect


@pytest.fixture
def w3c_server() -> FakeWebDriver:
    return FakeWebDriver(legacy=False)


@pytest.fixture
def legacy_server() -> FakeWebDriver:
    return FakeWebDriver(legacy=True)


@pytest.fixture
def open_client() -> Callable[..., Awaitable[Client]]:
    async def _open(server: FakeWebDriver, **config: Any) -> Client:
        settings = DriverConfig.model_validate(
            {"server_url": SERVER_URL, "polling": {"interval": 0.001}, **config}
        )
        return await connect(settings, asgi_transport(server))

    return _open
