"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Any, Optional

from .client import Client
from .config import DriverConfig, HttpConfig
from .protocol.transport import HttpxTransport, Transport
from .session import DEFAULT_CAPABILITIES, Session


def build_transport(config: HttpConfig) -> HttpxTransport:
    return HttpxTransport(timeout=config.timeout, verify=config.verify)


def build_capabilities(config: DriverConfig) -> dict[str, Any]:
    return {**DEFAULT_CAPABILITIES, **config.capabilities}


def build_session(config: DriverConfig, transport: Optional[Transport] = None) -> Session:
    return Session(
        config.server_url,
        transport or build_transport(config.http),
        user_agent=config.user_agent,
    )


async def connect(config: DriverConfig, transport: Optional[Transport] = None) -> Client:
    """Negotiate a new session with the configured server and wrap it in a client.

    The returned client's :meth:`Client.aclose` releases the transport. A
    transport built here is also released when negotiation fails.
    """

    owned = transport is None
    session = build_session(config, transport)
    try:
        await session.establish(build_capabilities(config))
    except BaseException:
        if owned:
            await session.transport.aclose()
        raise
    return Client(
        session,
        poll_interval=config.polling.interval,
        wait_timeout=config.polling.timeout,
    )
