"""HTTP transport used to reach the WebDriver server."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional

import httpx

from ..errors import TransportError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpRequest:
    """Fully resolved request produced by the command encoder."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class HttpResponse:
    """Raw response handed to the interpreter."""

    status: int
    headers: Mapping[str, str]
    body: bytes

    @property
    def content_type(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


class Transport(ABC):
    """Interface for executing HTTP requests asynchronously."""

    @abstractmethod
    async def send(self, request: HttpRequest) -> HttpResponse:
        """Execute ``request`` and return the full response."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release any pooled connections."""


class HttpxTransport(Transport):
    """Transport backed by a shared ``httpx.AsyncClient``.

    A client passed in by the caller is used as-is and left open on
    :meth:`aclose`; one created here is owned and closed by the transport.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = 60.0,
        verify: bool = True,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)

    async def send(self, request: HttpRequest) -> HttpResponse:
        LOGGER.debug("%s %s", request.method, request.url)
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                content=request.body,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc
        LOGGER.debug("%s %s -> %s", request.method, request.url, response.status_code)
        return HttpResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
