"""Session negotiation, command issuance and teardown."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import replace
from typing import Any, Optional

from .errors import MalformedResponse, NegotiationFailure, UsageError
from .models import Command, CommandType
from .protocol.encoder import SessionSnapshot, encode
from .protocol.interpreter import interpret
from .protocol.transport import Transport

LOGGER = logging.getLogger(__name__)

DEFAULT_CAPABILITIES: dict[str, Any] = {"pageLoadStrategy": "normal"}


class SessionState(str, enum.Enum):
    """Lifecycle of a remote browser session."""

    UNINITIALIZED = "uninitialized"
    NEGOTIATING_SPEC = "negotiating_spec"
    NEGOTIATING_LEGACY = "negotiating_legacy"
    ESTABLISHED = "established"
    FAILED = "failed"
    CLOSED = "closed"


def looks_like_legacy_rejection(payload: Any) -> bool:
    """Return True when ``payload`` is how legacy servers reject W3C sessions."""

    if isinstance(payload, str):
        # ghostdriver
        return payload.startswith("Missing Command Parameter")
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            # older chromedriver releases
            return (
                "cannot find dict 'desiredCapabilities'" in message
                or "Missing or invalid capabilities" in message
            )
    return False


class Session:
    """One remote browser session and the dialect it speaks.

    The dialect and session id are written once, during :meth:`establish`,
    and exposed to the encoder and interpreter as an immutable
    :class:`SessionSnapshot`. Commands may be issued concurrently once the
    session is established.

    Call :meth:`close` when done. Teardown is best effort: the remote
    ``DELETE`` is scheduled in the background and its outcome is discarded.
    A session that is never closed stays alive on the server until the
    server's own idle timeout reclaims it.
    """

    def __init__(
        self,
        server_url: str,
        transport: Transport,
        *,
        user_agent: Optional[str] = None,
    ) -> None:
        self._transport = transport
        self._snapshot = SessionSnapshot(server_url=server_url, user_agent=user_agent)
        self._state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._teardown: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> Optional[str]:
        return self._snapshot.session_id

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def legacy(self) -> bool:
        return self._snapshot.legacy

    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def set_user_agent(self, user_agent: Optional[str]) -> None:
        """Use ``user_agent`` for all subsequent requests."""

        self._snapshot = replace(self._snapshot, user_agent=user_agent)

    async def establish(self, capabilities: Optional[dict[str, Any]] = None) -> "Session":
        """Create the remote session, detecting which dialect the server speaks.

        A W3C-shaped request is tried first. If the server rejects it with a
        malformed payload that matches a known legacy rejection, the request
        is repeated in the legacy shape. Typed WebDriver errors are never
        retried.
        """

        caps = {**DEFAULT_CAPABILITIES, **(capabilities or {})}
        async with self._lock:
            if self._state is not SessionState.UNINITIALIZED:
                raise UsageError(f"cannot negotiate a session in state {self._state.value}")
            self._state = SessionState.NEGOTIATING_SPEC
            try:
                try:
                    session_id = await self._create(caps, legacy=False)
                    legacy = False
                except MalformedResponse as exc:
                    if not looks_like_legacy_rejection(exc.payload):
                        raise NegotiationFailure(
                            "session creation rejected", exc.payload
                        ) from exc
                    LOGGER.info("Server rejected W3C session request; retrying with legacy dialect")
                    self._state = SessionState.NEGOTIATING_LEGACY
                    try:
                        session_id = await self._create(caps, legacy=True)
                    except MalformedResponse as legacy_exc:
                        raise NegotiationFailure(
                            "legacy session creation failed", legacy_exc.payload
                        ) from legacy_exc
                    legacy = True
            except BaseException:
                self._state = SessionState.FAILED
                raise
            self._snapshot = replace(self._snapshot, session_id=session_id, legacy=legacy)
            self._state = SessionState.ESTABLISHED
        LOGGER.info(
            "Established %s session %s",
            "legacy" if legacy else "W3C",
            session_id,
        )
        return self

    async def _create(self, capabilities: dict[str, Any], *, legacy: bool) -> str:
        command = Command.new_session(capabilities, legacy=legacy)
        snapshot = replace(self._snapshot, legacy=legacy)
        payload = await self._send(command, snapshot)
        if not isinstance(payload, dict):
            raise MalformedResponse("new session response is not an object", payload)
        session_id = payload.get("sessionId")
        if not isinstance(session_id, str):
            raise MalformedResponse("new session response has no sessionId", payload)
        return session_id

    async def issue(self, command: Command) -> Any:
        """Send ``command`` and return the decoded payload."""

        if command.type is CommandType.NEW_SESSION:
            raise UsageError("use establish() to create a session")
        return await self._send(command, self._snapshot)

    async def _send(self, command: Command, snapshot: SessionSnapshot) -> Any:
        request = encode(command, snapshot)
        response = await self._transport.send(request)
        return interpret(
            snapshot.legacy,
            command.type is CommandType.NEW_SESSION,
            response.status,
            response.content_type,
            response.body,
        )

    def close(self) -> Optional["asyncio.Task[None]"]:
        """Tear the session down; safe to call more than once.

        Returns the background task carrying the ``DELETE`` request the first
        time a live session is closed, and None otherwise. Awaiting the task
        is optional; it never raises.
        """

        snapshot = self._snapshot
        if snapshot.session_id is None:
            return None
        self._snapshot = replace(snapshot, session_id=None)
        self._state = SessionState.CLOSED
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning(
                "No running event loop; session %s was not deleted remotely",
                snapshot.session_id,
            )
            return None
        self._teardown = loop.create_task(self._delete(snapshot))
        return self._teardown

    async def _delete(self, snapshot: SessionSnapshot) -> None:
        request = encode(Command.delete_session(), snapshot)
        try:
            await self._transport.send(request)
        except Exception as exc:
            LOGGER.warning("Discarding failed teardown of session %s: %s", snapshot.session_id, exc)
        else:
            LOGGER.debug("Deleted session %s", snapshot.session_id)

    async def __aenter__(self) -> "Session":
        if self._state is SessionState.UNINITIALIZED:
            await self.establish()
        return self

    async def aclose(self) -> None:
        """Close the session, wait for the remote delete, then release the transport."""

        teardown = self.close()
        if teardown is not None:
            await teardown
        await self._transport.aclose()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
