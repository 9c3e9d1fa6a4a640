"""Translate commands into HTTP requests for a given session state."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import quote

from ..errors import UsageError
from ..models import W3C_ELEMENT_KEY, Command, CommandType, WebElement, element_key
from .transport import HttpRequest

EMPTY_OBJECT = "{}"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session state needed to build requests."""

    server_url: str
    session_id: Optional[str] = None
    legacy: bool = False
    user_agent: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self.server_url.rstrip("/")


def _element_path(suffix: str) -> Callable[[Command, bool], str]:
    def _path(command: Command, legacy: bool) -> str:
        return f"element/{_segment(_require_element(command).id)}/{suffix}"

    return _path


def _named_element_path(kind: str) -> Callable[[Command, bool], str]:
    def _path(command: Command, legacy: bool) -> str:
        element_id = _segment(_require_element(command).id)
        return f"element/{element_id}/{kind}/{_segment(command.name or '')}"

    return _path


def _segment(value: str) -> str:
    return quote(value, safe="")


def _fixed(path: str) -> Callable[[Command, bool], str]:
    return lambda command, legacy: path


# Session-relative routes. NEW_SESSION and DELETE_SESSION are handled apart.
_ROUTES: dict[CommandType, tuple[str, Callable[[Command, bool], str]]] = {
    CommandType.NAVIGATE: ("POST", _fixed("url")),
    CommandType.GET_CURRENT_URL: ("GET", _fixed("url")),
    CommandType.GO_BACK: ("POST", _fixed("back")),
    CommandType.REFRESH: ("POST", _fixed("refresh")),
    CommandType.GET_PAGE_SOURCE: ("GET", _fixed("source")),
    CommandType.FIND_ELEMENT: ("POST", _fixed("element")),
    CommandType.FIND_ELEMENTS: ("POST", _fixed("elements")),
    CommandType.FIND_ELEMENT_ELEMENT: ("POST", _element_path("element")),
    CommandType.FIND_ELEMENT_ELEMENTS: ("POST", _element_path("elements")),
    CommandType.GET_ELEMENT_ATTRIBUTE: ("GET", _named_element_path("attribute")),
    CommandType.GET_ELEMENT_PROPERTY: ("GET", _named_element_path("property")),
    CommandType.GET_ELEMENT_TEXT: ("GET", _element_path("text")),
    CommandType.ELEMENT_CLICK: ("POST", _element_path("click")),
    CommandType.ELEMENT_SEND_KEYS: ("POST", _element_path("value")),
    CommandType.EXECUTE_SCRIPT: (
        "POST",
        lambda command, legacy: "execute" if legacy else "execute/sync",
    ),
    CommandType.SWITCH_TO_FRAME: ("POST", _fixed("frame")),
    CommandType.SWITCH_TO_PARENT_FRAME: ("POST", _fixed("frame/parent")),
    CommandType.SWITCH_TO_WINDOW: ("POST", _fixed("window")),
    CommandType.GET_COOKIES: ("GET", _fixed("cookie")),
}

_EMPTY_BODY_COMMANDS = frozenset(
    {
        CommandType.ELEMENT_CLICK,
        CommandType.GO_BACK,
        CommandType.REFRESH,
        CommandType.SWITCH_TO_PARENT_FRAME,
    }
)

ROUTED_COMMANDS = frozenset(_ROUTES) | {CommandType.NEW_SESSION, CommandType.DELETE_SESSION}


def encode(command: Command, session: SessionSnapshot) -> HttpRequest:
    """Build the HTTP request for ``command`` against ``session``.

    Pure: no I/O and no mutation. Raises :class:`UsageError` when a
    session-relative command is encoded before a session id exists.
    """

    if command.type is CommandType.NEW_SESSION:
        return _build(session, "POST", f"{session.base_url}/session", _new_session_body(command))
    session_id = session.session_id
    if not session_id:
        raise UsageError(f"cannot issue {command.type.value} without a session id")
    session_url = f"{session.base_url}/session/{session_id}"
    if command.type is CommandType.DELETE_SESSION:
        return _build(session, "DELETE", session_url, None)
    method, path = _ROUTES[command.type]
    url = f"{session_url}/{path(command, session.legacy)}"
    return _build(session, method, url, encode_body(command, session.legacy))


def encode_body(command: Command, legacy: bool) -> Optional[str]:
    """Return the JSON body for ``command``, or None for body-less requests."""

    kind = command.type
    if kind in _EMPTY_BODY_COMMANDS:
        return EMPTY_OBJECT
    if kind is CommandType.NEW_SESSION:
        return _new_session_body(command)
    if kind is CommandType.NAVIGATE:
        return json.dumps({"url": command.url})
    if kind in (
        CommandType.FIND_ELEMENT,
        CommandType.FIND_ELEMENTS,
        CommandType.FIND_ELEMENT_ELEMENT,
        CommandType.FIND_ELEMENT_ELEMENTS,
    ):
        if command.locator is None:
            raise UsageError(f"{kind.value} requires a locator")
        return json.dumps(command.locator.to_wire())
    if kind is CommandType.EXECUTE_SCRIPT:
        args = [encode_argument(arg, legacy) for arg in command.args]
        return json.dumps({"script": command.script, "args": args})
    if kind is CommandType.ELEMENT_SEND_KEYS:
        text = command.text or ""
        if legacy:
            return json.dumps({"value": list(text)})
        return json.dumps({"text": text})
    if kind is CommandType.SWITCH_TO_FRAME:
        # Built by hand: the frame id must be an element reference object
        # keyed by the dialect's element key.
        frame = _require_element(command)
        return '{"id": {%s: %s}}' % (json.dumps(element_key(legacy)), json.dumps(frame.id))
    if kind is CommandType.SWITCH_TO_WINDOW:
        return json.dumps({"handle": command.handle})
    return None


def encode_argument(value: Any, legacy: bool) -> Any:
    """Convert script arguments so element references use the dialect's key."""

    if isinstance(value, WebElement):
        return value.to_wire(legacy)
    if isinstance(value, dict):
        converted = {key: encode_argument(item, legacy) for key, item in value.items()}
        if legacy and W3C_ELEMENT_KEY in converted:
            converted[element_key(True)] = converted.pop(W3C_ELEMENT_KEY)
        return converted
    if isinstance(value, (list, tuple)):
        return [encode_argument(item, legacy) for item in value]
    return value


def _new_session_body(command: Command) -> str:
    capabilities = dict(command.capabilities)
    if command.legacy_shape:
        payload: dict[str, Any] = {
            "desiredCapabilities": {},
            "requiredCapabilities": capabilities,
        }
    else:
        payload = {"capabilities": {"alwaysMatch": capabilities, "firstMatch": []}}
    return json.dumps(payload)


def _require_element(command: Command) -> WebElement:
    if command.element is None:
        raise UsageError(f"{command.type.value} requires an element")
    return command.element


def _build(
    session: SessionSnapshot,
    method: str,
    url: str,
    body: Optional[str],
) -> HttpRequest:
    headers: dict[str, str] = {}
    if session.user_agent:
        headers["User-Agent"] = session.user_agent
    if body is None:
        return HttpRequest(method=method, url=url, headers=headers, body=b"")
    payload = body.encode("utf-8")
    headers["Content-Type"] = "application/json"
    headers["Content-Length"] = str(len(payload))
    return HttpRequest(method=method, url=url, headers=headers, body=payload)
