"""Value types shared by the protocol layer and the page API."""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
LEGACY_ELEMENT_KEY = "ELEMENT"


def element_key(legacy: bool) -> str:
    """Return the JSON key that carries element ids in the given dialect."""

    return LEGACY_ELEMENT_KEY if legacy else W3C_ELEMENT_KEY


class ErrorStatus(str, enum.Enum):
    """WebDriver failure categories, valued by their W3C error strings."""

    ELEMENT_CLICK_INTERCEPTED = "element click intercepted"
    ELEMENT_NOT_INTERACTABLE = "element not interactable"
    ELEMENT_NOT_SELECTABLE = "element not selectable"
    INSECURE_CERTIFICATE = "insecure certificate"
    INVALID_ARGUMENT = "invalid argument"
    INVALID_COOKIE_DOMAIN = "invalid cookie domain"
    INVALID_COORDINATES = "invalid coordinates"
    INVALID_ELEMENT_STATE = "invalid element state"
    INVALID_SELECTOR = "invalid selector"
    INVALID_SESSION_ID = "invalid session id"
    JAVASCRIPT_ERROR = "javascript error"
    MOVE_TARGET_OUT_OF_BOUNDS = "move target out of bounds"
    NO_SUCH_ALERT = "no such alert"
    NO_SUCH_COOKIE = "no such cookie"
    NO_SUCH_ELEMENT = "no such element"
    NO_SUCH_FRAME = "no such frame"
    NO_SUCH_WINDOW = "no such window"
    SCRIPT_TIMEOUT = "script timeout"
    SESSION_NOT_CREATED = "session not created"
    STALE_ELEMENT_REFERENCE = "stale element reference"
    TIMEOUT = "timeout"
    UNABLE_TO_CAPTURE_SCREEN = "unable to capture screen"
    UNABLE_TO_SET_COOKIE = "unable to set cookie"
    UNEXPECTED_ALERT_OPEN = "unexpected alert open"
    UNKNOWN_COMMAND = "unknown command"
    UNKNOWN_ERROR = "unknown error"
    UNKNOWN_METHOD = "unknown method"
    UNSUPPORTED_OPERATION = "unsupported operation"


class LocatorStrategy(str, enum.Enum):
    """Element selection strategies understood by both dialects."""

    CSS = "css selector"
    LINK_TEXT = "link text"
    XPATH = "xpath"


class Locator(BaseModel):
    """A selection strategy plus its opaque selector string."""

    model_config = ConfigDict(frozen=True)

    using: LocatorStrategy
    value: str

    @classmethod
    def css(cls, selector: str) -> "Locator":
        return cls(using=LocatorStrategy.CSS, value=selector)

    @classmethod
    def link_text(cls, text: str) -> "Locator":
        """Match a link by its exact text."""

        return cls(using=LocatorStrategy.LINK_TEXT, value=text)

    @classmethod
    def xpath(cls, expression: str) -> "Locator":
        return cls(using=LocatorStrategy.XPATH, value=expression)

    def to_wire(self) -> dict[str, str]:
        return {"using": self.using.value, "value": self.value}


class WebElement(BaseModel):
    """Opaque element reference handed out by the remote end.

    The id is never parsed; it is only embedded into URLs and bodies. An
    element carries no reference to the session it came from.
    """

    model_config = ConfigDict(frozen=True)

    id: str

    def to_wire(self, legacy: bool) -> dict[str, str]:
        return {element_key(legacy): self.id}


class CommandType(str, enum.Enum):
    """Closed set of WebDriver operations the client can issue."""

    NEW_SESSION = "new_session"
    DELETE_SESSION = "delete_session"
    NAVIGATE = "navigate"
    GET_CURRENT_URL = "get_current_url"
    GO_BACK = "go_back"
    REFRESH = "refresh"
    GET_PAGE_SOURCE = "get_page_source"
    FIND_ELEMENT = "find_element"
    FIND_ELEMENTS = "find_elements"
    FIND_ELEMENT_ELEMENT = "find_element_element"
    FIND_ELEMENT_ELEMENTS = "find_element_elements"
    GET_ELEMENT_ATTRIBUTE = "get_element_attribute"
    GET_ELEMENT_PROPERTY = "get_element_property"
    GET_ELEMENT_TEXT = "get_element_text"
    ELEMENT_CLICK = "element_click"
    ELEMENT_SEND_KEYS = "element_send_keys"
    EXECUTE_SCRIPT = "execute_script"
    SWITCH_TO_FRAME = "switch_to_frame"
    SWITCH_TO_PARENT_FRAME = "switch_to_parent_frame"
    SWITCH_TO_WINDOW = "switch_to_window"
    GET_COOKIES = "get_cookies"


class Command(BaseModel):
    """A single WebDriver operation and the data needed to build its request.

    Use the constructors (``Command.navigate(...)`` and friends) rather than
    filling fields by hand; each variant only populates the fields it needs.
    """

    model_config = ConfigDict(frozen=True)

    type: CommandType
    url: Optional[str] = None
    locator: Optional[Locator] = None
    element: Optional[WebElement] = None
    name: Optional[str] = None
    text: Optional[str] = None
    script: Optional[str] = None
    args: tuple[Any, ...] = ()
    handle: Optional[str] = None
    capabilities: dict[str, Any] = Field(default_factory=dict)
    legacy_shape: bool = Field(
        default=False,
        description="Build the new-session body in the legacy wire shape.",
    )

    @classmethod
    def new_session(cls, capabilities: dict[str, Any], *, legacy: bool = False) -> "Command":
        return cls(
            type=CommandType.NEW_SESSION,
            capabilities=dict(capabilities),
            legacy_shape=legacy,
        )

    @classmethod
    def delete_session(cls) -> "Command":
        return cls(type=CommandType.DELETE_SESSION)

    @classmethod
    def navigate(cls, url: str) -> "Command":
        return cls(type=CommandType.NAVIGATE, url=url)

    @classmethod
    def get_current_url(cls) -> "Command":
        return cls(type=CommandType.GET_CURRENT_URL)

    @classmethod
    def go_back(cls) -> "Command":
        return cls(type=CommandType.GO_BACK)

    @classmethod
    def refresh(cls) -> "Command":
        return cls(type=CommandType.REFRESH)

    @classmethod
    def get_page_source(cls) -> "Command":
        return cls(type=CommandType.GET_PAGE_SOURCE)

    @classmethod
    def find_element(cls, locator: Locator, parent: Optional[WebElement] = None) -> "Command":
        if parent is None:
            return cls(type=CommandType.FIND_ELEMENT, locator=locator)
        return cls(type=CommandType.FIND_ELEMENT_ELEMENT, locator=locator, element=parent)

    @classmethod
    def find_elements(cls, locator: Locator, parent: Optional[WebElement] = None) -> "Command":
        if parent is None:
            return cls(type=CommandType.FIND_ELEMENTS, locator=locator)
        return cls(type=CommandType.FIND_ELEMENT_ELEMENTS, locator=locator, element=parent)

    @classmethod
    def get_element_attribute(cls, element: WebElement, name: str) -> "Command":
        return cls(type=CommandType.GET_ELEMENT_ATTRIBUTE, element=element, name=name)

    @classmethod
    def get_element_property(cls, element: WebElement, name: str) -> "Command":
        return cls(type=CommandType.GET_ELEMENT_PROPERTY, element=element, name=name)

    @classmethod
    def get_element_text(cls, element: WebElement) -> "Command":
        return cls(type=CommandType.GET_ELEMENT_TEXT, element=element)

    @classmethod
    def element_click(cls, element: WebElement) -> "Command":
        return cls(type=CommandType.ELEMENT_CLICK, element=element)

    @classmethod
    def element_send_keys(cls, element: WebElement, text: str) -> "Command":
        return cls(type=CommandType.ELEMENT_SEND_KEYS, element=element, text=text)

    @classmethod
    def execute_script(cls, script: str, args: Optional[list[Any]] = None) -> "Command":
        return cls(type=CommandType.EXECUTE_SCRIPT, script=script, args=tuple(args or ()))

    @classmethod
    def switch_to_frame(cls, frame: WebElement) -> "Command":
        return cls(type=CommandType.SWITCH_TO_FRAME, element=frame)

    @classmethod
    def switch_to_parent_frame(cls) -> "Command":
        return cls(type=CommandType.SWITCH_TO_PARENT_FRAME)

    @classmethod
    def switch_to_window(cls, handle: str) -> "Command":
        return cls(type=CommandType.SWITCH_TO_WINDOW, handle=handle)

    @classmethod
    def get_cookies(cls) -> "Command":
        return cls(type=CommandType.GET_COOKIES)
