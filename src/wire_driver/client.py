"""High-level page automation on top of a negotiated session."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional
from urllib.parse import urljoin

import httpx

from .errors import MalformedResponse, WaitTimeout
from .models import Command, Locator, WebElement, element_key
from .retry import DEFAULT_INTERVAL, wait_until
from .session import Session

LOGGER = logging.getLogger(__name__)

COOKIE_PROBE_PATH = "/please_give_me_your_cookies"


class Client:
    """Convenience API for driving one browser session.

    Elements are plain identifiers, so every element operation takes the
    element it acts on.
    """

    def __init__(
        self,
        session: Session,
        *,
        poll_interval: float = DEFAULT_INTERVAL,
        wait_timeout: Optional[float] = None,
    ) -> None:
        self._session = session
        self._poll_interval = poll_interval
        self._wait_timeout = wait_timeout

    @property
    def session(self) -> Session:
        return self._session

    async def issue(self, command: Command) -> Any:
        return await self._session.issue(command)

    def close(self) -> Optional["asyncio.Task[None]"]:
        """Terminate the remote session; see :meth:`Session.close`."""

        return self._session.close()

    async def aclose(self) -> None:
        await self._session.aclose()

    # Navigation -------------------------------------------------------------

    async def goto(self, url: str) -> None:
        """Navigate to ``url``, resolved relative to the current page."""

        current = await self.current_url()
        await self.issue(Command.navigate(urljoin(current, url)))

    async def current_url(self) -> str:
        return _expect_str(await self.issue(Command.get_current_url()))

    async def source(self) -> str:
        """Return the HTML source of the current page."""

        return _expect_str(await self.issue(Command.get_page_source()))

    async def back(self) -> None:
        await self.issue(Command.go_back())

    async def refresh(self) -> None:
        await self.issue(Command.refresh())

    async def wait_for_navigation(self, current: Optional[str] = None) -> None:
        """Wait until the browser leaves ``current`` (defaults to the current URL).

        Without an explicit ``current`` there is a race: if navigation
        finishes before the URL is first read, this waits forever (or until
        the configured wait timeout).

        When the configured timeout elapses this raises :class:`WaitTimeout`;
        :meth:`wait_for_find` instead re-raises the last lookup error.
        """

        if current is None:
            current = await self.current_url()
        loop = asyncio.get_running_loop()
        deadline = None if self._wait_timeout is None else loop.time() + self._wait_timeout
        while await self.current_url() == current:
            if deadline is not None and loop.time() > deadline:
                raise WaitTimeout(f"browser did not navigate away from {current}")
            await asyncio.sleep(self._poll_interval)

    # Lookup -----------------------------------------------------------------

    async def find(self, locator: Locator, root: Optional[WebElement] = None) -> WebElement:
        """Find the first element matching ``locator`` (below ``root`` if given)."""

        payload = await self.issue(Command.find_element(locator, root))
        return self._parse_element(payload)

    async def find_all(
        self, locator: Locator, root: Optional[WebElement] = None
    ) -> List[WebElement]:
        payload = await self.issue(Command.find_elements(locator, root))
        if not isinstance(payload, list):
            raise MalformedResponse("expected a list of elements", payload)
        return [self._parse_element(item) for item in payload]

    async def wait_for_find(
        self, locator: Locator, root: Optional[WebElement] = None
    ) -> WebElement:
        """Like :meth:`find`, but keep polling while no element matches."""

        return await wait_until(
            lambda: self.find(locator, root),
            interval=self._poll_interval,
            timeout=self._wait_timeout,
        )

    async def wait_for_find_all(
        self, locator: Locator, root: Optional[WebElement] = None
    ) -> List[WebElement]:
        return await wait_until(
            lambda: self.find_all(locator, root),
            interval=self._poll_interval,
            timeout=self._wait_timeout,
        )

    def _parse_element(self, payload: Any) -> WebElement:
        key = element_key(self._session.legacy)
        if not isinstance(payload, dict):
            raise MalformedResponse("expected an element reference", payload)
        element_id = payload.get(key)
        if not isinstance(element_id, str):
            raise MalformedResponse(f"element reference has no {key!r}", payload)
        return WebElement(id=element_id)

    # Elements ---------------------------------------------------------------

    async def attr(self, element: WebElement, name: str) -> Optional[str]:
        """Return an attribute value, or None when the element lacks it."""

        return _expect_optional_str(
            await self.issue(Command.get_element_attribute(element, name))
        )

    async def prop(self, element: WebElement, name: str) -> Optional[str]:
        """Return a DOM property value, or None when the element lacks it."""

        return _expect_optional_str(
            await self.issue(Command.get_element_property(element, name))
        )

    async def text(self, element: WebElement) -> str:
        return _expect_str(await self.issue(Command.get_element_text(element)))

    async def html(self, element: WebElement, inner: bool = True) -> str:
        """Return the inner (or outer) HTML of ``element``."""

        value = await self.prop(element, "innerHTML" if inner else "outerHTML")
        if value is None:
            raise MalformedResponse("element has no HTML property", value)
        return value

    async def click(self, element: WebElement) -> None:
        """Click ``element``. The element may be gone afterwards if this navigates."""

        result = await self.issue(Command.element_click(element))
        # geckodriver answers with {} instead of null
        if result is not None and result != {}:
            raise MalformedResponse("unexpected click result", result)

    async def send_keys(self, element: WebElement, text: str) -> None:
        await self.issue(Command.element_send_keys(element, text))

    async def scroll_into_view(self, element: WebElement) -> None:
        await self.execute("arguments[0].scrollIntoView(true)", [element])

    async def follow(self, element: WebElement) -> None:
        """Navigate to the element's ``href`` without clicking it."""

        href = await self.attr(element, "href")
        if href is None:
            raise MalformedResponse("element has no href attribute", element.id)
        await self.goto(href)

    # Scripts, frames and windows -----------------------------------------------

    async def execute(self, script: str, args: Optional[List[Any]] = None) -> Any:
        """Run ``script`` in the page; ``args`` are exposed as ``arguments``.

        :class:`WebElement` arguments are sent as element references.
        """

        return await self.issue(Command.execute_script(script, args))

    async def switch_to_frame(self, frame: WebElement) -> None:
        await self.issue(Command.switch_to_frame(frame))

    async def switch_to_parent_frame(self) -> None:
        await self.issue(Command.switch_to_parent_frame())

    async def switch_to_window(self, handle: str) -> None:
        await self.issue(Command.switch_to_window(handle))

    # Cookies and raw requests ---------------------------------------------------

    async def cookies(self) -> List[dict[str, Any]]:
        """Return the cookies visible to the current page."""

        payload = await self.issue(Command.get_cookies())
        if not isinstance(payload, list) or not all(isinstance(c, dict) for c in payload):
            raise MalformedResponse("expected a list of cookies", payload)
        return payload

    async def raw_request(
        self,
        method: str,
        url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue a plain HTTP request carrying the browser's cookies for ``url``.

        The cookies are read by briefly navigating to a path on the target
        domain that is unlikely to exist, then going back. Cookies scoped to
        a narrower path than that probe are not picked up.
        """

        target = urljoin(await self.current_url(), url)
        await self.goto(urljoin(target, COOKIE_PROBE_PATH))
        cookies = await self.cookies()
        await self.back()

        jar: dict[str, str] = {}
        for cookie in cookies:
            name = cookie.get("name")
            value = cookie.get("value")
            if not isinstance(name, str) or not isinstance(value, str):
                raise MalformedResponse("cookie without string name/value", cookies)
            jar[name] = value
        headers = dict(kwargs.pop("headers", None) or {})
        if jar:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in jar.items())
        user_agent = self._session.snapshot().user_agent
        if user_agent:
            headers["User-Agent"] = user_agent
        LOGGER.debug("Raw %s %s with %d cookies", method, target, len(jar))
        if http_client is not None:
            return await http_client.request(method, target, headers=headers, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.request(method, target, headers=headers, **kwargs)

    # Forms ------------------------------------------------------------------

    async def set_by_name(self, form: WebElement, field: str, value: str) -> None:
        """Set the ``value`` of the input named ``field`` inside ``form``."""

        element = await self.find(Locator.css(f"input[name='{field}']"), form)
        result = await self.execute("arguments[0].value = arguments[1]", [element, value])
        if result is not None:
            raise MalformedResponse("unexpected script result", result)

    async def submit(self, form: WebElement) -> None:
        """Submit ``form`` with its first submit button."""

        await self.submit_with(form, Locator.css("input[type=submit],button[type=submit]"))

    async def submit_with(self, form: WebElement, button: Locator) -> None:
        element = await self.find(button, form)
        await self.click(element)

    async def submit_using(self, form: WebElement, button_label: str) -> None:
        """Submit ``form`` with the submit button labelled ``button_label`` (any case)."""

        escaped = button_label.replace("\\", "\\\\").replace('"', '\\"')
        selector = (
            f'input[type=submit][value="{escaped}" i],'
            f'button[type=submit][value="{escaped}" i]'
        )
        await self.submit_with(form, Locator.css(selector))

    async def submit_direct(self, form: WebElement) -> None:
        """Submit ``form`` without clicking any button.

        The submit button's name=value pair is not sent; see
        :meth:`submit_sneaky` to add it back.
        """

        # A field named "submit" shadows form.submit, so borrow the method
        # from a fresh form element.
        await self.execute("document.createElement('form').submit.call(arguments[0])", [form])

    async def submit_sneaky(self, form: WebElement, field: str, value: str) -> None:
        """Add a hidden ``field=value`` input to ``form``, then submit it directly."""

        script = (
            "var h = document.createElement('input');"
            "h.setAttribute('type', 'hidden');"
            "h.setAttribute('name', arguments[1]);"
            "h.value = arguments[2];"
            "arguments[0].appendChild(h);"
        )
        await self.execute(script, [form, field, value])
        await self.submit_direct(form)


def _expect_str(value: Any) -> str:
    if not isinstance(value, str):
        raise MalformedResponse("expected a string", value)
    return value


def _expect_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _expect_str(value)
