"""In-process WebDriver server used by the tests."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from wire_driver.models import LEGACY_ELEMENT_KEY, W3C_ELEMENT_KEY, ErrorStatus
from wire_driver.protocol.transport import HttpxTransport

SERVER_URL = "http://webdriver.test"

_W3C_HTTP_STATUS = {
    ErrorStatus.NO_SUCH_ELEMENT: 404,
    ErrorStatus.NO_SUCH_FRAME: 404,
    ErrorStatus.STALE_ELEMENT_REFERENCE: 400,
    ErrorStatus.JAVASCRIPT_ERROR: 500,
}
_LEGACY_CODES = {
    ErrorStatus.NO_SUCH_ELEMENT: 7,
    ErrorStatus.NO_SUCH_FRAME: 8,
    ErrorStatus.STALE_ELEMENT_REFERENCE: 10,
    ErrorStatus.JAVASCRIPT_ERROR: 17,
}


class FakeWebDriver:
    """In-process WebDriver server speaking either dialect."""

    def __init__(self, *, legacy: bool = False) -> None:
        self.legacy = legacy
        self.session_id = "legacy-session" if legacy else "w3c-session"
        self.requests: list[tuple[str, str, str]] = []
        self.headers: list[dict[str, str]] = []
        self.url = "about:blank"
        self.history: list[str] = []
        self.source = "<html><body><p>hi</p></body></html>"
        # selector -> element ids
        self.elements: dict[str, list[str]] = {}
        # selector -> number of lookups that fail before the element appears
        self.pending: dict[str, int] = {}
        self.attributes: dict[tuple[str, str], Optional[str]] = {}
        self.properties: dict[tuple[str, str], Optional[str]] = {}
        self.texts: dict[str, str] = {}
        self.links: dict[str, str] = {}
        self.cookie_jar: list[dict[str, Any]] = []
        self.script_result: Any = None
        self.click_result: Any = None
        self.deleted: list[str] = []
        self.app = self._build_app()

    @property
    def element_key(self) -> str:
        return LEGACY_ELEMENT_KEY if self.legacy else W3C_ELEMENT_KEY

    def ref(self, element_id: str) -> dict[str, str]:
        return {self.element_key: element_id}

    def bodies(self, path_suffix: str) -> list[Any]:
        return [
            json.loads(body) if body else None
            for _, path, body in self.requests
            if path.endswith(path_suffix)
        ]

    def ok(self, value: Any) -> JSONResponse:
        if self.legacy:
            return JSONResponse({"sessionId": self.session_id, "status": 0, "value": value})
        return JSONResponse({"value": value})

    def fail(self, status: ErrorStatus, message: str) -> JSONResponse:
        if self.legacy:
            return JSONResponse(
                {"status": _LEGACY_CODES[status], "value": {"message": message}},
                status_code=500,
            )
        return JSONResponse(
            {"value": {"error": status.value, "message": message, "stacktrace": ""}},
            status_code=_W3C_HTTP_STATUS[status],
        )

    def lookup(self, selector: str) -> list[str]:
        remaining = self.pending.get(selector, 0)
        if remaining:
            self.pending[selector] = remaining - 1
            return []
        return self.elements.get(selector, [])

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        driver = self

        async def record(request: Request) -> Any:
            body = (await request.body()).decode()
            driver.requests.append((request.method, request.url.path, body))
            driver.headers.append(dict(request.headers))
            return json.loads(body) if body else None

        @app.post("/session")
        async def new_session(payload: Any = Depends(record)) -> JSONResponse:
            if driver.legacy:
                if "desiredCapabilities" not in payload:
                    return JSONResponse(
                        {
                            "sessionId": None,
                            "status": 13,
                            "value": {"message": "Missing or invalid capabilities"},
                        },
                        status_code=500,
                    )
                return JSONResponse({"sessionId": driver.session_id, "status": 0, "value": {}})
            return JSONResponse(
                {"value": {"sessionId": driver.session_id, "capabilities": {}}}
            )

        @app.delete("/session/{sid}")
        async def delete_session(sid: str, _: Any = Depends(record)) -> JSONResponse:
            driver.deleted.append(sid)
            return driver.ok(None)

        @app.get("/session/{sid}/url")
        async def current_url(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.url)

        @app.post("/session/{sid}/url")
        async def navigate(sid: str, payload: Any = Depends(record)) -> JSONResponse:
            driver.history.append(driver.url)
            driver.url = payload["url"]
            return driver.ok(None)

        @app.post("/session/{sid}/back")
        async def back(sid: str, _: Any = Depends(record)) -> JSONResponse:
            if driver.history:
                driver.url = driver.history.pop()
            return driver.ok(None)

        @app.post("/session/{sid}/refresh")
        async def refresh(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(None)

        @app.get("/session/{sid}/source")
        async def page_source(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.source)

        @app.post("/session/{sid}/element")
        async def find_element(sid: str, payload: Any = Depends(record)) -> JSONResponse:
            found = driver.lookup(payload["value"])
            if not found:
                return driver.fail(ErrorStatus.NO_SUCH_ELEMENT, f"no element for {payload['value']}")
            return driver.ok(driver.ref(found[0]))

        @app.post("/session/{sid}/elements")
        async def find_elements(sid: str, payload: Any = Depends(record)) -> JSONResponse:
            return driver.ok([driver.ref(eid) for eid in driver.lookup(payload["value"])])

        @app.post("/session/{sid}/element/{eid}/element")
        async def find_child(sid: str, eid: str, payload: Any = Depends(record)) -> JSONResponse:
            found = driver.lookup(f"{eid} {payload['value']}")
            if not found:
                return driver.fail(ErrorStatus.NO_SUCH_ELEMENT, "no child element")
            return driver.ok(driver.ref(found[0]))

        @app.post("/session/{sid}/element/{eid}/elements")
        async def find_children(
            sid: str, eid: str, payload: Any = Depends(record)
        ) -> JSONResponse:
            found = driver.lookup(f"{eid} {payload['value']}")
            return driver.ok([driver.ref(child) for child in found])

        @app.get("/session/{sid}/element/{eid}/attribute/{name}")
        async def attribute(sid: str, eid: str, name: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.attributes.get((eid, name)))

        @app.get("/session/{sid}/element/{eid}/property/{name}")
        async def prop(sid: str, eid: str, name: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.properties.get((eid, name)))

        @app.get("/session/{sid}/element/{eid}/text")
        async def text(sid: str, eid: str, _: Any = Depends(record)) -> JSONResponse:
            if eid not in driver.texts:
                return driver.fail(ErrorStatus.STALE_ELEMENT_REFERENCE, "element is gone")
            return driver.ok(driver.texts[eid])

        @app.post("/session/{sid}/element/{eid}/click")
        async def click(sid: str, eid: str, _: Any = Depends(record)) -> JSONResponse:
            if eid in driver.links:
                driver.history.append(driver.url)
                driver.url = driver.links[eid]
            return driver.ok(driver.click_result)

        @app.post("/session/{sid}/element/{eid}/value")
        async def send_keys(sid: str, eid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(None)

        @app.post("/session/{sid}/execute")
        async def execute_legacy(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.script_result)

        @app.post("/session/{sid}/execute/sync")
        async def execute_sync(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.script_result)

        @app.post("/session/{sid}/frame")
        async def frame(sid: str, payload: Any = Depends(record)) -> JSONResponse:
            return driver.ok(None)

        @app.post("/session/{sid}/frame/parent")
        async def parent_frame(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(None)

        @app.post("/session/{sid}/window")
        async def window(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(None)

        @app.get("/session/{sid}/cookie")
        async def cookies(sid: str, _: Any = Depends(record)) -> JSONResponse:
            return driver.ok(driver.cookie_jar)

        return app


def asgi_transport(server: FakeWebDriver) -> HttpxTransport:
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=server.app), base_url=SERVER_URL)
    return HttpxTransport(client)
