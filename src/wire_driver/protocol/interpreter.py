"""Classify raw WebDriver responses into payloads or typed errors.

Two wire encodings are understood:

* W3C WebDriver: success is signalled by a 2xx HTTP status and failures
  carry an ``error`` string whose valid values depend on the HTTP status.
* Legacy JSON Wire Protocol: every response carries an integer ``status``
  where ``0`` means success and anything else is a numeric error code.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from ..errors import (
    MalformedResponse,
    ProtocolError,
    UnexpectedContentType,
    UnexpectedErrorStatus,
)
from ..models import ErrorStatus

LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

LEGACY_STATUS_CODES: dict[int, ErrorStatus] = {
    6: ErrorStatus.SESSION_NOT_CREATED,
    7: ErrorStatus.NO_SUCH_ELEMENT,
    8: ErrorStatus.NO_SUCH_FRAME,
    9: ErrorStatus.UNKNOWN_COMMAND,
    10: ErrorStatus.STALE_ELEMENT_REFERENCE,
    11: ErrorStatus.ELEMENT_NOT_INTERACTABLE,
    12: ErrorStatus.INVALID_ELEMENT_STATE,
    13: ErrorStatus.UNKNOWN_ERROR,
    15: ErrorStatus.ELEMENT_NOT_SELECTABLE,
    17: ErrorStatus.JAVASCRIPT_ERROR,
    19: ErrorStatus.INVALID_SELECTOR,
    21: ErrorStatus.TIMEOUT,
    23: ErrorStatus.NO_SUCH_WINDOW,
    24: ErrorStatus.INVALID_COOKIE_DOMAIN,
    25: ErrorStatus.UNABLE_TO_SET_COOKIE,
    26: ErrorStatus.UNEXPECTED_ALERT_OPEN,
    27: ErrorStatus.NO_SUCH_ALERT,
    28: ErrorStatus.SCRIPT_TIMEOUT,
    29: ErrorStatus.INVALID_COORDINATES,
    32: ErrorStatus.INVALID_SELECTOR,
    33: ErrorStatus.SESSION_NOT_CREATED,
    34: ErrorStatus.MOVE_TARGET_OUT_OF_BOUNDS,
}

W3C_STATUS_ERRORS: dict[int, frozenset[ErrorStatus]] = {
    400: frozenset(
        {
            ErrorStatus.ELEMENT_CLICK_INTERCEPTED,
            ErrorStatus.ELEMENT_NOT_SELECTABLE,
            ErrorStatus.ELEMENT_NOT_INTERACTABLE,
            ErrorStatus.INSECURE_CERTIFICATE,
            ErrorStatus.INVALID_ARGUMENT,
            ErrorStatus.INVALID_COOKIE_DOMAIN,
            ErrorStatus.INVALID_COORDINATES,
            ErrorStatus.INVALID_ELEMENT_STATE,
            ErrorStatus.INVALID_SELECTOR,
            ErrorStatus.NO_SUCH_ALERT,
            ErrorStatus.NO_SUCH_FRAME,
            ErrorStatus.NO_SUCH_WINDOW,
            ErrorStatus.STALE_ELEMENT_REFERENCE,
        }
    ),
    404: frozenset(
        {
            ErrorStatus.UNKNOWN_COMMAND,
            ErrorStatus.NO_SUCH_COOKIE,
            ErrorStatus.INVALID_SESSION_ID,
            ErrorStatus.NO_SUCH_ELEMENT,
            ErrorStatus.NO_SUCH_FRAME,
            ErrorStatus.NO_SUCH_WINDOW,
        }
    ),
    405: frozenset({ErrorStatus.UNKNOWN_METHOD}),
    408: frozenset({ErrorStatus.TIMEOUT, ErrorStatus.SCRIPT_TIMEOUT}),
    500: frozenset(
        {
            ErrorStatus.JAVASCRIPT_ERROR,
            ErrorStatus.MOVE_TARGET_OUT_OF_BOUNDS,
            ErrorStatus.SESSION_NOT_CREATED,
            ErrorStatus.UNABLE_TO_SET_COOKIE,
            ErrorStatus.UNABLE_TO_CAPTURE_SCREEN,
            ErrorStatus.UNEXPECTED_ALERT_OPEN,
            ErrorStatus.UNKNOWN_ERROR,
            ErrorStatus.UNSUPPORTED_OPERATION,
        }
    ),
}


def interpret(
    legacy: bool,
    new_session: bool,
    http_status: int,
    content_type: Optional[str],
    body: bytes,
) -> Any:
    """Return the response payload or raise the matching error.

    Raises :class:`ProtocolError` for classified WebDriver failures and
    :class:`MalformedResponse` (or a subclass) for anything that does not
    follow the wire format.
    """

    if content_type is None or not content_type.strip().lower().startswith(JSON_CONTENT_TYPE):
        raise UnexpectedContentType(content_type, body)
    try:
        document = json.loads(body)
    except ValueError as exc:
        raise MalformedResponse("response body is not valid JSON", body) from exc
    if not isinstance(document, dict):
        raise MalformedResponse("response body is not a JSON object", document)

    if legacy:
        legacy_status = document.get("status")
        if isinstance(legacy_status, bool) or not isinstance(legacy_status, int):
            raise MalformedResponse("legacy response without integer status", document)
        success = legacy_status == 0
    else:
        legacy_status = None
        success = 200 <= http_status < 300

    if success:
        if legacy and new_session:
            # Legacy new-session responses carry sessionId at the top level.
            return document
        if "value" not in document:
            raise MalformedResponse("response has no value", document)
        return document["value"]

    raise _decode_error(http_status, legacy_status, document)


def _decode_error(
    http_status: int,
    legacy_status: Optional[int],
    document: dict[str, Any],
) -> Exception:
    detail = document.get("value", document)
    if not isinstance(detail, dict):
        return MalformedResponse("error response is not a JSON object", detail)
    # Some drivers attach a full-page screenshot to errors.
    detail.pop("screen", None)
    document.pop("screen", None)

    if legacy_status is not None:
        message = detail.get("message")
        if not isinstance(message, str):
            return MalformedResponse("error response has no message", detail)
        status = LEGACY_STATUS_CODES.get(legacy_status)
        if status is None:
            return MalformedResponse(f"unknown legacy status {legacy_status}", detail)
        LOGGER.debug("legacy error %s -> %s", legacy_status, status.value)
        return ProtocolError(status, message)

    error = detail.get("error")
    if not isinstance(error, str):
        return MalformedResponse("error response has no error string", detail)
    allowed = W3C_STATUS_ERRORS.get(http_status, frozenset())
    status = _lookup_error(error)
    if status is None or status not in allowed:
        return UnexpectedErrorStatus(http_status, error, detail)
    message = detail.get("message")
    if not isinstance(message, str):
        return MalformedResponse("error response has no message", detail)
    return ProtocolError(status, message)


def _lookup_error(error: str) -> Optional[ErrorStatus]:
    try:
        return ErrorStatus(error)
    except ValueError:
        return None
