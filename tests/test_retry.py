from __future__ import annotations

import asyncio

import pytest

from wire_driver.errors import ProtocolError, TransportError
from wire_driver.models import ErrorStatus
from wire_driver.retry import wait_until


class FlakyOperation:
    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay: float, result: object = None) -> object:
        recorded.append(delay)
        return await real_sleep(0, result)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


def _missing() -> ProtocolError:
    return ProtocolError(ErrorStatus.NO_SUCH_ELEMENT, "not yet")


def test_retries_until_success(sleeps: list[float]) -> None:
    operation = FlakyOperation(_missing(), _missing(), "V")

    assert asyncio.run(wait_until(operation)) == "V"
    assert operation.calls == 3
    assert sleeps == [0.1, 0.1]


def test_other_status_is_returned_immediately(sleeps: list[float]) -> None:
    operation = FlakyOperation(ProtocolError(ErrorStatus.STALE_ELEMENT_REFERENCE, "gone"), "V")

    with pytest.raises(ProtocolError) as info:
        asyncio.run(wait_until(operation))

    assert info.value.status is ErrorStatus.STALE_ELEMENT_REFERENCE
    assert operation.calls == 1
    assert sleeps == []


def test_non_protocol_errors_propagate(sleeps: list[float]) -> None:
    operation = FlakyOperation(_missing(), TransportError("reset"))

    with pytest.raises(TransportError):
        asyncio.run(wait_until(operation))

    assert sleeps == [0.1]


def test_custom_status_and_interval(sleeps: list[float]) -> None:
    operation = FlakyOperation(
        ProtocolError(ErrorStatus.NO_SUCH_FRAME, "loading"),
        {"ok": True},
    )

    result = asyncio.run(wait_until(operation, ErrorStatus.NO_SUCH_FRAME, interval=0.5))

    assert result == {"ok": True}
    assert sleeps == [0.5]


def test_timeout_reraises_last_error() -> None:
    async def never_there() -> None:
        raise _missing()

    with pytest.raises(ProtocolError) as info:
        asyncio.run(wait_until(never_there, interval=0.01, timeout=0.05))

    assert info.value.status is ErrorStatus.NO_SUCH_ELEMENT


def test_waiting_does_not_block_other_tasks() -> None:
    events: list[str] = []
    operation = FlakyOperation(_missing(), _missing(), "found")

    async def other() -> None:
        events.append("other")

    async def scenario() -> object:
        waiter = asyncio.create_task(wait_until(operation, interval=0.01))
        await other()
        return await waiter

    assert asyncio.run(scenario()) == "found"
    assert events == ["other"]
