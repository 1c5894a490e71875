"""Tests for the in-process event bus."""

import asyncio
import logging

import pytest

from nutrilog.services.events import EventBus


class _Ping:
    pass


class _Pong:
    pass


def test_publish_reaches_handlers_in_order() -> None:
    bus = EventBus()
    received: list[str] = []

    async def first(event: _Ping) -> None:
        received.append("first")

    async def second(event: _Ping) -> None:
        received.append("second")

    bus.subscribe(_Ping, first)
    bus.subscribe(_Ping, second)

    asyncio.run(bus.publish(_Ping()))

    assert received == ["first", "second"]


def test_publish_only_targets_matching_type() -> None:
    bus = EventBus()
    received: list[object] = []

    async def handler(event: _Pong) -> None:
        received.append(event)

    bus.subscribe(_Pong, handler)

    asyncio.run(bus.publish(_Ping()))

    assert received == []


def test_failing_handler_does_not_stop_others(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("nutrilog"), "propagate", True)
    bus = EventBus()
    received: list[str] = []

    async def broken(event: _Ping) -> None:
        raise RuntimeError("boom")

    async def healthy(event: _Ping) -> None:
        received.append("healthy")

    bus.subscribe(_Ping, broken)
    bus.subscribe(_Ping, healthy)

    asyncio.run(bus.publish(_Ping()))

    assert received == ["healthy"]
    assert "Event handler failed" in caplog.text


def test_unsubscribe() -> None:
    bus = EventBus()
    received: list[str] = []

    async def handler(event: _Ping) -> None:
        received.append("called")

    bus.subscribe(_Ping, handler)

    assert bus.unsubscribe(_Ping, handler) is True
    assert bus.unsubscribe(_Ping, handler) is False
    asyncio.run(bus.publish(_Ping()))
    assert received == []
