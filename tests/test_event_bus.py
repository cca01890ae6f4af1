"""Tests for the in-process threaded event bus."""

from __future__ import annotations

import threading
import time

import pytest

from accounts.domain.account import Account
from accounts.events.bus import ThreadedEventBus
from accounts.schemas.account import PublicAccount
from accounts.schemas.events import AccountEvent, EventName


def _event(name: EventName = EventName.created) -> AccountEvent:
    account = Account(
        account_id="acc-1",
        email="a@x.com",
        username="a",
        password_hash="$2b$04$hash",
        created_at=1,
        updated_at=1,
    )
    return AccountEvent(name=name, account=PublicAccount.from_domain(account), occurred_at=1)


@pytest.fixture
def bus():
    bus = ThreadedEventBus()
    yield bus
    bus.shutdown()


def test_delivers_to_matching_subscribers(bus):
    received: list[AccountEvent] = []
    done = threading.Event()

    def handler(event: AccountEvent) -> None:
        received.append(event)
        done.set()

    bus.subscribe(EventName.created, handler)
    bus.subscribe(EventName.deleted, lambda event: pytest.fail("wrong subscriber"))
    bus.publish(_event())

    assert done.wait(timeout=2)
    assert received[0].account.account_id == "acc-1"


def test_failing_subscriber_does_not_affect_publisher_or_peers(bus):
    done = threading.Event()

    def broken(event: AccountEvent) -> None:
        raise RuntimeError("subscriber exploded")

    bus.subscribe(EventName.confirmed, broken)
    bus.subscribe(EventName.confirmed, lambda event: done.set())

    bus.publish(_event(EventName.confirmed))

    assert done.wait(timeout=2)


def test_publish_does_not_wait_for_slow_subscribers(bus):
    release = threading.Event()
    finished = threading.Event()

    def slow(event: AccountEvent) -> None:
        release.wait(timeout=5)
        finished.set()

    bus.subscribe(EventName.created, slow)
    bus.publish(_event())

    assert not finished.is_set()
    release.set()
    assert finished.wait(timeout=2)


def test_publish_after_shutdown_is_dropped():
    bus = ThreadedEventBus()
    bus.subscribe(EventName.created, lambda event: None)
    bus.shutdown()

    bus.publish(_event())


def test_each_subscriber_sees_events_in_publish_order(bus):
    received: list[EventName] = []
    done = threading.Event()
    first_started = threading.Event()

    def handler(event: AccountEvent) -> None:
        if event.name is EventName.created:
            first_started.set()
            # hold the first delivery so a parallel worker would overtake it
            time.sleep(0.2)
        received.append(event.name)
        if event.name is EventName.confirmed:
            done.set()

    bus.subscribe(EventName.created, handler)
    bus.subscribe(EventName.confirmed, handler)

    bus.publish(_event(EventName.created))
    assert first_started.wait(timeout=2)
    bus.publish(_event(EventName.confirmed))

    assert done.wait(timeout=2)
    assert received == [EventName.created, EventName.confirmed]


def test_subscribe_after_shutdown_is_rejected():
    bus = ThreadedEventBus()
    bus.shutdown()

    with pytest.raises(RuntimeError):
        bus.subscribe(EventName.created, lambda event: None)
