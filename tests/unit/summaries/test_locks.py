"""Tests for KeyedLock."""

from __future__ import annotations

import threading

from semlink.summaries.locks import KeyedLock


def test_hold_acquires_and_releases():
    locks = KeyedLock()
    with locks.hold("a") as acquired:
        assert acquired is True
        assert locks.is_held("a")
    assert not locks.is_held("a")


def test_non_blocking_reports_contention():
    locks = KeyedLock()
    with locks.hold("a"):
        with locks.hold("a", blocking=False) as acquired:
            assert acquired is False
        # The failed attempt must not release the outer holder.
        assert locks.is_held("a")
    assert not locks.is_held("a")


def test_distinct_keys_do_not_contend():
    locks = KeyedLock()
    with locks.hold(("r1", "s1")):
        with locks.hold(("r1", "s2"), blocking=False) as acquired:
            assert acquired is True


def test_entries_dropped_when_unused():
    locks = KeyedLock()
    with locks.hold("a"):
        pass
    assert locks._locks == {}


def test_blocking_waits_for_other_thread():
    locks = KeyedLock()
    order: list[str] = []
    held = threading.Event()

    def first():
        with locks.hold("k"):
            held.set()
            order.append("first")

    with locks.hold("k"):
        thread = threading.Thread(target=first)
        thread.start()
        assert not held.wait(0.1)
        order.append("main")
    thread.join()

    assert order == ["main", "first"]
    assert locks._locks == {}
