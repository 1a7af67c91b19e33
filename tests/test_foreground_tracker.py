from __future__ import annotations

import threading

import pytest

from core.foreground_tracker import ForegroundTracker


@pytest.fixture
def tracker(qt_app, workspace):
    foreground = ForegroundTracker(workspace)
    yield foreground
    foreground.stop()


def record(signal):
    received = []
    signal.connect(received.append)
    return received


def test_activation_is_published(tracker, workspace, wait_until) -> None:
    events = record(tracker.appActivated)
    tracker.start()

    workspace.activate("com.tinyspeck.slackmacgap", pid=812)

    assert wait_until(lambda: bool(events))
    assert events[0].app_id == "com.tinyspeck.slackmacgap"
    assert events[0].pid == 812


def test_unresolved_activation_is_ignored(tracker, workspace, wait_until) -> None:
    events = record(tracker.appActivated)
    tracker.start()

    workspace.activate(None)

    assert not wait_until(lambda: bool(events), timeout=0.2)


def test_activation_from_background_thread(tracker, workspace, wait_until) -> None:
    events = record(tracker.appActivated)
    tracker.start()

    thread = threading.Thread(target=workspace.activate, args=("com.apple.mail",))
    thread.start()
    thread.join()

    assert wait_until(lambda: bool(events))
    assert events[0].app_id == "com.apple.mail"


def test_start_and_stop_are_idempotent(tracker, workspace) -> None:
    tracker.start()
    tracker.start()
    assert len(workspace.observers) == 1

    tracker.stop()
    tracker.stop()
    assert workspace.observers == {}
    assert not tracker.is_running


def test_queued_activation_dropped_after_stop(tracker, workspace, wait_until) -> None:
    events = record(tracker.appActivated)
    tracker.start()

    thread = threading.Thread(target=workspace.activate, args=("com.apple.mail",))
    thread.start()
    thread.join()
    tracker.stop()

    assert not wait_until(lambda: bool(events), timeout=0.2)
