from __future__ import annotations

import threading

from core.backends import AuthorizationStatus, CaptureDevice
from core.errors import PermissionDenied, ResourceUnavailable
from core.light_controller import LightController


def record(signal):
    received = []
    signal.connect(received.append)
    return received


def settled(light) -> bool:
    return not light.is_busy


def test_turns_on_and_off(light, capture, wait_until) -> None:
    states = record(light.stateChanged)

    light.request(True)
    assert wait_until(lambda: light.is_on)
    light.request(False)
    assert wait_until(lambda: settled(light) and not light.is_on)

    assert capture.resource.ops == ["start", "stop"]
    assert states == [True, False]


def test_repeated_request_does_not_retoggle(light, capture, wait_until) -> None:
    light.request(True)
    assert wait_until(lambda: light.is_on)

    light.request(True)
    light.follow_activation(False)
    assert wait_until(lambda: settled(light))

    assert capture.resource.ops == ["start"]


def test_latest_request_wins_while_busy(light, capture, wait_until) -> None:
    capture.resource.gate = threading.Event()

    light.request(True)
    assert wait_until(lambda: capture.resource.entered == 1)
    light.request(False)
    light.request(True)
    capture.resource.gate.set()

    assert wait_until(lambda: settled(light) and light.is_on)
    assert capture.resource.ops == ["start"]


def test_superseding_request_applied_after_in_flight_operation(light, capture, wait_until) -> None:
    capture.resource.gate = threading.Event()

    light.request(True)
    assert wait_until(lambda: capture.resource.entered == 1)
    light.request(False)
    capture.resource.gate.set()

    assert wait_until(lambda: settled(light) and len(capture.resource.ops) == 2)
    assert capture.resource.ops == ["start", "stop"]
    assert not light.is_on


def test_missing_device_reports_resource_unavailable(light, capture, wait_until) -> None:
    capture.devices = []
    failures = record(light.failed)

    light.request(True)

    assert wait_until(lambda: bool(failures))
    assert isinstance(failures[0], ResourceUnavailable)
    assert not light.is_on


def test_denied_camera_reports_permission_denied(light, capture, wait_until) -> None:
    capture.status = AuthorizationStatus.DENIED
    failures = record(light.failed)

    light.request(True)

    assert wait_until(lambda: bool(failures))
    assert isinstance(failures[0], PermissionDenied)
    assert failures[0].permission == PermissionDenied.CAMERA
    assert capture.opened == []


def test_failure_keeps_previous_state(light, capture, wait_until) -> None:
    light.request(True)
    assert wait_until(lambda: light.is_on)
    capture.resource.stop_error = ResourceUnavailable("device wedged")
    failures = record(light.failed)
    states = record(light.stateChanged)

    light.request(False)

    assert wait_until(lambda: bool(failures))
    assert light.is_on
    assert states == []


def test_manual_toggle_flips_state(light, wait_until) -> None:
    light.toggle_manual()
    assert wait_until(lambda: settled(light) and light.is_on)
    light.toggle_manual()
    assert wait_until(lambda: settled(light) and not light.is_on)


def test_preferred_device_is_used(qt_app, capture, wait_until) -> None:
    capture.devices = [
        CaptureDevice(device_id="cam-0", description="FaceTime HD Camera"),
        CaptureDevice(device_id="cam-1", description="Studio Display Camera"),
    ]
    light = LightController(capture, preferred_device_id="cam-1")
    try:
        light.request(True)
        assert wait_until(lambda: light.is_on)
        assert [device.device_id for device in capture.opened] == ["cam-1"]
    finally:
        light.shutdown()


def test_authorization_grant_applies_wanted_state(light, capture, wait_until) -> None:
    capture.status = AuthorizationStatus.UNDETERMINED
    failures = record(light.failed)

    light.request_authorization()
    light.request(True)
    assert wait_until(lambda: bool(failures))
    assert len(capture.auth_callbacks) == 1

    capture.status = AuthorizationStatus.GRANTED
    capture.auth_callbacks[0](True)

    assert wait_until(lambda: light.is_on)


def test_shutdown_releases_device(qt_app, capture, wait_until) -> None:
    light = LightController(capture)
    light.request(True)
    assert wait_until(lambda: light.is_on)

    light.shutdown()

    assert capture.resource.ops == ["start", "stop"]
    assert capture.resource.closed
    assert not light.is_on

    light.request(True)
    assert capture.resource.ops == ["start", "stop"]
