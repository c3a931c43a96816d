"""Tests for single-instance forwarding over QLocalServer/QLocalSocket."""

import json
import os
import socket
import sys
import time
import uuid

import pytest

from fpaint_host.file_relay.ipc import (
    SingleInstanceReceiver,
    decode_payload,
    encode_payload,
    send_url_to_running_app,
    server_name,
)
from fpaint_host.file_relay.relay import OpenFileRelay


def test_payload_is_one_json_object():
    data = encode_payload("fpaint://open?file=/tmp/图.png")
    assert json.loads(data.decode("utf-8")) == {"url": "fpaint://open?file=/tmp/图.png"}
    assert decode_payload(data) == {"url": "fpaint://open?file=/tmp/图.png"}


def test_decode_rejects_garbage():
    assert decode_payload(b"\xff\xfe") is None
    assert decode_payload(b"not json") is None
    assert decode_payload(b'["fpaint://x"]') is None


def test_server_name_is_sanitized():
    name = server_name("com.vteam.fpaint/../x")
    assert name.startswith("fpaint_open_com_vteam_fpaint____x_")
    assert "/" not in name


def test_receiver_hands_payload_to_relay(messenger):
    relay = OpenFileRelay()
    receiver = SingleInstanceReceiver("com.vteam.fpaint.test", relay)

    assert receiver.handle_payload(encode_payload("fpaint://open?file=a")) is True
    assert relay.pending_path == "fpaint://open?file=a"

    relay.on_ui_layer_ready(messenger)
    assert [argument for _, _, argument in messenger.sent] == ["fpaint://open?file=a"]


def test_receiver_drops_malformed_payload():
    relay = OpenFileRelay()
    receiver = SingleInstanceReceiver("com.vteam.fpaint.test", relay)

    assert receiver.handle_payload(b"{broken") is False
    assert receiver.handle_payload(b'{"files": ["/tmp/a"]}') is True
    assert relay.pending_path is None


def _app_id():
    return f"com.vteam.fpaint.test.{uuid.uuid4().hex[:12]}"


def _process_events_until(qapp, condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not condition() and time.monotonic() < deadline:
        qapp.processEvents()
        time.sleep(0.01)
    return condition()


@pytest.fixture
def receiver(qapp):
    relay = OpenFileRelay()
    receiver = SingleInstanceReceiver(_app_id(), relay)
    yield receiver
    receiver.stop()


def test_url_round_trip_to_running_instance(qapp, receiver):
    assert receiver.start() is True
    relay = receiver._relay
    url = "fpaint://open?file=/tmp/" + "a" * 50_000 + ".png"

    assert send_url_to_running_app(receiver._app_id, url) is True
    assert _process_events_until(qapp, lambda: relay.pending_path is not None)
    assert relay.pending_path == url


def test_send_without_running_instance_fails(qapp):
    assert send_url_to_running_app(_app_id(), "fpaint://nobody", timeout_ms=300) is False


def test_second_receiver_sees_running_instance(qapp, receiver):
    assert receiver.start() is True
    second = SingleInstanceReceiver(receiver._app_id, OpenFileRelay())

    assert second.start() is False
    assert second.another_instance_running is True


def test_stop_releases_name(qapp, receiver):
    assert receiver.start() is True
    receiver.stop()

    again = SingleInstanceReceiver(receiver._app_id, OpenFileRelay())
    try:
        assert again.start() is True
        assert again.another_instance_running is False
    finally:
        again.stop()


@pytest.mark.skipif(sys.platform == "win32", reason="stale socket files only exist on Unix")
def test_start_recovers_from_stale_socket(qapp, qt_modules, receiver):
    QtCore, _, _ = qt_modules
    path = os.path.join(QtCore.QDir.tempPath(), receiver.name)
    stale = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    stale.bind(path)
    stale.close()
    assert os.path.exists(path)

    assert receiver.start() is True
    assert receiver.another_instance_running is False

    assert send_url_to_running_app(receiver._app_id, "fpaint://after-recovery") is True
    assert _process_events_until(qapp, lambda: receiver._relay.pending_path is not None)
    assert receiver._relay.pending_path == "fpaint://after-recovery"
