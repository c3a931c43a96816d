"""Tests for the Qt wiring around OpenFileRelay."""

import os

from fpaint_host.file_relay import CHANNEL_NAME, METHOD_FILE_OPENED
from fpaint_host.file_relay.qt_bridge import (
    _file_open_event_type,
    _get_qt_support,
    create_messenger,
    ensure_file_open_aware_application,
    get_initial_file_list_from_argv,
    install_open_file_relay,
    is_url,
    load_qt_modules,
    normalize_file_paths,
)
from fpaint_host.file_relay.relay import OpenFileRelay


def test_normalize_file_paths_dedups_and_keeps_urls(tmp_path):
    a = str(tmp_path / "a.png")
    paths = normalize_file_paths([a, a, "  ", None, "fpaint://open?x=1", str(tmp_path / "sub" / ".." / "a.png")])
    assert paths == [os.path.abspath(a), "fpaint://open?x=1"]


def test_is_url():
    assert is_url("fpaint://x")
    assert is_url("file:///tmp/a.png")
    assert not is_url("/tmp/a.png")
    assert not is_url("C:\\images\\a.png")


def test_argv_stops_at_first_option(tmp_path):
    a = str(tmp_path / "a.fpaint")
    argv = ["fpaint", a, "fpaint://open", "--debug", str(tmp_path / "ignored.png")]
    assert get_initial_file_list_from_argv(argv) == [a, "fpaint://open"]


def test_argv_without_items():
    assert get_initial_file_list_from_argv(["fpaint"]) == []


class _FileOpenEvent:
    """Stands in for QFileOpenEvent; only type()/file()/url() are used."""

    def __init__(self, event_type, file="", url=None):
        self._type = event_type
        self._file = file
        self._url = url

    def type(self):
        return self._type

    def file(self):
        return self._file

    def url(self):
        return self._url


def test_messenger_emits_signal(qapp):
    received = []
    messenger = create_messenger()
    messenger.message.connect(lambda *args: received.append(args))

    relay = OpenFileRelay()
    relay.on_open_file("/tmp/a.fpaint")
    relay.on_ui_layer_ready(messenger)

    assert received == [(CHANNEL_NAME, METHOD_FILE_OPENED, "/tmp/a.fpaint")]


def test_application_quits_on_last_window_closed(qapp):
    app = ensure_file_open_aware_application(relay=OpenFileRelay())
    assert app.quitOnLastWindowClosed() is True


def test_install_is_idempotent(qapp):
    relay = OpenFileRelay()
    first = install_open_file_relay(qapp, relay)
    assert install_open_file_relay(qapp, relay) is first


def test_filter_routes_local_file_to_open_file(qapp, qt_modules, tmp_path, messenger):
    QtCore, _, _ = qt_modules
    relay = OpenFileRelay()
    event_filter = _get_qt_support()["filter_cls"](relay)
    file_open = _file_open_event_type(QtCore.QEvent)
    path = str(tmp_path / "a.fpaint")

    assert event_filter.handle_event(_FileOpenEvent(file_open, file=path, url=QtCore.QUrl.fromLocalFile(path)))
    assert relay.pending_path == path

    relay.on_ui_layer_ready(messenger)
    assert messenger.sent == [(CHANNEL_NAME, METHOD_FILE_OPENED, path)]


def test_filter_routes_scheme_url_to_url_event(qapp, qt_modules, messenger):
    QtCore, _, _ = qt_modules
    relay = OpenFileRelay()
    relay.on_ui_layer_ready(messenger)
    event_filter = _get_qt_support()["filter_cls"](relay)
    file_open = _file_open_event_type(QtCore.QEvent)

    assert event_filter.handle_event(_FileOpenEvent(file_open, url=QtCore.QUrl("fpaint://open?file=a")))
    assert messenger.sent == [(CHANNEL_NAME, METHOD_FILE_OPENED, "fpaint://open?file=a")]


def test_filter_ignores_other_events(qapp, qt_modules):
    QtCore, _, _ = qt_modules
    relay = OpenFileRelay()
    event_filter = _get_qt_support()["filter_cls"](relay)
    show_type = getattr(getattr(QtCore.QEvent, "Type", QtCore.QEvent), "Show")

    assert event_filter.handle_event(_FileOpenEvent(show_type, file="/tmp/x.png")) is False
    assert relay.pending_path is None


def test_load_qt_modules_only_loads_requested(qt_modules):
    QtCore, QtNetwork, QtWidgets = load_qt_modules()

    assert QtCore.__name__.endswith(".QtCore")
    assert QtNetwork is None
    assert QtWidgets is None
    assert load_qt_modules(need_network=True)[1].__name__.endswith(".QtNetwork")
