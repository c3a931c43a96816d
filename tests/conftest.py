import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from fpaint_host.file_relay.qt_bridge import load_qt_modules


class FakeMessenger:
    """Records every message sent through the channel."""

    def __init__(self):
        self.sent = []

    def send(self, channel, method, argument):
        self.sent.append((channel, method, argument))


class FakeWindow:
    def __init__(self):
        self.title = None

    def setWindowTitle(self, title):
        self.title = title


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def window():
    return FakeWindow()


@pytest.fixture(scope="session")
def qt_modules():
    try:
        return load_qt_modules(need_network=True, need_widgets=True)
    except ImportError:
        pytest.skip("Qt bindings are unavailable")


@pytest.fixture(scope="session")
def qapp(qt_modules):
    _, _, QtWidgets = qt_modules
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv[:1])
    return app
