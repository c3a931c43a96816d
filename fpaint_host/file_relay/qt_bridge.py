# -*- coding: utf-8 -*-
"""
Qt 宿主接线：把 QApplication 收到的系统事件转交给 OpenFileRelay。

1) macOS「用本应用打开」：QFileOpenEvent，本地文件走 on_open_file，自定义 scheme 的 URL 走 on_external_url_event；
2) 冷启动：命令行参数中的文件列表；
3) UI 层通过 QtMessenger 的 message 信号接收通知。
跨平台：PyQt6 / PyQt5 / PySide6，优先复用进程里已加载的绑定。
"""
from __future__ import annotations

import importlib
import os
import re
import sys
from collections.abc import Iterable
from typing import Any

from fpaint_host.file_relay.relay import OpenFileRelay
from fpaint_host.log import get_logger

_log = get_logger("file_relay.qt")

_QT_APIS = ("PyQt6", "PyQt5", "PySide6")
_RELAY_FILTER_ATTR = "_fpaint_file_open_filter"
_QT_SUPPORT: dict[str, Any] | None = None
_URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def _iter_qt_api_names() -> tuple[str, ...]:
    """优先复用当前进程里已经加载的 Qt 绑定，避免混用 PyQt/PySide。"""
    preferred: list[str] = []
    for api_name in _QT_APIS:
        if api_name in sys.modules or any(module_name.startswith(f"{api_name}.") for module_name in sys.modules):
            preferred.append(api_name)
    for api_name in _QT_APIS:
        if api_name not in preferred:
            preferred.append(api_name)
    return tuple(preferred)


def load_qt_modules(*, need_network: bool = False, need_widgets: bool = False) -> tuple[Any, Any | None, Any | None]:
    """按当前绑定优先级加载 QtCore / QtNetwork / QtWidgets；未请求的模块返回 None。"""
    for api_name in _iter_qt_api_names():
        try:
            QtCore = importlib.import_module(f"{api_name}.QtCore")
            QtNetwork = importlib.import_module(f"{api_name}.QtNetwork") if need_network else None
            QtWidgets = importlib.import_module(f"{api_name}.QtWidgets") if need_widgets else None
        except ImportError:
            continue
        return QtCore, QtNetwork, QtWidgets
    raise ImportError("Qt bindings are unavailable")


def is_url(text: str) -> bool:
    return bool(_URL_SCHEME_RE.match(text or ""))


def normalize_file_paths(paths: Iterable[str | os.PathLike[str]] | None) -> list[str]:
    """统一做 expanduser + abspath + normpath + 去重；带 scheme 的 URL 原样保留。"""
    normalized: list[str] = []
    seen: set[str] = set()
    for raw_path in paths or ():
        if raw_path is None:
            continue
        try:
            path_text = os.fspath(raw_path)
        except TypeError:
            path_text = str(raw_path)
        path_text = path_text.strip()
        if not path_text:
            continue
        if is_url(path_text):
            full_path = path_text
        else:
            full_path = os.path.abspath(os.path.normpath(os.path.expanduser(path_text)))
        if full_path in seen:
            continue
        seen.add(full_path)
        normalized.append(full_path)
    return normalized


def get_initial_file_list_from_argv(argv: list[str] | None = None) -> list[str]:
    """
    从命令行参数中解析出冷启动要打开的文件 / URL。
    约定：第一个参数为程序名，遇到以 - 开头的参数视为选项，停止解析。
    """
    args = (argv if argv is not None else sys.argv)[1:]
    paths: list[str] = []
    for a in args:
        if a.startswith("-"):
            break
        paths.append(a)
    return normalize_file_paths(paths)


def _file_open_event_type(q_event: Any) -> Any:
    event_type_enum = getattr(q_event, "Type", None)
    if event_type_enum is not None:
        return getattr(event_type_enum, "FileOpen", None)
    return getattr(q_event, "FileOpen", None)


def _get_qt_support() -> dict[str, Any]:
    """懒加载 Qt 类型，避免无 GUI 场景提前导入。"""
    global _QT_SUPPORT
    if _QT_SUPPORT is not None:
        return _QT_SUPPORT

    QtCore, _, QtWidgets = load_qt_modules(need_widgets=True)
    if QtWidgets is None:
        raise ImportError("QtWidgets is unavailable")

    QObject = QtCore.QObject
    Signal = getattr(QtCore, "pyqtSignal", None) or QtCore.Signal
    file_open_type = _file_open_event_type(QtCore.QEvent)

    class QtMessenger(QObject):
        """UI 层的消息底座：message(channel, method, argument)。"""

        message = Signal(str, str, str)

        def send(self, channel: str, method: str, argument: str) -> None:
            self.message.emit(channel, method, argument)

    class FileOpenEventFilter(QObject):
        def __init__(self, relay: OpenFileRelay, parent: Any = None) -> None:
            super().__init__(parent)
            self.relay = relay

        def handle_event(self, event: Any) -> bool:
            if file_open_type is None or event.type() != file_open_type:
                return False

            local_path = ""
            url = None
            try:
                local_path = event.file() or ""
                url = event.url()
                if not local_path and url is not None and url.isLocalFile():
                    local_path = url.toLocalFile() or ""
            except Exception as exc:
                _log.debug("FileOpen event unreadable: %s", exc)

            if local_path:
                normalized = normalize_file_paths([local_path])
                if not normalized:
                    return False
                return bool(self.relay.on_open_file(normalized[0]))
            if url is None:
                return False
            self.relay.on_external_url_event(event)
            return True

        def eventFilter(self, watched: Any, event: Any) -> bool:  # type: ignore[override]
            return bool(self.handle_event(event))

    _QT_SUPPORT = {
        "QApplication": QtWidgets.QApplication,
        "messenger_cls": QtMessenger,
        "filter_cls": FileOpenEventFilter,
    }
    return _QT_SUPPORT


def create_messenger(parent: Any = None) -> Any:
    """创建 QtMessenger；UI 层连接其 message 信号接收通知。"""
    return _get_qt_support()["messenger_cls"](parent)


def ensure_file_open_aware_application(argv: list[str] | None = None, relay: OpenFileRelay | None = None) -> Any:
    """
    返回当前 QApplication，无实例时创建。
    传入 relay 时按其策略设置「最后一个窗口关闭后退出」。
    """
    support = _get_qt_support()
    QApplication = support["QApplication"]
    app = QApplication.instance()
    if app is None:
        app = QApplication(list(argv if argv is not None else sys.argv))
        _log.info("created QApplication")
    if relay is not None:
        app.setQuitOnLastWindowClosed(relay.should_terminate_after_last_window_closed())
    return app


def install_open_file_relay(app: Any, relay: OpenFileRelay) -> Any:
    """在 QApplication 上安装 FileOpen 事件过滤器；同一实例只装一次，再次调用时改指向新的 relay。"""
    event_filter = getattr(app, _RELAY_FILTER_ATTR, None)
    if event_filter is not None:
        event_filter.relay = relay
        return event_filter

    event_filter = _get_qt_support()["filter_cls"](relay, app)
    app.installEventFilter(event_filter)
    setattr(app, _RELAY_FILTER_ATTR, event_filter)
    _log.info("installed FileOpen event filter")
    return event_filter
