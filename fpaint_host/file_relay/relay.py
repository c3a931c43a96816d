# -*- coding: utf-8 -*-
"""
「打开文件」中转：把系统发来的打开文件 / URL 通知转发给 UI 层。

- UI 层的消息通道建立之前，最多缓存一条通知（后到覆盖先到，不排队）；
- 通道建立（on_ui_layer_ready）时冲刷缓存；
- 所有入口对宿主都视为成功，失败只记日志。

状态保存在 OpenFileRelay 实例上，由宿主程序持有一份，不使用全局变量。
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from fpaint_host.file_relay.config import CHANNEL_NAME, IPC_URL_KEY, METHOD_FILE_OPENED, WINDOW_TITLE
from fpaint_host.log import get_logger

_log = get_logger("file_relay")


class Messenger(Protocol):
    """UI 层的消息底座：按通道名投递一条单向消息。"""

    def send(self, channel: str, method: str, argument: str) -> None: ...


class TitledWindow(Protocol):
    def setWindowTitle(self, title: str) -> None: ...  # noqa: N802 (Qt naming)


class MethodChannel:
    """绑定到固定通道名的单向调用，发送后不读取任何回执。"""

    def __init__(self, name: str, messenger: Messenger) -> None:
        self.name = name
        self._messenger = messenger

    def invoke_method(self, method: str, argument: str) -> None:
        try:
            self._messenger.send(self.name, method, argument)
        except Exception as exc:
            _log.warning("channel %s: %s(%s) failed: %s", self.name, method, argument, exc)


def _text_or_none(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def extract_url_argument(raw_event: Any) -> str | None:
    """
    从外部 URL 事件中取出唯一的字符串参数，取不到时返回 None。

    支持：
      - str：直接使用；
      - Mapping：IPC 载荷 {"url": "..."}；
      - 带 url() 的对象（QFileOpenEvent），url() 可返回 QUrl 或 str；
      - 带 file() 的对象。
    """
    if raw_event is None:
        return None
    if isinstance(raw_event, str):
        return _text_or_none(raw_event)
    if isinstance(raw_event, Mapping):
        return _text_or_none(raw_event.get(IPC_URL_KEY))

    try:
        if hasattr(raw_event, "url"):
            url = raw_event.url()
            if url is not None and hasattr(url, "toString"):
                url = url.toString() if not hasattr(url, "isValid") or url.isValid() else None
            text = _text_or_none(url)
            if text:
                return text
        if hasattr(raw_event, "file"):
            return _text_or_none(raw_event.file())
    except Exception as exc:
        _log.debug("url event extraction failed: %s", exc)
    return None


class OpenFileRelay:
    """
    打开文件通知的中转站。

    Attributes:
        pending_path: 尚未送达 UI 层的最后一条路径或 URL，没有则为 None。
        channel: 与 UI 层的消息通道，on_ui_layer_ready 之前为 None。
    """

    def __init__(self) -> None:
        self.pending_path: str | None = None
        self.channel: MethodChannel | None = None

    def _deliver(self, path: str) -> None:
        if self.channel is None:
            return
        self.channel.invoke_method(METHOD_FILE_OPENED, path)
        self.pending_path = None

    def on_open_file(self, path: str) -> bool:
        """系统请求打开单个文件。总是返回 True（已处理）。"""
        _log.info("openFile called with: %s", path)
        self.pending_path = path
        if self.channel is not None:
            _log.debug("sending file to UI layer immediately")
            self._deliver(path)
        else:
            _log.warning("channel not ready, storing file for later")
        return True

    def on_open_urls(self, urls: Iterable[str]) -> None:
        """系统请求打开一个或多个 URL/路径；通道未就绪时只保留最后一条。"""
        for url in urls:
            _log.info("open url: %s", url)
            self.pending_path = url
            if self.channel is not None:
                self._deliver(url)
        if self.pending_path is not None:
            _log.warning("channel not ready, buffered: %s", self.pending_path)

    def on_ui_layer_ready(self, messenger: Messenger, window: TitledWindow | None = None) -> None:
        """UI 层就绪：建立通道、设置窗口标题，并冲刷缓存的通知。"""
        self.channel = MethodChannel(CHANNEL_NAME, messenger)
        _log.info("channel %s bound", CHANNEL_NAME)
        if window is not None:
            window.setWindowTitle(WINDOW_TITLE)

        if self.pending_path is not None:
            _log.debug("sending pending file to UI layer: %s", self.pending_path)
            self._deliver(self.pending_path)
        else:
            _log.debug("no pending file found at launch")

    def on_external_url_event(self, raw_event: Any) -> None:
        """
        URL scheme 等外部事件。取不到参数时静默丢弃；
        通道未就绪时与 on_open_file 一样缓存，避免启动早期丢失。
        """
        url = extract_url_argument(raw_event)
        if url is None:
            _log.debug("url event without a usable argument, ignored")
            return
        _log.info("url event: %s", url)
        self.pending_path = url
        if self.channel is not None:
            self._deliver(url)
        else:
            _log.warning("channel not ready, storing url for later")

    def should_terminate_after_last_window_closed(self) -> bool:
        return True

    def supports_secure_restorable_state(self) -> bool:
        return True
