# -*- coding: utf-8 -*-
"""
单例转发：程序已在运行时，再次通过 URL scheme / 「打开方式」启动的第二个进程
把参数发给首进程后退出，首进程按外部 URL 事件交给 OpenFileRelay。
跨平台：Windows（Named Pipe）、macOS / Linux（Unix domain socket），均通过 Qt QLocalServer/QLocalSocket。
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any

from fpaint_host.file_relay.config import IPC_ENCODING, IPC_URL_KEY
from fpaint_host.file_relay.qt_bridge import load_qt_modules
from fpaint_host.file_relay.relay import OpenFileRelay
from fpaint_host.log import get_logger

_log = get_logger("file_relay.ipc")


def server_name(app_id: str) -> str:
    """生成当前用户下唯一的 IPC 名称。"""
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in (app_id or ""))
    if sys.platform == "win32":
        uid = os.environ.get("USERNAME", "default").strip() or "default"
    else:
        try:
            uid = str(os.getuid())
        except (AttributeError, OSError):
            uid = os.environ.get("USER", os.environ.get("USERNAME", "default"))
    name = f"fpaint_open_{safe}_{uid}"
    if sys.platform == "win32":
        # Windows Named Pipe 名称长度上限 256
        name = name[:200].replace("\\", "_")
    return name


def encode_payload(url: str) -> bytes:
    return json.dumps({IPC_URL_KEY: url}, ensure_ascii=False).encode(IPC_ENCODING)


def decode_payload(data: bytes) -> dict[str, Any] | None:
    """解析一条 IPC 载荷；格式不对返回 None。"""
    try:
        obj = json.loads(data.decode(IPC_ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return obj if isinstance(obj, dict) else None


def _unconnected_state(QLocalSocket: Any) -> Any:
    state_enum = getattr(QLocalSocket, "LocalSocketState", None)
    if state_enum is not None:
        return getattr(state_enum, "UnconnectedState", 0)
    return getattr(QLocalSocket, "UnconnectedState", 0)


def _can_connect_to_server(name: str, timeout_ms: int = 300) -> bool:
    """探测本地服务是否真的在监听，用于区分活跃实例和残留 socket。"""
    _, QtNetwork, _ = load_qt_modules(need_network=True)
    if QtNetwork is None:
        return False
    sock = QtNetwork.QLocalSocket()
    try:
        sock.connectToServer(name)
        return bool(sock.waitForConnected(timeout_ms))
    finally:
        sock.abort()


def send_url_to_running_app(app_id: str, url: str, timeout_ms: int = 3000) -> bool:
    """
    把一个路径 / URL 发给已在运行的实例。
    成功返回 True，调用方应随后退出；返回 False 表示没有运行中的实例。
    """
    if not url:
        return False
    _, QtNetwork, _ = load_qt_modules(need_network=True)
    if QtNetwork is None:
        return False
    QLocalSocket = QtNetwork.QLocalSocket
    sock = QLocalSocket()
    sock.connectToServer(server_name(app_id))
    if not sock.waitForConnected(timeout_ms):
        return False
    sock.write(encode_payload(url))
    sock.flush()
    sock.waitForBytesWritten(2000)
    sock.disconnectFromServer()
    if sock.state() != _unconnected_state(QLocalSocket):
        sock.abort()
    _log.info("forwarded to running instance: %s", url)
    return True


class SingleInstanceReceiver:
    """
    单例接收端：仅在首进程内启动。
    其它进程通过 send_url_to_running_app 发来的载荷交给 relay.on_external_url_event。
    """

    def __init__(self, app_id: str, relay: OpenFileRelay):
        self._app_id = app_id
        self._relay = relay
        self._server = None
        self._name = server_name(app_id)
        self.another_instance_running = False

    @property
    def name(self) -> str:
        return self._name

    def start(self) -> bool:
        """监听本地 socket。名称已被活跃实例占用时返回 False（本进程应为第二实例）。"""
        _, QtNetwork, _ = load_qt_modules(need_network=True)
        if QtNetwork is None:
            _log.warning("receiver start failed: QtNetwork is unavailable")
            return False
        self.another_instance_running = False
        QLocalServer = QtNetwork.QLocalServer
        self._server = QLocalServer()
        if not self._server.listen(self._name):
            error_text = self._server.errorString()
            if _can_connect_to_server(self._name):
                self.another_instance_running = True
                _log.info("receiver not started, another instance is listening; name=%s", self._name)
                self._server = None
                return False
            removed = bool(QLocalServer.removeServer(self._name))
            _log.warning(
                "receiver listen failed with stale socket; name=%s error=%s removed=%s",
                self._name,
                error_text,
                removed,
            )
            if not (removed and self._server.listen(self._name)):
                _log.warning("receiver listen failed; name=%s error=%s", self._name, error_text)
                self._server = None
                return False
        _log.info("receiver listening; name=%s", self._name)
        self._server.newConnection.connect(self._on_connection)
        return True

    def handle_payload(self, data: bytes) -> bool:
        payload = decode_payload(data)
        if payload is None:
            _log.warning("receiver dropped malformed payload (%d bytes)", len(data))
            return False
        self._relay.on_external_url_event(payload)
        return True

    def _on_connection(self) -> None:
        if not self._server:
            return
        conn = self._server.nextPendingConnection()
        if not conn:
            return
        buffer = bytearray()
        done = []

        def read_available() -> None:
            buffer.extend(bytes(conn.readAll().data()))

        def dispatch() -> None:
            # 发送端写完即断开，整条载荷以断开为界
            if done:
                return
            done.append(1)
            read_available()
            try:
                if buffer:
                    self.handle_payload(bytes(buffer))
            finally:
                conn.deleteLater()

        conn.readyRead.connect(read_available)
        conn.disconnected.connect(dispatch)
        read_available()
        if conn.state() == _unconnected_state(type(conn)):
            dispatch()

    def stop(self) -> None:
        if not self._server:
            return
        self._server.close()
        self._server = None
        _, QtNetwork, _ = load_qt_modules(need_network=True)
        if QtNetwork is None:
            return
        removed = bool(QtNetwork.QLocalServer.removeServer(self._name))
        _log.info("receiver stopped; name=%s removed=%s", self._name, removed)
