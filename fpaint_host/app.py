# -*- coding: utf-8 -*-
"""
fPaint 宿主程序入口：创建 QApplication、挂接打开文件中转、启动单例接收端，
UI 层挂载完成后通过 attach_ui 建立 fileOpened 通道。

用法:
    shell = HostShell(sys.argv)
    if not shell.start():
        sys.exit(0)          # 已转发给运行中的实例
    window = MainWindow()
    shell.attach_ui(window, window.on_channel_message)
"""
from __future__ import annotations

import sys
from typing import Any, Callable

from fpaint_host.config import load_config
from fpaint_host.file_relay.ipc import SingleInstanceReceiver, send_url_to_running_app
from fpaint_host.file_relay.qt_bridge import (
    create_messenger,
    ensure_file_open_aware_application,
    get_initial_file_list_from_argv,
    install_open_file_relay,
    load_qt_modules,
)
from fpaint_host.file_relay.relay import OpenFileRelay
from fpaint_host.log import get_logger

_log = get_logger("host")


class HostShell:
    """宿主外壳：持有唯一的 OpenFileRelay，并把系统事件源接到它上面。"""

    def __init__(self, argv: list[str] | None = None, config_dir: str | None = None) -> None:
        self.argv = list(argv if argv is not None else sys.argv)
        self.config = load_config(config_dir=config_dir)
        self.relay = OpenFileRelay()
        self.app: Any = None
        self.messenger: Any = None
        self._receiver: SingleInstanceReceiver | None = None

    def _forward_to_running_instance(self, items: list[str]) -> bool:
        if not items:
            return False
        app_id = self.config["app_id"]
        if not send_url_to_running_app(app_id, items[0]):
            return False
        for item in items[1:]:
            send_url_to_running_app(app_id, item)
        return True

    def start(self) -> bool:
        """
        启动宿主。返回 False 表示参数已转发给运行中的实例，本进程应退出。
        """
        self.app = ensure_file_open_aware_application(self.argv, self.relay)
        initial_items = get_initial_file_list_from_argv(self.argv)

        if self.config.get("single_instance", True):
            receiver = SingleInstanceReceiver(self.config["app_id"], self.relay)
            if not receiver.start():
                if receiver.another_instance_running and (
                    not initial_items or self._forward_to_running_instance(initial_items)
                ):
                    _log.info("instance already running, handed %d item(s) to it, exiting", len(initial_items))
                    return False
                _log.warning("single-instance receiver unavailable, continuing standalone")
            else:
                self._receiver = receiver

        install_open_file_relay(self.app, self.relay)
        if initial_items:
            self.relay.on_open_urls(initial_items)
        return True

    def attach_ui(self, window: Any = None, on_message: Callable[[str, str, str], None] | None = None) -> Any:
        """
        UI 层挂载完成时调用一次，返回 QtMessenger。
        on_message 在冲刷缓存前连接，启动早期缓存的文件也能收到。
        """
        self.messenger = create_messenger(self.app)
        if on_message is not None:
            self.messenger.message.connect(on_message)
        self.relay.on_ui_layer_ready(self.messenger, window)
        return self.messenger

    def shutdown(self) -> None:
        if self._receiver is not None:
            self._receiver.stop()
            self._receiver = None


def main(argv: list[str] | None = None) -> int:
    shell = HostShell(argv)
    if not shell.start():
        return 0

    _, _, QtWidgets = load_qt_modules(need_widgets=True)
    window = QtWidgets.QMainWindow()
    label = QtWidgets.QLabel("", window)
    window.setCentralWidget(label)
    window.resize(800, 600)

    def on_message(channel: str, method: str, argument: str) -> None:
        _log.info("UI layer received %s.%s(%s)", channel, method, argument)
        label.setText(argument)

    shell.attach_ui(window, on_message)
    window.show()
    try:
        exec_fn = getattr(shell.app, "exec", None) or shell.app.exec_
        return int(exec_fn())
    finally:
        shell.shutdown()


if __name__ == "__main__":
    sys.exit(main())
