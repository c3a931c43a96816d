# -*- coding: utf-8 -*-
"""
打开文件中转 (file_relay)

- 核心：OpenFileRelay 缓存最多一条「打开文件 / URL」通知，UI 层通道就绪后经 fileOpened 方法转发。
- 冷启动：命令行参数传入的文件列表。
- macOS：QFileOpenEvent 经事件过滤器转交。
- 热启动：第二个进程通过单例 IPC 把 URL 发给首进程。

Qt 相关名称按需懒加载，纯逻辑部分无需 Qt 即可导入。
"""

from .config import CHANNEL_NAME, METHOD_FILE_OPENED, WINDOW_TITLE
from .relay import (
    MethodChannel,
    OpenFileRelay,
    extract_url_argument,
)
from .qt_bridge import (
    create_messenger,
    ensure_file_open_aware_application,
    get_initial_file_list_from_argv,
    install_open_file_relay,
    normalize_file_paths,
)
from .ipc import (
    send_url_to_running_app,
    SingleInstanceReceiver,
)

__all__ = [
    "CHANNEL_NAME",
    "METHOD_FILE_OPENED",
    "WINDOW_TITLE",
    "MethodChannel",
    "OpenFileRelay",
    "extract_url_argument",
    "create_messenger",
    "ensure_file_open_aware_application",
    "get_initial_file_list_from_argv",
    "install_open_file_relay",
    "normalize_file_paths",
    "send_url_to_running_app",
    "SingleInstanceReceiver",
]
