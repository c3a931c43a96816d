# -*- coding: utf-8 -*-
"""
fpaint_host：fPaint 桌面程序的宿主外壳，负责把系统「打开文件 / URL」通知转交给 UI 层。

用法:
    from fpaint_host import HostShell, OpenFileRelay
    from fpaint_host.log import get_logger
"""

__version__ = "1.0.0"

from fpaint_host.app import HostShell, main
from fpaint_host.config import load_config, save_config
from fpaint_host.file_relay import OpenFileRelay

__all__ = [
    "HostShell",
    "OpenFileRelay",
    "load_config",
    "main",
    "save_config",
]
