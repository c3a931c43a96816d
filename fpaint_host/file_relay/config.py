# -*- coding: utf-8 -*-
"""file_relay 常量：与 UI 层约定的通道名、方法名和窗口标题。"""

CHANNEL_NAME = "com.vteam.fpaint/file"
METHOD_FILE_OPENED = "fileOpened"
WINDOW_TITLE = "fPaint"

# IPC：第二实例发送一行 JSON：{"url": "..."}，UTF-8
IPC_ENCODING = "utf-8"
IPC_URL_KEY = "url"
