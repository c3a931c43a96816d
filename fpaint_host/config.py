# -*- coding: utf-8 -*-
"""
宿主程序配置：从独立的 fpaint_host.json 读取/写入。
开发态与主程序同目录，打包态使用用户可写目录（或由调用方指定 config_dir）。
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any

CONFIG_FILENAME = "fpaint_host.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "app_id": "com.vteam.fpaint",
    "single_instance": True,
}


def _user_config_dir() -> str:
    """打包后使用用户可写目录，避免写入 macOS app bundle。"""
    if sys.platform == "win32":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or os.path.join(os.path.expanduser("~"), "AppData", "Roaming")
        )
        return os.path.join(base, "fPaint")
    if sys.platform == "darwin":
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support", "fPaint")
    return os.path.join(
        os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config"),
        "fPaint",
    )


def _default_config_dir() -> str:
    if getattr(sys, "frozen", False):
        return _user_config_dir()
    return os.path.dirname(os.path.abspath(sys.argv[0] if sys.argv else "."))


def get_config_path(config_dir: str | None = None) -> str:
    """返回 fpaint_host.json 的完整路径。config_dir 为空时使用默认目录。"""
    base = config_dir if config_dir else _default_config_dir()
    return os.path.join(base, CONFIG_FILENAME)


def _resolve_path(config_path: str | None, config_dir: str | None) -> str:
    if config_path:
        if os.path.isdir(config_path):
            return os.path.join(config_path, CONFIG_FILENAME)
        return config_path
    return get_config_path(config_dir)


def load_config(config_path: str | None = None, config_dir: str | None = None) -> dict[str, Any]:
    """
    加载宿主配置。文件缺失或内容无效时返回默认值；未知键原样保留。
    返回格式: {"app_id": str, "single_instance": bool, ...}
    """
    path = _resolve_path(config_path, config_dir)
    config = dict(DEFAULT_CONFIG)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        # ValueError 覆盖 JSONDecodeError 与非 UTF-8 内容的 UnicodeDecodeError
        return config
    if not isinstance(data, dict):
        return config

    config.update(data)
    app_id = config.get("app_id")
    if not isinstance(app_id, str) or not app_id.strip():
        config["app_id"] = DEFAULT_CONFIG["app_id"]
    else:
        config["app_id"] = app_id.strip()
    if not isinstance(config.get("single_instance"), bool):
        config["single_instance"] = DEFAULT_CONFIG["single_instance"]
    return config


def save_config(config: dict[str, Any], config_path: str | None = None, config_dir: str | None = None) -> bool:
    """保存宿主配置，成功返回 True。"""
    path = _resolve_path(config_path, config_dir)
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, ensure_ascii=False, indent=2)
        return True
    except OSError:
        return False
