# -*- coding: utf-8 -*-
"""fpaint_host.log – diagnostics for the native host shell (stderr + optional file).

Usage::
    from fpaint_host.log import get_logger
    log = get_logger("file_relay")
    log.info("fileOpened sent: %s", path)
"""
from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

APP_NAME = "fPaint"


def _log_dir() -> Path:
    """按平台返回用户可写的日志目录。"""
    if sys.platform == "win32":
        base = (
            os.environ.get("LOCALAPPDATA")
            or os.environ.get("APPDATA")
            or str(Path.home() / "AppData" / "Local")
        )
        return Path(base) / APP_NAME / "logs"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Logs" / APP_NAME
    return Path(os.environ.get("XDG_STATE_HOME") or (Path.home() / ".local" / "state")) / APP_NAME


def _default_log_file() -> str | None:
    """打包后的窗口程序没有终端，默认写日志文件；开发态只写 stderr。"""
    override = os.environ.get("FPAINT_LOG_FILE", "").strip()
    if override:
        return override
    if not getattr(sys, "frozen", False):
        return None
    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None
    return str(log_dir / "host.log")


LOG_FILE: str | None = _default_log_file()
LOG_LEVEL: str = os.environ.get("FPAINT_LOG_LEVEL", "DEBUG").upper()  # DEBUG | INFO | WARNING | ERROR

_LEVEL_ORDER = {"DEBUG": 0, "INFO": 1, "WARNING": 2, "ERROR": 3}


def _level_ok(level: str) -> bool:
    return _LEVEL_ORDER.get(level.upper(), 0) >= _LEVEL_ORDER.get(LOG_LEVEL.upper(), 0)


def _format(level: str, name: str, msg: str, *args: Any) -> str:
    try:
        text = msg % args if args else msg
    except (TypeError, ValueError):
        text = " ".join([msg, *(repr(a) for a in args)])
    return " ".join([datetime.now().strftime("%Y-%m-%d %H:%M:%S"), level, name, text])


class _Logger:
    def __init__(self, name: str) -> None:
        self._name = name
        self._file: TextIO | None = None
        if LOG_FILE:
            try:
                self._file = open(LOG_FILE, "a", encoding="utf-8")  # noqa: SIM115
            except OSError:
                pass

    @property
    def name(self) -> str:
        return self._name

    def _write(self, level: str, msg: str, *args: Any) -> None:
        if not _level_ok(level):
            return
        line = _format(level, self._name, msg, *args) + "\n"
        if self._file:
            try:
                self._file.write(line)
                self._file.flush()
            except OSError:
                pass
        err = sys.stderr
        if err is None or not hasattr(err, "write"):
            return
        try:
            err.write(line)
            err.flush()
        except OSError:
            pass

    def debug(self, msg: str, *args: Any) -> None:
        self._write("DEBUG", msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self._write("INFO", msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self._write("WARNING", msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self._write("ERROR", msg, *args)


_LOGGERS: dict[str, _Logger] = {}


def get_logger(name: str) -> _Logger:
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = _LOGGERS[name] = _Logger(name)
    return logger


def get_log_file_path() -> str | None:
    return LOG_FILE
