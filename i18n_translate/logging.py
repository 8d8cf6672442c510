#!/usr/bin/env python3
"""
日志模块 - 包含进度跟踪和日志函数
"""

import sys
import time
import logging
from datetime import datetime

from .config import IS_GITHUB_ACTIONS, LOG_FILE

VERBOSE = 15
SUCCESS = 25
logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(SUCCESS, "SUCCESS")

logger = logging.getLogger("i18n_translate")

_LEVELS = {
    "debug": logging.DEBUG,
    "verbose": VERBOSE,
    "info": logging.INFO,
    "success": SUCCESS,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(debug: bool = False, verbose: bool = False, log_file: str = LOG_FILE):
    """配置详细日志：写入日志文件，非GitHub Actions环境同时输出到控制台"""
    handlers = [logging.FileHandler(log_file, encoding='utf-8')]
    if not IS_GITHUB_ACTIONS:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    set_log_level(debug=debug, verbose=verbose)


def set_log_level(debug: bool = False, verbose: bool = False):
    """调试模式显示全部日志，详细模式额外显示 VERBOSE 级别"""
    if debug:
        logger.setLevel(logging.DEBUG)
    elif verbose:
        logger.setLevel(VERBOSE)
    else:
        logger.setLevel(logging.INFO)


def flush_logs():
    """强制刷新所有日志处理器"""
    for handler in logging.getLogger().handlers:
        handler.flush()


def close_logs():
    """关闭所有日志处理器"""
    for handler in logging.getLogger().handlers:
        if hasattr(handler, 'close'):
            handler.close()


def log_progress(message: str, level: str = "info"):
    """统一的进度日志函数，在GitHub Actions中使用特殊格式"""
    levelno = _LEVELS.get(level, logging.INFO)
    logger.log(levelno, message)

    if IS_GITHUB_ACTIONS and logger.isEnabledFor(levelno):
        timestamp = datetime.now().strftime("%H:%M:%S")
        if level == "error":
            print(f"::error::{message}")
        elif level == "warning":
            print(f"::warning::{message}")
        elif level in ("debug", "verbose"):
            print(f"::debug::{message}")
        else:
            print(f"::notice::[{timestamp}] {message}")

    sys.stdout.flush()


def log_engine(engine_name: str, message: str, level: str = "debug"):
    """带引擎前缀的日志"""
    log_progress(f"{engine_name} > {message}", level)


def log_section(title: str):
    """记录主要章节，在GitHub Actions中使用分组"""
    if IS_GITHUB_ACTIONS:
        print(f"::group::{title}")
    log_progress(f"=== {title} ===")


def log_section_end():
    """结束章节分组"""
    if IS_GITHUB_ACTIONS:
        print("::endgroup::")


def format_duration(seconds: float) -> str:
    """将耗时格式化为可读字符串"""
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}m {rest}s"


class ProgressTracker:
    """进度跟踪器：按阶段统计已处理的命名空间"""
    def __init__(self, total_namespaces: int):
        self.total_namespaces = total_namespaces
        self.current_namespace = 0
        self.stage = ""
        self.start_time = time.time()

    def start_stage(self, stage: str):
        self.stage = stage
        self.current_namespace = 0
        log_section(f"{stage} - 已用时 {self.elapsed():.1f}s")

    def start_namespace(self, namespace: str):
        self.current_namespace += 1
        log_progress(f"  命名空间 {self.current_namespace}/{self.total_namespaces}: {namespace}", "verbose")

    def finish_stage(self):
        log_section_end()

    def elapsed(self) -> float:
        return time.time() - self.start_time
