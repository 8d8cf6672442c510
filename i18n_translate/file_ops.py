#!/usr/bin/env python3
"""
文件操作模块 - 包含JSON文件加载、保存和目录扫描函数
"""

import os
import json
from pathlib import Path
from typing import Any, List

from .logging import log_progress


def read_json_file(file_path: str) -> Any:
    """读取并解析JSON文件，文件不存在或格式错误时直接抛出异常"""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_json_file(file_path: str, default: Any = None) -> Any:
    """加载JSON文件，失败时记录警告并返回默认值"""
    try:
        return read_json_file(file_path)
    except FileNotFoundError:
        log_progress(f"文件不存在: {file_path}，使用空内容初始化", "warning")
        return default
    except json.JSONDecodeError as e:
        log_progress(f"JSON解析错误 {file_path}: {e}", "error")
        return default


def save_json_file(file_path: str, data: Any, indent: int = 4) -> bool:
    """保存JSON文件"""
    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=indent)
        return True
    except Exception as e:
        log_progress(f"保存文件失败 {file_path}: {e}", "error")
        return False


def list_json_files(directory: str) -> List[str]:
    """列出目录下所有 .json 文件名（按名称排序）"""
    return sorted(
        entry.name for entry in Path(directory).iterdir()
        if entry.is_file() and entry.name.endswith('.json')
    )


def ensure_directory(directory: str) -> bool:
    """确保目录存在，创建失败只记录错误"""
    if os.path.isdir(directory):
        return True
    try:
        os.makedirs(directory, exist_ok=True)
        log_progress(f"为目标语言创建目录: {directory}", "verbose")
        return True
    except OSError as e:
        log_progress(f"创建目录失败 {directory}: {e}", "error")
        return False
