#!/usr/bin/env python3
"""
清理模块 - 删除语言目录中不属于任何语言或命名空间的条目
"""

import os
import shutil
from typing import List

from .config import TranslateOptions, format_language_directory_name
from .logging import log_progress
from .namespace import Namespace, get_languages_directory


def _remove_entry(entry_path: str) -> bool:
    try:
        if os.path.isdir(entry_path):
            shutil.rmtree(entry_path)
        else:
            os.remove(entry_path)
        return True
    except OSError as e:
        log_progress(f"删除 {entry_path} 失败: {e}", "error")
        return False


def clean_languages_directory(options: TranslateOptions) -> bool:
    """删除既不是语言目录也不是缓存文件的条目，返回是否删除了内容"""
    languages_directory = get_languages_directory(options)
    valid_entries = {
        format_language_directory_name(language_code, options)
        for language_code in options.target_language_codes
    }
    valid_entries.add(format_language_directory_name(options.base_language_code, options))
    valid_entries.add(options.json_cache_name)

    dirty = False
    try:
        entries = sorted(os.listdir(languages_directory))
    except OSError as e:
        log_progress(f"清理语言目录失败: {e}", "error")
        return False

    for entry in entries:
        if entry in valid_entries:
            continue
        entry_path = os.path.join(languages_directory, entry)
        if _remove_entry(entry_path):
            dirty = True
            log_progress(f"已删除无效条目: {entry_path}", "verbose")

    return dirty


def clean_namespaces(options: TranslateOptions, namespaces: List[Namespace]) -> None:
    """删除目标语言目录中不对应任何命名空间文件的条目"""
    languages_directory = get_languages_directory(options)
    valid_files = {namespace.json_file_name for namespace in namespaces}

    for language_code in options.target_language_codes:
        language_directory = os.path.join(
            languages_directory, format_language_directory_name(language_code, options)
        )
        if not os.path.isdir(language_directory):
            continue

        try:
            entries = sorted(os.listdir(language_directory))
        except OSError as e:
            log_progress(f"读取语言 '{language_code}' 的目录失败: {e}", "error")
            continue

        for entry in entries:
            if entry in valid_files:
                continue
            entry_path = os.path.join(language_directory, entry)
            if _remove_entry(entry_path):
                log_progress(f"已删除无效文件: {entry_path}", "verbose")
