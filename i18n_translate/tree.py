#!/usr/bin/env python3
"""
翻译树模块 - 嵌套字符串字典的通用遍历与合并函数

所有函数都不修改入参（deep_merge 除外，它按约定原地合并）。
"""

import copy
from typing import Any, Dict

TranslationTree = Dict[str, Any]


def flatten_tree(tree: TranslationTree, parent_key: str = '') -> Dict[str, str]:
    """深度优先展开嵌套字典，键用 '.' 连接，非字符串叶子转为字符串"""
    result: Dict[str, str] = {}

    for key, value in tree.items():
        new_key = f"{parent_key}.{key}" if parent_key else key

        if isinstance(value, dict):
            result.update(flatten_tree(value, new_key))
        else:
            result[new_key] = str(value)

    return result


def unflatten_tree(flat_translations: Dict[str, Any]) -> TranslationTree:
    """flatten_tree 的逆操作，共享前缀的键合并到同一子树"""
    result: TranslationTree = {}

    for flat_key, value in flat_translations.items():
        parts = flat_key.split('.')
        current = result

        for part in parts[:-1]:
            # 标量与对象冲突时，保留更深的结构
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        last = parts[-1]
        if isinstance(current.get(last), dict) and not isinstance(value, dict):
            continue
        current[last] = value

    return result


def deep_merge(target: TranslationTree, source: TranslationTree) -> TranslationTree:
    """将 source 原地合并进 target，双方都是子树时递归，否则以 source 为准"""
    for key, value in source.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            deep_merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value) if isinstance(value, dict) else value
    return target


def prune_tree(base: TranslationTree, candidate: Any) -> Any:
    """返回 candidate 中路径同样存在于 base 的部分，用于清理已废弃的目标语言键"""
    if not isinstance(base, dict) or not isinstance(candidate, dict):
        return candidate

    pruned: TranslationTree = {}
    for key, base_value in base.items():
        if key in candidate:
            pruned[key] = prune_tree(base_value, candidate[key])
    return pruned


def clear_nulls(result: Dict[str, Any]) -> Dict[str, Any]:
    """递归移除 None 值以及因此变空的子树"""
    cleaned: Dict[str, Any] = {}
    for key, value in result.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = clear_nulls(value)
            if not value:
                continue
        cleaned[key] = value
    return cleaned


def count_translated_keys(result: Dict[str, Any]) -> int:
    """统计结果中的字符串叶子数量（跨所有语言）"""
    count = 0
    for value in result.values():
        if isinstance(value, dict):
            count += count_translated_keys(value)
        elif isinstance(value, str):
            count += 1
    return count
