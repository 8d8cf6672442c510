#!/usr/bin/env python3
"""
翻译缓存模块 - 保存上次运行产出的翻译快照，检测基础语言文本的变化

缓存结构：
{
    "命名空间文件名": {
        ...与基础语言树相同的路径结构...,
        "叶子键": {"语言代码": "该语言上次的值", ...}
    }
}
叶子中基础语言代码对应的值就是下次运行检测变化时比对的快照。
"""

import os
from typing import Any, Dict, List, Optional

from .config import TranslateOptions
from .file_ops import load_json_file, save_json_file
from .logging import log_progress
from .namespace import Namespace
from .tree import TranslationTree


def sync_cache_tree(cache: Dict[str, Any], base_translations: TranslationTree,
                    target_translations: Dict[str, Any], base_language_code: str,
                    write_namespace_values: bool) -> Dict[str, Any]:
    """按基础语言树对齐缓存子树，返回新的缓存子树

    target_translations: {语言代码: 该层级的目标语言子树}
    write_namespace_values 为 False 时保留已有缓存值，只为缺失项补空字符串；
    为 True 时用当前内存中的值覆盖全部叶子。
    """
    for cache_key in cache:
        if cache_key not in base_translations:
            log_progress(f"缓存: 移除未知的基础路径键 \"{cache_key}\"", "debug")

    allowed_languages = {base_language_code, *target_translations.keys()}
    synced: Dict[str, Any] = {}

    for base_key, base_value in base_translations.items():
        cache_value = cache.get(base_key)

        if isinstance(base_value, dict):
            deeper = {}
            for language_code, translations in target_translations.items():
                sub_tree = translations.get(base_key) if isinstance(translations, dict) else None
                deeper[language_code] = sub_tree if isinstance(sub_tree, dict) else {}

            synced[base_key] = sync_cache_tree(
                cache_value if isinstance(cache_value, dict) else {},
                base_value, deeper, base_language_code, write_namespace_values
            )
            continue

        leaf = dict(cache_value) if isinstance(cache_value, dict) else {}

        for language_code in list(leaf):
            if language_code not in allowed_languages:
                del leaf[language_code]
                log_progress(f"缓存: 移除 \"{base_key}\" 中的未知语言代码 \"{language_code}\"", "debug")

        if write_namespace_values:
            leaf[base_language_code] = base_value
        else:
            leaf[base_language_code] = leaf.get(base_language_code) or ''

        for language_code, translations in target_translations.items():
            if write_namespace_values:
                value = translations.get(base_key) if isinstance(translations, dict) else None
                leaf[language_code] = value if isinstance(value, str) else ''
            else:
                leaf[language_code] = leaf.get(language_code) or ''

        synced[base_key] = leaf

    return synced


def diff_base_translations(cache: Any, base_translations: TranslationTree,
                           base_language_code: str) -> Optional[TranslationTree]:
    """返回当前值与缓存快照不一致的基础语言条目，全部一致时返回 None"""
    if not isinstance(cache, dict):
        cache = {}

    diff: TranslationTree = {}
    for key, value in base_translations.items():
        if isinstance(value, dict):
            result = diff_base_translations(cache.get(key), value, base_language_code)
            if result:
                diff[key] = result
            continue

        leaf = cache.get(key)
        cached_value = leaf.get(base_language_code) if isinstance(leaf, dict) else None
        if value == cached_value:
            continue

        diff[key] = value

    if not diff:
        return None
    return diff


def lookup_cached_translations(language_code: str, keys_tree: Any, cache: Any) -> Any:
    """按缺失键结构查找缓存值，找不到的位置返回 None"""
    if not isinstance(cache, dict):
        return None

    if isinstance(keys_tree, dict):
        return {
            key: lookup_cached_translations(language_code, value, cache.get(key))
            for key, value in keys_tree.items()
        }

    cached_translation = cache.get(language_code)
    return cached_translation if cached_translation else None


class TranslationCacheManager:
    """缓存管理器，是缓存文件的唯一写入者"""

    def __init__(self, cache_path: str, content: Dict[str, Any],
                 base_language_code: str, target_language_codes: List[str]):
        self.cache_path = cache_path
        self.cache = content
        self.base_language_code = base_language_code
        self.target_language_codes = list(target_language_codes)

    def clean_cache(self, namespaces: List[Namespace]) -> bool:
        """移除已不存在的命名空间文件对应的缓存，返回是否有移除"""
        dirty = False
        namespace_files = {namespace.json_file_name for namespace in namespaces}

        for cached_file in list(self.cache):
            if cached_file not in namespace_files:
                log_progress(f"命名空间文件 \"{cached_file}\" 不存在，从缓存中清除", "warning")
                del self.cache[cached_file]
                dirty = True

        return dirty

    def sync_cache_with_namespaces(self, namespaces: List[Namespace], write_namespace_values: bool) -> None:
        """使缓存结构与所有命名空间的基础语言树一致

        翻译前以 False 调用修复结构且保留历史值；翻译成功后以 True 调用，
        将当前内容提交为下次运行的比对基准。
        """
        for namespace in namespaces:
            targets = {}
            for language_code in self.target_language_codes:
                target_language = namespace.get_target_language(language_code)
                targets[language_code] = target_language.translations if target_language else {}

            self.cache[namespace.json_file_name] = sync_cache_tree(
                self.cache.get(namespace.json_file_name) or {},
                namespace.base_language_translations,
                targets,
                self.base_language_code,
                write_namespace_values
            )

    def get_base_language_translation_differences(self, namespace: Namespace) -> Optional[TranslationTree]:
        """检测基础语言文本的变化，命名空间没有缓存时返回全部基础语言条目"""
        file_cache = self.cache.get(namespace.json_file_name)
        if not file_cache:
            return namespace.base_language_translations or None

        return diff_base_translations(file_cache, namespace.base_language_translations, self.base_language_code)

    def get_cached_translations(self, namespace_file: str, language_code: str, keys_tree: TranslationTree) -> Any:
        return lookup_cached_translations(language_code, keys_tree, self.cache.get(namespace_file))

    def write(self) -> bool:
        """将完整缓存写入文件"""
        if save_json_file(self.cache_path, self.cache, indent=4):
            log_progress("翻译缓存写入成功", "verbose")
            return True
        return False


def get_cache_path(options: TranslateOptions) -> str:
    return os.path.join(os.path.abspath(options.languages_directory_path), options.json_cache_name)


def read_translations_cache(options: TranslateOptions) -> TranslationCacheManager:
    """读取缓存文件，文件缺失或无法解析时退化为空缓存"""
    cache_path = get_cache_path(options)
    content = load_json_file(cache_path, default=None)

    if not isinstance(content, dict):
        if content is not None:
            log_progress(f"缓存文件 \"{cache_path}\" 不是JSON对象，使用空缓存", "warning")
        content = {}

    return TranslationCacheManager(
        cache_path, content, options.base_language_code, options.target_language_codes
    )
