#!/usr/bin/env python3
"""
命名空间模块 - 加载基础语言文件及其目标语言对应文件，计算缺失翻译并写回
"""

import os
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import TranslateOptions, format_language_directory_name
from .errors import NamespaceValidationError
from .file_ops import read_json_file, save_json_file, list_json_files, ensure_directory
from .logging import log_progress
from .tree import TranslationTree, deep_merge, prune_tree


@dataclass
class TargetLanguage:
    """单个目标语言的翻译内容，dirty 表示本次运行中内容被修改过"""
    language_code: str
    translations: TranslationTree
    dirty: bool = False


@dataclass
class Namespace:
    """一个基础语言JSON文件及其各目标语言版本"""
    json_file_name: str
    base_language_translations: TranslationTree
    target_languages: List[TargetLanguage] = field(default_factory=list)

    def get_target_language(self, language_code: str) -> Optional[TargetLanguage]:
        for target_language in self.target_languages:
            if target_language.language_code == language_code:
                return target_language
        return None


@dataclass
class MissingTranslations:
    """缺失翻译请求

    base_language_translations: 至少一个目标语言缺失的基础语言条目
    target_language_translations_keys: 每种语言缺失的键，叶子为空字符串占位（仅用于生成结构）
    """
    base_language_translations: TranslationTree = field(default_factory=dict)
    target_language_translations_keys: Dict[str, TranslationTree] = field(default_factory=dict)


def validate_translation_structure(content: Any, path: str = '') -> None:
    """校验翻译内容：只允许嵌套对象和非空字符串，键中不能包含 '.'"""
    if not isinstance(content, dict):
        raise NamespaceValidationError(
            "翻译内容必须是由字符串值或嵌套对象组成的对象，不允许使用数组"
        )

    for key, value in content.items():
        full_key = f"{path}.{key}" if path else key
        if '.' in key:
            raise NamespaceValidationError(f"无效的键 '{full_key}'：键中不能包含 '.'")

        if isinstance(value, dict):
            validate_translation_structure(value, full_key)
        elif not isinstance(value, str):
            raise NamespaceValidationError(f"键 '{full_key}' 的值无效：只允许字符串")
        elif not value.strip():
            raise NamespaceValidationError(f"键 '{full_key}' 的值无效：不能是空字符串")


def load_namespace(json_file_name: str, base_tree: TranslationTree,
                   target_language_codes: List[str],
                   on_disk: Dict[str, Any]) -> Namespace:
    """创建命名空间，目标语言内容会按基础语言结构裁剪（移除已不存在的键）"""
    namespace = Namespace(json_file_name=json_file_name, base_language_translations=base_tree)

    for language_code in target_language_codes:
        content = on_disk.get(language_code) or {}
        namespace.target_languages.append(TargetLanguage(
            language_code=language_code,
            translations=prune_tree(base_tree, content),
        ))

    return namespace


def get_languages_directory(options: TranslateOptions) -> str:
    return os.path.abspath(options.languages_directory_path)


def get_language_directory(language_code: str, options: TranslateOptions) -> str:
    return os.path.join(
        get_languages_directory(options),
        format_language_directory_name(language_code, options)
    )


def _read_base_file(file_path: str) -> TranslationTree:
    try:
        content = read_json_file(file_path)
    except json.JSONDecodeError as e:
        raise NamespaceValidationError(f"文件不是有效的JSON: {e}") from e

    validate_translation_structure(content)
    return content


def _read_target_file(file_path: str, display_name: str) -> Any:
    try:
        content = read_json_file(file_path)
    except FileNotFoundError:
        log_progress(f"\"{display_name}\" 不存在，使用空JSON初始化", "warning")
        return {}
    except json.JSONDecodeError as e:
        log_progress(f"\"{display_name}\" 不是有效的JSON", "warning")
        raise NamespaceValidationError(f"\"{display_name}\" 不是有效的JSON: {e}") from e

    if not isinstance(content, dict):
        raise NamespaceValidationError(f"\"{display_name}\" 顶层必须是JSON对象")
    return content


def read_translations_namespaces(options: TranslateOptions) -> List[Namespace]:
    """读取基础语言目录下的全部命名空间及其目标语言文件

    任一基础语言文件无效都会中止运行，因为部分加载的命名空间会让缓存差异失去意义。
    """
    base_directory = get_language_directory(options.base_language_code, options)

    base_trees: List[Tuple[str, TranslationTree]] = []
    for file_name in list_json_files(base_directory):
        file_path = os.path.join(base_directory, file_name)
        try:
            base_trees.append((file_name, _read_base_file(file_path)))
        except NamespaceValidationError as e:
            log_progress(f"命名空间 \"{file_path}\" 无效: {e}", "error")
            raise

    on_disk: Dict[str, Dict[str, Any]] = {file_name: {} for file_name, _ in base_trees}

    for language_code in options.target_language_codes:
        target_directory = get_language_directory(language_code, options)
        ensure_directory(target_directory)

        for file_name, _ in base_trees:
            display_name = f"{language_code}/{file_name}"
            try:
                on_disk[file_name][language_code] = _read_target_file(
                    os.path.join(target_directory, file_name), display_name
                )
            except NamespaceValidationError:
                log_progress(f"读取 \"{display_name}\" 失败", "error")
                raise

    return [
        load_namespace(file_name, base_tree, options.target_language_codes, on_disk[file_name])
        for file_name, base_tree in base_trees
    ]


def collect_missing_translations(base_translations: TranslationTree,
                                 target_translations: Dict[str, Any]) -> Optional[MissingTranslations]:
    """同步遍历基础语言树和各目标语言树，收集缺失（不存在或为空）的键

    target_translations: {语言代码: 该层级的目标语言子树}
    """
    missing = MissingTranslations()

    def language_container(language_code: str) -> TranslationTree:
        return missing.target_language_translations_keys.setdefault(language_code, {})

    for key, value in base_translations.items():
        if isinstance(value, dict):
            deeper = {}
            for language_code, translations in target_translations.items():
                sub_tree = translations.get(key) if isinstance(translations, dict) else None
                deeper[language_code] = sub_tree if isinstance(sub_tree, dict) else {}

            result = collect_missing_translations(value, deeper)
            if result:
                missing.base_language_translations[key] = result.base_language_translations
                for language_code, keys in result.target_language_translations_keys.items():
                    language_container(language_code)[key] = keys
            continue

        found_missed = False
        for language_code, translations in target_translations.items():
            # 空字符串与不存在同等对待
            existing = translations.get(key) if isinstance(translations, dict) else None
            if not isinstance(existing, str) or not existing:
                found_missed = True
                language_container(language_code)[key] = ''

        if found_missed:
            missing.base_language_translations[key] = value

    if not missing.base_language_translations:
        return None
    return missing


def get_missing_translations(namespace: Namespace) -> Optional[MissingTranslations]:
    """计算命名空间的缺失翻译，没有缺失时返回 None"""
    return collect_missing_translations(
        namespace.base_language_translations,
        {t.language_code: t.translations for t in namespace.target_languages}
    )


def apply_engine_translations(namespace: Namespace, engine_translations: Dict[str, TranslationTree]) -> None:
    """将引擎结果合并进对应目标语言并标记为 dirty，结果中未出现的语言保持不变"""
    for language_code, translations in engine_translations.items():
        target_language = namespace.get_target_language(language_code)
        if target_language is None:
            log_progress(f"忽略未知语言代码 \"{language_code}\" 的翻译结果: {namespace.json_file_name}", "warning")
            continue

        deep_merge(target_language.translations, translations)
        target_language.dirty = True


def write_namespace(namespace: Namespace, options: TranslateOptions) -> List[str]:
    """只写回 dirty 的目标语言，返回成功保存的语言代码"""
    saved_languages = []

    for target_language in namespace.target_languages:
        if not target_language.dirty:
            continue

        target_file_path = os.path.join(
            get_language_directory(target_language.language_code, options),
            namespace.json_file_name
        )
        if save_json_file(target_file_path, target_language.translations):
            saved_languages.append(target_language.language_code)
        else:
            log_progress(f"写入 {target_file_path} 失败", "error")

    if saved_languages:
        languages = saved_languages[0] if len(saved_languages) == 1 else f"({', '.join(saved_languages)})"
        log_progress(
            f"成功写入翻译: {get_languages_directory(options)}/{languages}/{namespace.json_file_name}",
            "verbose"
        )

    return saved_languages
