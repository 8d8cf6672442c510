#!/usr/bin/env python3
"""
测试用引擎 - 按格式字符串生成确定的"翻译"，用于流程测试
"""

from typing import Any

from ..config import TranslateOptions
from ..namespace import MissingTranslations
from ..tree import TranslationTree
from .base import TranslateEngine, TranslateResult


def format_strings(value: Any, value_format: str) -> Any:
    if isinstance(value, str):
        return value_format.replace('$value', value)
    if isinstance(value, dict):
        return {key: format_strings(item, value_format) for key, item in value.items()}
    return value


class DummyEngine(TranslateEngine):
    """value_format 支持 $languageCode 和 $value 两个占位符"""
    name = "Dummy (Flow testing)"

    def __init__(self, value_format: str = '$languageCode-dummy__$value'):
        self.value_format = value_format

    def _language_format(self, language_code: str) -> str:
        return self.value_format.replace('$languageCode', language_code)

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        return {
            language_code: format_strings(translations, self._language_format(language_code))
            for language_code in options.target_language_codes
        }

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        flat_source = missing.base_language_translations
        return {
            language_code: _fill_from_base(keys, flat_source, self._language_format(language_code))
            for language_code, keys in missing.target_language_translations_keys.items()
        }


def _fill_from_base(keys_tree: TranslationTree, base: TranslationTree, value_format: str) -> TranslationTree:
    """用基础语言值填充缺失键结构（占位符本身是空字符串）"""
    result = {}
    for key, value in keys_tree.items():
        if isinstance(value, dict):
            result[key] = _fill_from_base(value, base.get(key, {}), value_format)
        else:
            result[key] = format_strings(base.get(key, ''), value_format)
    return result
