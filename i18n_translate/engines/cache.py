#!/usr/bin/env python3
"""
缓存引擎 - 用缓存中已有的翻译补全缺失键，不产生网络请求
"""

from ..cache import TranslationCacheManager
from ..config import TranslateOptions
from ..namespace import MissingTranslations
from ..tree import TranslationTree
from .base import TranslateEngine, TranslateResult


class CacheEngine(TranslateEngine):
    """结果中缓存没有的位置为 None，调用方需先用 clear_nulls 清理"""
    name = "Cache"

    def __init__(self, cache_manager: TranslationCacheManager, namespace_file: str):
        self.cache_manager = cache_manager
        self.namespace_file = namespace_file

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        raise NotImplementedError("缓存引擎不能用于翻译基础语言差异")

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        return {
            language_code: self.cache_manager.get_cached_translations(self.namespace_file, language_code, keys)
            for language_code, keys in missing.target_language_translations_keys.items()
        }
