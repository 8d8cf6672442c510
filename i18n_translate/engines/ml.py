#!/usr/bin/env python3
"""
机器翻译引擎 - DeepL 与 Google Translate

两者都是按目标语言批量提交展开后的文本，按位置将结果映射回键。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..config import API_TIMEOUT, TranslateOptions
from ..errors import EngineResultError
from ..logging import log_engine
from ..namespace import MissingTranslations
from ..retry import RetryGate, RetryPolicy, with_retry
from ..tree import TranslationTree, flatten_tree, unflatten_tree
from .base import TranslateEngine, TranslateResult, post_request, response_json

DEEPL_API_URL = "https://api.deepl.com/v2/translate"
GOOGLE_TRANSLATE_API_URL = "https://translation.googleapis.com/language/translate/v2"


@dataclass
class MachineTranslationConfig:
    api_key: str
    timeout_seconds: float = API_TIMEOUT
    retry: RetryPolicy = field(default_factory=RetryPolicy)


DeepLConfig = MachineTranslationConfig
GoogleTranslateConfig = MachineTranslationConfig


class MachineTranslationEngine(TranslateEngine):
    """按语言批量翻译的公共实现，子类只负责单次请求"""
    provider = "ML"

    def __init__(self, config: MachineTranslationConfig):
        if not config.api_key:
            raise ValueError(f"{self.provider} > 缺少 api_key")
        self.config = config
        self.name = self.provider
        self.gate = RetryGate()

    def request_texts(self, language_code: str, texts: List[str], options: TranslateOptions) -> List[str]:
        raise NotImplementedError

    def extract_texts(self, data: Any, path: Tuple[str, ...], text_field: str) -> List[str]:
        """按 path 取出译文列表，响应结构不符时视为引擎结果错误"""
        try:
            entries = data
            for key in path:
                entries = entries[key]
            return [entry[text_field] for entry in entries]
        except (KeyError, IndexError, TypeError) as e:
            raise EngineResultError(
                f"{self.provider} 响应格式无效",
                [f"缺少 {'.'.join(path)}[].{text_field}"],
                data,
            ) from e

    def translate_language(self, language_code: str, keys: List[str], texts: List[str],
                           options: TranslateOptions) -> TranslationTree:
        log_engine(self.provider, f"翻译 '{options.base_language_code}' > '{language_code}'")
        translated = with_retry(
            lambda: self.request_texts(language_code, texts, options),
            f"{self.provider} translate", self.gate, self.config.retry
        )
        if len(translated) != len(keys):
            raise EngineResultError(
                f"{self.provider} 返回条目数量不一致",
                [f"{language_code}: 期望 {len(keys)} 条，实际 {len(translated)} 条"],
                texts,
            )
        return unflatten_tree(dict(zip(keys, translated)))

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        flat = flatten_tree(translations)
        keys = list(flat.keys())
        texts = list(flat.values())
        return {
            language_code: self.translate_language(language_code, keys, texts, options)
            for language_code in options.target_language_codes
        }

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        flat_base = flatten_tree(missing.base_language_translations)
        result = {}
        for language_code, keys_tree in missing.target_language_translations_keys.items():
            keys = list(flatten_tree(keys_tree).keys())
            texts = [flat_base[key] for key in keys]
            result[language_code] = self.translate_language(language_code, keys, texts, options)
        return result


class DeepLEngine(MachineTranslationEngine):
    provider = "DeepL"

    def request_texts(self, language_code: str, texts: List[str], options: TranslateOptions) -> List[str]:
        data = [
            ('auth_key', self.config.api_key),
            ('source_lang', options.base_language_code.upper()),
            ('target_lang', language_code.upper()),
        ]
        data.extend(('text', text) for text in texts)

        response = post_request(
            self.provider,
            DEEPL_API_URL,
            self.config.timeout_seconds,
            data=data,
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
        )
        return self.extract_texts(response_json(self.provider, response), ("translations",), "text")


class GoogleTranslateEngine(MachineTranslationEngine):
    provider = "Google Translate"

    def request_texts(self, language_code: str, texts: List[str], options: TranslateOptions) -> List[str]:
        body: Dict[str, object] = {
            "q": texts,
            "target": language_code,
            "source": options.base_language_code,
            "format": "text",
        }
        response = post_request(
            self.provider,
            GOOGLE_TRANSLATE_API_URL,
            self.config.timeout_seconds,
            params={"key": self.config.api_key},
            json=body,
        )
        return self.extract_texts(response_json(self.provider, response), ("data", "translations"), "translatedText")
