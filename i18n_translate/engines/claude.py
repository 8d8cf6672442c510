#!/usr/bin/env python3
"""
Claude 翻译引擎 - Anthropic messages 接口

translate 按目标语言逐个请求；translate_missed 一次请求补全所有语言的缺失键。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..config import API_TIMEOUT, TranslateOptions
from ..errors import EngineResultError
from ..logging import log_engine
from ..namespace import MissingTranslations
from ..retry import RetryGate, RetryPolicy, with_retry
from ..tree import TranslationTree
from .base import TranslateEngine, TranslateResult, post_request, response_json

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

ABSOLUTE_CONTEXT = [
    "You have to output JSON and only JSON.",
    "Keep all variable names and JSON structure exactly the same, only translate the values.",
]

MODEL_MAX_TOKENS = {
    "claude-3-7-sonnet-20250219": 64000,
    "claude-3-5-sonnet-20241022": 8192,
    "claude-3-5-haiku-20241022": 8192,
    "claude-3-opus-20240229": 4096,
    "claude-3-haiku-20240307": 4096,
}


def extract_braced_content(text: str) -> Optional[str]:
    """截取第一个 '{' 到最后一个 '}' 之间的内容"""
    first = text.find('{')
    last = text.rfind('}')
    if first == -1 or last == -1 or first > last:
        return None
    return text[first:last + 1]


@dataclass
class ClaudeConfig:
    api_key: str
    model: str = "claude-3-7-sonnet-20250219"
    timeout_seconds: float = API_TIMEOUT
    retry: RetryPolicy = field(default_factory=RetryPolicy)


class ClaudeEngine(TranslateEngine):
    provider = "Claude"

    def __init__(self, config: ClaudeConfig):
        if not config.api_key:
            raise ValueError("Claude > 缺少 api_key")
        self.config = config
        self.name = f"Claude ({config.model})"
        self.gate = RetryGate()
        self.headers = {
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _request(self, context: str) -> Dict[str, Any]:
        payload = {
            "model": self.config.model,
            "max_tokens": MODEL_MAX_TOKENS.get(self.config.model, 4096),
            "messages": [
                {"role": "user", "content": context},
                # 预填充助手回复以强制 JSON 输出
                {"role": "assistant", "content": "[JSON Translator]: {"},
            ],
        }
        response = post_request(
            self.provider, ANTHROPIC_API_URL, self.config.timeout_seconds, headers=self.headers, json=payload
        )

        data = response_json(self.provider, response)
        try:
            text = '{' + data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise EngineResultError("Claude 响应格式无效", ["缺少 content[0].text"], data) from e
        potential_json = extract_braced_content(text)
        try:
            translations = json.loads(potential_json) if potential_json else None
        except json.JSONDecodeError as e:
            raise EngineResultError("Claude 返回内容无法解析为JSON", [str(e)], context)
        if not isinstance(translations, dict):
            raise EngineResultError("Claude 返回内容无法解析为JSON", ["未找到JSON对象"], context)

        usage = data.get("usage", {})
        log_engine("Claude", f"本次消耗: input_tokens={usage.get('input_tokens')}, "
                             f"output_tokens={usage.get('output_tokens')}", "verbose")
        return translations

    def fetch(self, context: str) -> Dict[str, Any]:
        return with_retry(lambda: self._request(context), "Claude translate", self.gate, self.config.retry)

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        result = {}
        for language_code in options.target_language_codes:
            context = ' '.join([
                f"Translate this JSON from language code {options.base_language_code} to {language_code}.",
                *ABSOLUTE_CONTEXT,
                *options.application_context_entries,
                f"Maintain professional terminology and context: {json.dumps(translations, ensure_ascii=False)}",
            ])
            log_engine("Claude", f"请求语言 \"{language_code}\" 的翻译")
            result[language_code] = self.fetch(context)
        return result

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        context = ' '.join([
            *ABSOLUTE_CONTEXT,
            *options.application_context_entries,
            f'Here is a translation dictionary from the language with the code "{options.base_language_code}": '
            f'{json.dumps(missing.base_language_translations, ensure_ascii=False)}.',
            "Next, a structure that needs to be completed will be provided.",
            "The first keys in it are language codes,",
            "and all translations nested under them should be in their respective languages.",
            "Maintain professional terminology and context.",
            f"Translate fully next object: {json.dumps(missing.target_language_translations_keys, ensure_ascii=False)}",
        ])
        log_engine("Claude", "请求缺失翻译")
        return self.fetch(context)
