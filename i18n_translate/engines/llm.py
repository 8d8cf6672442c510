#!/usr/bin/env python3
"""
大模型翻译引擎 - 基于 chat completions 接口（DeepSeek、OpenAI）

请求内容先展开并按属性预算分块，各分块通过共享退避闸门并发请求，结果合并后还原嵌套结构。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..chunking import Chunk, chunk_translations, dispatch_chunks
from ..config import (
    API_TIMEOUT,
    DEFAULT_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
    MAX_CHUNK_SIZE,
    TranslateOptions,
)
from ..errors import EngineResultError
from ..logging import log_engine
from ..namespace import MissingTranslations
from ..retry import RetryGate, RetryPolicy, with_retry
from ..tree import TranslationTree, flatten_tree
from ..validation import validate_engine_result
from .base import TranslateEngine, TranslateResult, post_request, response_json

DEEPSEEK_API_URL = "https://api.deepseek.com/chat/completions"
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"

ABSOLUTE_CONTEXT = [
    "You are a professional translator.",
    "When translating a value, consider the key name to better understand the context.",
    "Variables enclosed in {} are coded and their names should remain unchanged.",
]


def languages_context(base_language_code: str, language_codes: List[str]) -> str:
    return (
        f'You are translating from language with code "{base_language_code}" '
        f'to the following language codes: "{", ".join(language_codes)}".'
    )


def strip_code_fence(content: str) -> str:
    """去除模型输出中的 markdown 代码块标记"""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def build_json_schema(chunk: Chunk) -> Dict[str, Any]:
    """为分块生成结构化输出的 JSON Schema（语言代码 -> 展开键 -> 字符串）"""
    properties = {}
    for language_code, keys in chunk.schema_spec.items():
        properties[language_code] = {
            "type": "object",
            "properties": {key: {"type": "string"} for key in keys},
            "required": list(keys),
            "additionalProperties": False,
        }

    return {
        "type": "object",
        "properties": properties,
        "required": list(chunk.schema_spec.keys()),
        "additionalProperties": False,
    }


def _clamp_chunk_size(chunk_size: Optional[int]) -> int:
    return min(MAX_CHUNK_SIZE, max(MIN_CHUNK_SIZE, chunk_size or DEFAULT_CHUNK_SIZE))


@dataclass
class ChatCompletionConfig:
    """chat completions 引擎配置"""
    api_key: str
    model: str = ""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout_seconds: float = API_TIMEOUT
    temperature: Optional[float] = None
    max_workers: Optional[int] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)


@dataclass
class DeepSeekConfig(ChatCompletionConfig):
    model: str = "deepseek-chat"
    temperature: Optional[float] = 1.3


@dataclass
class OpenAIConfig(ChatCompletionConfig):
    model: str = "gpt-4o-mini"


class ChatCompletionEngine(TranslateEngine):
    """chat completions 接口翻译引擎的公共实现"""
    provider = "LLM"
    api_url = ""

    def __init__(self, config: ChatCompletionConfig):
        if not config.api_key:
            raise ValueError(f"{self.provider} > 缺少 api_key")

        self.config = config
        self.model = config.model
        self.name = f"{self.provider} ({self.model})"
        self.max_chunk_size = _clamp_chunk_size(config.chunk_size)
        self.gate = RetryGate()
        self.headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}"
        }

    def response_format(self, chunk: Chunk) -> Dict[str, Any]:
        raise NotImplementedError

    def build_messages(self, chunk: Chunk, system_context: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_context},
            {"role": "user", "content": json.dumps(chunk.base_translations, ensure_ascii=False)},
        ]

    def system_context(self, options: TranslateOptions) -> str:
        return ' '.join([
            *ABSOLUTE_CONTEXT,
            languages_context(options.base_language_code, options.target_language_codes),
            *options.application_context_entries,
        ])

    def post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """发送请求，非 2xx 响应转换为 EngineRequestError（保留状态码和响应头）"""
        response = post_request(
            self.provider, self.api_url, self.config.timeout_seconds, headers=self.headers, json=payload
        )
        return response_json(self.provider, response)

    def parse_chunk_response(self, chunk: Chunk, data: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise EngineResultError(f"{self.provider} 响应格式无效", ["缺少 choices[0].message.content"], data)

        if not content:
            raise EngineResultError(f"{self.provider} 返回空响应", ["content 为空"], chunk.base_translations)

        try:
            translated = json.loads(strip_code_fence(content))
        except json.JSONDecodeError as e:
            raise EngineResultError(f"{self.provider} JSON解析失败", [str(e)], content)

        if isinstance(translated, dict):
            # 模型可能返回嵌套结构，统一为展开键再校验
            translated = {
                language_code: flatten_tree(value) if isinstance(value, dict) else value
                for language_code, value in translated.items()
            }

        expected = {
            language_code: {key: '' for key in keys}
            for language_code, keys in chunk.schema_spec.items()
        }
        errors = validate_engine_result(expected, translated)
        if errors:
            raise EngineResultError(f"{self.provider} 分块翻译验证失败", errors, chunk.base_translations)

        return translated

    def fetch_chunk(self, chunk: Chunk, options: TranslateOptions) -> Dict[str, Dict[str, str]]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(chunk, self.system_context(options)),
            "response_format": self.response_format(chunk),
            "stream": False,
        }
        if self.config.temperature is not None:
            payload["temperature"] = self.config.temperature
        log_engine(self.provider, f"分块请求 {chunk.size()} 个属性", "verbose")

        def operation():
            return self.parse_chunk_response(chunk, self.post(payload))

        return with_retry(operation, f"{self.provider} translate", self.gate, self.config.retry)

    def fetch_translations(self, chunks: List[Chunk], options: TranslateOptions) -> TranslateResult:
        log_engine(self.provider, f"共 {len(chunks)} 个分块（每块上限 {self.max_chunk_size} 个属性）", "verbose")
        result = dispatch_chunks(
            chunks,
            lambda chunk: self.fetch_chunk(chunk, options),
            max_workers=self.config.max_workers,
            engine_name=self.provider,
        )
        log_engine(self.provider, "全部分块请求完成")
        return result

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        languages_translations = {
            language_code: translations for language_code in options.target_language_codes
        }
        chunks = chunk_translations(flatten_tree(translations), languages_translations, self.max_chunk_size)
        return self.fetch_translations(chunks, options)

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        chunks = chunk_translations(
            flatten_tree(missing.base_language_translations),
            missing.target_language_translations_keys,
            self.max_chunk_size,
        )
        return self.fetch_translations(chunks, options)


class DeepSeekEngine(ChatCompletionEngine):
    """DeepSeek：JSON 输出模式，所需的输出结构写入用户提示词"""
    provider = "DeepSeek"
    api_url = DEEPSEEK_API_URL

    def response_format(self, chunk: Chunk) -> Dict[str, Any]:
        return {"type": "json_object"}

    def build_messages(self, chunk: Chunk, system_context: str) -> List[Dict[str, str]]:
        structure = {
            language_code: {key: "" for key in keys}
            for language_code, keys in chunk.schema_spec.items()
        }
        user_prompt = (
            "Source translations (JSON):\n"
            f"{json.dumps(chunk.base_translations, ensure_ascii=False, indent=2)}\n\n"
            "Fill every value of the following JSON object. The first-level keys are language codes, "
            "the nested keys are dotted paths into the source translations. "
            "Return only the JSON object with exactly these keys:\n"
            f"{json.dumps(structure, ensure_ascii=False, indent=2)}"
        )
        return [
            {"role": "system", "content": system_context},
            {"role": "user", "content": user_prompt},
        ]


class OpenAIEngine(ChatCompletionEngine):
    """OpenAI：结构化输出，每个分块生成对应的 JSON Schema"""
    provider = "OpenAI"
    api_url = OPENAI_API_URL

    def response_format(self, chunk: Chunk) -> Dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": "language_translations",
                "strict": True,
                "schema": build_json_schema(chunk),
            },
        }
