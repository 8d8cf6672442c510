"""
翻译引擎包
通过 TRANSLATION_ENGINE 环境变量选择引擎，API 密钥从对应环境变量读取
"""

import os

from ..errors import ConfigurationError
from .base import TranslateEngine, TranslateResult
from .cache import CacheEngine
from .claude import ClaudeConfig, ClaudeEngine
from .dummy import DummyEngine
from .llm import (
    ChatCompletionConfig,
    ChatCompletionEngine,
    DeepSeekConfig,
    DeepSeekEngine,
    OpenAIConfig,
    OpenAIEngine,
)
from .ml import DeepLConfig, DeepLEngine, GoogleTranslateConfig, GoogleTranslateEngine

ENGINE_API_KEYS = {
    'deepseek': 'DEEPSEEK_API_KEY',
    'openai': 'OPENAI_API_KEY',
    'claude': 'ANTHROPIC_API_KEY',
    'deepl': 'DEEPL_API_KEY',
    'google': 'GOOGLE_TRANSLATE_API_KEY',
}


def create_engine_from_env() -> TranslateEngine:
    """根据环境变量创建翻译引擎，默认使用 DeepSeek"""
    engine_name = os.getenv('TRANSLATION_ENGINE', 'deepseek').strip().lower()

    if engine_name == 'dummy':
        return DummyEngine()

    if engine_name not in ENGINE_API_KEYS:
        raise ConfigurationError(
            f"未知的翻译引擎 \"{engine_name}\"，可选: {', '.join([*ENGINE_API_KEYS, 'dummy'])}"
        )

    key_variable = ENGINE_API_KEYS[engine_name]
    api_key = os.getenv(key_variable)
    if not api_key:
        raise ConfigurationError(f"未找到{key_variable}环境变量")

    if engine_name == 'deepseek':
        return DeepSeekEngine(DeepSeekConfig(api_key=api_key))
    if engine_name == 'openai':
        return OpenAIEngine(OpenAIConfig(api_key=api_key))
    if engine_name == 'claude':
        return ClaudeEngine(ClaudeConfig(api_key=api_key))
    if engine_name == 'deepl':
        return DeepLEngine(DeepLConfig(api_key=api_key))
    return GoogleTranslateEngine(GoogleTranslateConfig(api_key=api_key))


__all__ = [
    'TranslateEngine',
    'TranslateResult',
    'CacheEngine',
    'ChatCompletionConfig',
    'ChatCompletionEngine',
    'ClaudeConfig',
    'ClaudeEngine',
    'DeepLConfig',
    'DeepLEngine',
    'DeepSeekConfig',
    'DeepSeekEngine',
    'DummyEngine',
    'GoogleTranslateConfig',
    'GoogleTranslateEngine',
    'OpenAIConfig',
    'OpenAIEngine',
    'create_engine_from_env',
]
