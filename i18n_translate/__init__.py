"""
增量翻译模块包
包含增量翻译工具的各个组件
"""

from .config import (
    IS_GITHUB_ACTIONS,
    LanguageNames,
    TranslateOptions,
    format_language_directory_name,
    load_options_from_env,
    normalize_options,
    validate_options,
)
from .errors import (
    ConfigurationError,
    EngineRequestError,
    EngineTimeoutError,
    EngineResultError,
    NamespaceValidationError,
    TranslationError,
)
from .logging import (
    ProgressTracker,
    close_logs,
    configure_logging,
    flush_logs,
    log_progress,
    log_section,
    log_section_end,
)
from .tree import flatten_tree, unflatten_tree
from .namespace import MissingTranslations, Namespace, TargetLanguage, read_translations_namespaces
from .cache import TranslationCacheManager, read_translations_cache
from .engines import (
    CacheEngine,
    ClaudeEngine,
    DeepLEngine,
    DeepSeekEngine,
    DummyEngine,
    GoogleTranslateEngine,
    OpenAIEngine,
    TranslateEngine,
    create_engine_from_env,
)
from .translation_flow import main, translate

__all__ = [
    'TranslateOptions',
    'LanguageNames',
    'IS_GITHUB_ACTIONS',
    'load_options_from_env',
    'validate_options',
    'normalize_options',
    'format_language_directory_name',
    'TranslationError',
    'ConfigurationError',
    'NamespaceValidationError',
    'EngineRequestError',
    'EngineTimeoutError',
    'EngineResultError',
    'log_progress',
    'log_section',
    'log_section_end',
    'ProgressTracker',
    'configure_logging',
    'flush_logs',
    'close_logs',
    'flatten_tree',
    'unflatten_tree',
    'Namespace',
    'TargetLanguage',
    'MissingTranslations',
    'read_translations_namespaces',
    'TranslationCacheManager',
    'read_translations_cache',
    'TranslateEngine',
    'CacheEngine',
    'ClaudeEngine',
    'DeepLEngine',
    'DeepSeekEngine',
    'DummyEngine',
    'GoogleTranslateEngine',
    'OpenAIEngine',
    'create_engine_from_env',
    'translate',
    'main',
]
