#!/usr/bin/env python3
"""
配置模块 - 包含翻译流程的常量、选项数据类和配置函数
"""

import os
import re
import json
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from .errors import ConfigurationError


# 检测是否在GitHub Actions环境中运行
IS_GITHUB_ACTIONS = os.getenv('GITHUB_ACTIONS') == 'true'

# 配置
DEFAULT_CACHE_NAME = ".translations-cache.json"
DEFAULT_LANGUAGES_DIR = "languages"
DEFAULT_BASE_LANGUAGE = "en"
LOG_FILE = "translation.log"

# 分块与重试配置常量
DEFAULT_CHUNK_SIZE = 50
MIN_CHUNK_SIZE = 5
MAX_CHUNK_SIZE = 100
API_TIMEOUT = 25
MAX_RETRIES = 10
TIMEOUT_RETRY_DELAY = 2.0
RATE_LIMIT_RETRY_MULTIPLIER = 4
RATE_LIMIT_RETRY_EXTRA_DELAY = 1.2
RATE_LIMIT_FALLBACK_DELAY = 1.0

_PLACEHOLDER_PATTERN = re.compile(r'\{([^{}]*)\}')


@dataclass
class LanguageNames:
    """语言目录命名格式，支持 {language}、{language!}（大写）、{language_}（小写）"""
    base: Optional[str] = None
    targets: Optional[str] = None


LanguageNamesMapping = Union[LanguageNames, Callable[[str, "TranslateOptions"], str]]


@dataclass
class TranslateOptions:
    """一次翻译运行的全部选项"""
    languages_directory_path: str
    base_language_code: str
    target_language_codes: List[str]
    application_context_entries: List[str] = field(default_factory=list)
    json_cache_name: str = DEFAULT_CACHE_NAME
    language_directory_names: Optional[LanguageNamesMapping] = None
    cleanup: bool = False
    debug: bool = False
    verbose: bool = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, 'false').lower() == 'true'


def load_target_languages(value: str) -> List[str]:
    """解析目标语言：逗号分隔的代码列表，或语言列表JSON文件路径"""
    if value.endswith('.json'):
        try:
            with open(value, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"未找到语言列表文件 {value}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"语言列表文件格式无效 {value}: {e}")

        if isinstance(data, dict):
            return list(data.keys())
        if isinstance(data, list) and all(isinstance(code, str) for code in data):
            return data
        raise ConfigurationError(f"语言列表文件格式无效 {value}")

    return [code.strip() for code in value.split(',') if code.strip()]


def load_options_from_env() -> TranslateOptions:
    """从环境变量构建翻译选项"""
    context = os.getenv('I18N_CONTEXT', '')
    return TranslateOptions(
        languages_directory_path=os.getenv('I18N_LANGUAGES_DIR', DEFAULT_LANGUAGES_DIR),
        base_language_code=os.getenv('I18N_BASE_LANGUAGE', DEFAULT_BASE_LANGUAGE),
        target_language_codes=load_target_languages(os.getenv('I18N_TARGET_LANGUAGES', '')),
        application_context_entries=[entry for entry in context.split('|') if entry.strip()],
        json_cache_name=os.getenv('I18N_CACHE_NAME', DEFAULT_CACHE_NAME),
        cleanup=_env_flag('I18N_CLEANUP'),
        debug=_env_flag('TRANSLATION_DEBUG'),
        verbose=_env_flag('TRANSLATION_VERBOSE'),
    )


def validate_options(options: TranslateOptions) -> None:
    """校验选项，收集全部问题后统一抛出"""
    errors = []

    if not options.languages_directory_path:
        errors.append("languages_directory_path: 不能为空")
    if not options.base_language_code:
        errors.append("base_language_code: 不能为空")
    if not options.target_language_codes:
        errors.append("target_language_codes: 至少需要一个目标语言")
    elif any(not isinstance(code, str) or not code for code in options.target_language_codes):
        errors.append("target_language_codes: 语言代码必须是非空字符串")
    if not isinstance(options.application_context_entries, list) or \
            any(not isinstance(entry, str) for entry in options.application_context_entries):
        errors.append("application_context_entries: 必须是字符串列表")
    if not options.json_cache_name:
        errors.append("json_cache_name: 不能为空")

    mapping = options.language_directory_names
    if mapping is not None and not callable(mapping) and not isinstance(mapping, LanguageNames):
        errors.append("language_directory_names: 必须是 LanguageNames 或可调用对象")

    if errors:
        raise ConfigurationError(f"配置校验失败: {'; '.join(errors)}")


def normalize_options(options: TranslateOptions) -> TranslateOptions:
    """规范化选项：过滤基础语言、补全缓存文件扩展名、每条上下文以句号结尾"""
    options.target_language_codes = [
        code for code in options.target_language_codes if code != options.base_language_code
    ]

    if not options.json_cache_name.endswith('.json'):
        options.json_cache_name = f"{options.json_cache_name}.json"

    entries = []
    for entry in options.application_context_entries:
        entry = entry.strip()
        if not entry.endswith('.'):
            entry = f"{entry}."
        entries.append(entry)
    options.application_context_entries = entries

    return options


def _apply_language_format(language_code: str, name_format: str) -> str:
    match = _PLACEHOLDER_PATTERN.search(name_format)
    if not match:
        raise ConfigurationError(
            f'Invalid format: "{name_format}". Expected a placeholder like "{{language}}", but none was found.'
        )

    placeholder = match.group(1)
    if 'language' not in placeholder:
        raise ConfigurationError(
            f'Invalid format: "{name_format}". Found placeholder "{{{placeholder}}}", but it does not contain "language".'
        )

    if placeholder.endswith('!'):
        value = language_code.upper()
    elif placeholder.endswith('_'):
        value = language_code.lower()
    else:
        value = language_code

    return name_format[:match.start()] + value + name_format[match.end():]


def format_language_directory_name(language_code: str, options: TranslateOptions) -> str:
    """根据命名映射计算语言目录名，未配置时直接使用语言代码"""
    mapping = options.language_directory_names
    if mapping is None:
        return language_code

    if callable(mapping):
        return mapping(language_code, options)

    if language_code == options.base_language_code:
        name_format = mapping.base
    else:
        name_format = mapping.targets

    if not name_format:
        return language_code

    return _apply_language_format(language_code, name_format)
