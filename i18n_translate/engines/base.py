#!/usr/bin/env python3
"""
引擎接口 - 所有翻译引擎共同实现的两个操作，以及统一的 HTTP 请求封装
"""

from typing import Any, Dict

import requests

from ..config import TranslateOptions
from ..errors import EngineRequestError, EngineResultError, EngineTimeoutError
from ..namespace import MissingTranslations
from ..tree import TranslationTree

TranslateResult = Dict[str, TranslationTree]


def post_request(provider: str, url: str, timeout: float, **kwargs: Any) -> requests.Response:
    """发送 POST 请求，网络错误和非 2xx 响应统一转换为 EngineRequestError"""
    try:
        response = requests.post(url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise EngineTimeoutError(f"{provider} 请求超时: {e}") from e
    except requests.RequestException as e:
        raise EngineRequestError(f"{provider} 请求失败: {e}") from e

    if not response.ok:
        raise EngineRequestError(
            f"{provider} API错误: {response.status_code}",
            status=response.status_code,
            headers=response.headers,
            body=response.text,
        )
    return response


def response_json(provider: str, response: requests.Response) -> Any:
    """解析响应体 JSON，无法解析时视为引擎结果错误"""
    try:
        return response.json()
    except ValueError as e:
        raise EngineResultError(f"{provider} 响应不是有效的JSON", [str(e)], response.text) from e


class TranslateEngine:
    """翻译引擎基类

    translate: 将基础语言条目翻译为所有目标语言，返回 {语言代码: 与输入同结构的树}
    translate_missed: 只翻译各语言缺失的键，返回结构与 target_language_translations_keys 一致
    """
    name = "engine"

    def translate(self, translations: TranslationTree, options: TranslateOptions) -> TranslateResult:
        raise NotImplementedError

    def translate_missed(self, missing: MissingTranslations, options: TranslateOptions) -> TranslateResult:
        raise NotImplementedError
