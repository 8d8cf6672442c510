#!/usr/bin/env python3
"""
异常模块 - 翻译流程中各类错误的定义
"""

from typing import Any, Dict, List, Optional


class TranslationError(Exception):
    """翻译流程错误基类"""
    pass


class ConfigurationError(TranslationError):
    """配置校验失败"""
    pass


class NamespaceValidationError(TranslationError):
    """命名空间文件结构无效（非法JSON、数组、带点的键、空字符串值）"""
    pass


class EngineRequestError(TranslationError):
    """翻译服务请求失败，保留状态码和响应头供重试逻辑判断"""

    def __init__(self, message: str, status: Optional[int] = None,
                 headers: Optional[Dict[str, str]] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}
        self.body = body


class EngineTimeoutError(EngineRequestError):
    """翻译服务请求超时（连接或读取）"""
    pass


class EngineResultError(TranslationError):
    """引擎返回的结构与预期的按语言键结构不一致（不重试）"""

    def __init__(self, message: str, issues: List[str], input: Any = None):
        super().__init__(f"{message}: {'; '.join(issues)}")
        self.issues = issues
        self.input = input
