#!/usr/bin/env python3
"""
验证模块 - 检查引擎返回结果是否符合预期的按语言键结构
"""

from typing import Any, Dict, List

from .tree import TranslationTree


def expected_translate_shape(target_language_codes: List[str], base_differences: TranslationTree) -> Dict[str, TranslationTree]:
    """translate 的预期结果：每个目标语言都包含完整的差异结构"""
    return {language_code: base_differences for language_code in target_language_codes}


def _validate_tree(expected: Dict[str, Any], actual: Any, path: str, errors: List[str]) -> None:
    if not isinstance(actual, dict):
        errors.append(f"'{path}' 应为对象，实际为 {type(actual).__name__}")
        return

    missing_keys = [key for key in expected if key not in actual]
    extra_keys = [key for key in actual if key not in expected]
    if missing_keys:
        errors.append(f"'{path}' 缺少键: {missing_keys}")
    if extra_keys:
        errors.append(f"'{path}' 多余键: {extra_keys}")

    for key, expected_value in expected.items():
        if key not in actual:
            continue
        key_path = f"{path}.{key}"
        if isinstance(expected_value, dict):
            _validate_tree(expected_value, actual[key], key_path, errors)
        elif not isinstance(actual[key], str):
            errors.append(f"'{key_path}' 的值不是字符串类型: {type(actual[key]).__name__}")


def validate_engine_result(expected: Dict[str, TranslationTree], result: Any) -> List[str]:
    """验证引擎结果的结构，返回错误信息列表，空列表表示验证通过"""
    errors: List[str] = []

    if not isinstance(result, dict):
        return [f"结果应为对象，实际为 {type(result).__name__}"]

    for language_code, expected_tree in expected.items():
        if language_code not in result:
            errors.append(f"缺少语言: {language_code}")
            continue
        _validate_tree(expected_tree, result[language_code], language_code, errors)

    extra_languages = [code for code in result if code not in expected]
    if extra_languages:
        errors.append(f"多余语言: {extra_languages}")

    return errors
