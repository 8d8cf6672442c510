#!/usr/bin/env python3
"""
翻译流程模块 - 包含主函数和翻译流程控制逻辑

流程：读取命名空间和缓存 -> 清理 -> 同步缓存结构 -> 翻译基础语言差异
-> 从缓存补全缺失键 -> 翻译剩余缺失键 -> 提交缓存 -> 写回命名空间
"""

import sys
import time
from typing import List

from .cache import read_translations_cache
from .cleaner import clean_languages_directory, clean_namespaces
from .config import (
    TranslateOptions,
    load_options_from_env,
    normalize_options,
    validate_options,
)
from .engines import CacheEngine, TranslateEngine, create_engine_from_env
from .errors import EngineRequestError, EngineResultError, TranslationError
from .logging import (
    ProgressTracker,
    configure_logging,
    format_duration,
    log_progress,
    log_section,
    log_section_end,
    set_log_level,
)
from .namespace import (
    Namespace,
    apply_engine_translations,
    get_missing_translations,
    read_translations_namespaces,
    write_namespace,
)
from .tree import clear_nulls, count_translated_keys
from .validation import expected_translate_shape, validate_engine_result


def write_namespaces(namespaces: List[Namespace], options: TranslateOptions) -> None:
    for namespace in namespaces:
        write_namespace(namespace, options)


def translate_base_differences(engine: TranslateEngine, namespaces: List[Namespace], cache,
                               options: TranslateOptions, tracker: ProgressTracker) -> bool:
    """翻译基础语言中新增或变化的条目，返回是否有改动"""
    dirty = False
    tracker.start_stage("翻译基础语言差异")

    for namespace in namespaces:
        tracker.start_namespace(namespace.json_file_name)
        base_differences = cache.get_base_language_translation_differences(namespace)
        if not base_differences:
            continue

        dirty = True
        log_progress(f"翻译命名空间 \"{namespace.json_file_name}\" 的基础语言差异")
        results = engine.translate(base_differences, options)

        errors = validate_engine_result(
            expected_translate_shape(options.target_language_codes, base_differences), results
        )
        if errors:
            log_progress("引擎返回的翻译结构不正确", "error")
            log_progress(f"基础语言差异: {base_differences}", "debug")
            raise EngineResultError(f"\"{namespace.json_file_name}\" 翻译结果验证失败", errors, base_differences)

        apply_engine_translations(namespace, results)

    tracker.finish_stage()
    return dirty


def translate_missing(engine: TranslateEngine, namespaces: List[Namespace], cache,
                      options: TranslateOptions, tracker: ProgressTracker) -> bool:
    """先用缓存补全缺失键，剩余部分交给引擎，返回是否有改动"""
    dirty = False
    total_cache_loaded = 0
    tracker.start_stage("补全缺失翻译")

    for namespace in namespaces:
        tracker.start_namespace(namespace.json_file_name)
        cache_engine = CacheEngine(cache, namespace.json_file_name)

        missed = get_missing_translations(namespace)
        if missed:
            dirty = True
            # 缓存结果中可能包含 None，写回前清除
            cached = clear_nulls(cache_engine.translate_missed(missed, options))
            total_cache_loaded += count_translated_keys(cached)
            apply_engine_translations(namespace, cached)

        missed = get_missing_translations(namespace)
        if not missed:
            continue

        dirty = True
        log_progress(f"翻译命名空间 \"{namespace.json_file_name}\" 的缺失条目")
        results = engine.translate_missed(missed, options)

        errors = validate_engine_result(missed.target_language_translations_keys, results)
        if errors:
            log_progress("引擎返回的翻译结构不正确", "error")
            raise EngineResultError(
                f"\"{namespace.json_file_name}\" 缺失翻译结果验证失败", errors,
                missed.target_language_translations_keys
            )

        apply_engine_translations(namespace, results)

    if total_cache_loaded > 0:
        log_progress(f"从缓存加载的翻译总数: {total_cache_loaded}")

    tracker.finish_stage()
    return dirty


def translate(engine: TranslateEngine, options: TranslateOptions) -> bool:
    """执行一次完整的增量翻译，返回是否写入了改动"""
    start_time = time.time()
    set_log_level(debug=options.debug, verbose=options.verbose)

    validate_options(options)
    normalize_options(options)

    if not options.target_language_codes:
        log_progress("过滤基础语言后没有需要翻译的目标语言")
        return False

    namespaces = read_translations_namespaces(options)
    cache = read_translations_cache(options)

    if options.cleanup:
        clean_languages_directory(options)
        clean_namespaces(options, namespaces)

    dirty_cache = cache.clean_cache(namespaces)
    cache.sync_cache_with_namespaces(namespaces, write_namespace_values=False)

    log_progress(f"使用引擎: \"{engine.name}\"")
    tracker = ProgressTracker(len(namespaces))

    try:
        dirty = translate_base_differences(engine, namespaces, cache, options, tracker)
        dirty = translate_missing(engine, namespaces, cache, options, tracker) or dirty
    except (EngineRequestError, EngineResultError):
        # 保存已通过验证的结果；不提交缓存，下次运行会再次检测到差异
        log_section_end()
        log_progress("翻译中断，写入已完成的翻译", "error")
        write_namespaces(namespaces, options)
        raise

    if dirty or dirty_cache:
        if dirty:
            cache.sync_cache_with_namespaces(namespaces, write_namespace_values=True)
        cache.write()

    duration = format_duration(time.time() - start_time)
    if dirty:
        write_namespaces(namespaces, options)
        log_progress(f"翻译完成并成功保存，用时 {duration}", "success")
    else:
        log_progress(f"未检测到变更（用时 {duration}）", "success")

    return dirty


def main():
    """主函数"""
    configure_logging()
    log_section("翻译脚本启动")

    try:
        options = load_options_from_env()
        set_log_level(debug=options.debug, verbose=options.verbose)
        engine = create_engine_from_env()
    except (TranslationError, ValueError) as e:
        log_progress(f"错误：{e}", "error")
        log_section_end()
        sys.exit(1)

    log_progress(f"✓ 翻译引擎初始化完成: {engine.name}")
    log_section_end()

    try:
        translate(engine, options)
    except TranslationError as e:
        log_progress(f"翻译失败: {e}", "error")
        sys.exit(1)
