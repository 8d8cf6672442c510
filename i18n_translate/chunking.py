#!/usr/bin/env python3
"""
分块与并发分发模块

部分翻译服务对结构化输出有限制（例如一个 schema 最多 100 个属性、嵌套不超过 5 层）。
因此请求前先展开翻译树，按属性预算打包成多个分块，并发请求后再按语言合并、还原嵌套结构。

下面的结构计为 5 个属性：
{
    "pl": {            # 1
        "foo": "...",  # 2
        "bar": "...",  # 3
    },
    "ja": {            # 4
        "xyz": "...",  # 5
    }
}
"""

import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .logging import log_progress
from .tree import TranslationTree, flatten_tree, unflatten_tree


@dataclass
class Chunk:
    """一次请求的内容：基础语言条目（已还原嵌套以节省 token）及每种语言需要输出的展开键"""
    base_translations: TranslationTree = field(default_factory=dict)
    schema_spec: Dict[str, List[str]] = field(default_factory=dict)

    def size(self) -> int:
        return sum(1 + len(keys) for keys in self.schema_spec.values())


def chunk_translations(flat_base_translations: Dict[str, str],
                       languages_translations: Dict[str, TranslationTree],
                       max_chunk_size: int) -> List[Chunk]:
    """按属性预算将各语言需要的键打包成分块

    语言代码本身占 1 个单位（在新分块中继续同一语言时再占 1 个），每个键占 1 个单位。
    对相同的输入顺序和 max_chunk_size，分块结果是确定的。
    """
    chunks: List[Chunk] = []

    current_size = 0
    current_base: Dict[str, str] = {}
    current_schema: Dict[str, List[str]] = {}

    def push_chunk():
        nonlocal current_size, current_base, current_schema
        chunks.append(Chunk(
            base_translations=unflatten_tree(current_base),
            schema_spec=current_schema,
        ))
        current_size = 0
        current_base = {}
        current_schema = {}

    for language_code, translations in languages_translations.items():
        flat_keys = list(flatten_tree(translations).keys())
        if not flat_keys:
            continue

        while flat_keys:
            current_size += 1  # 语言代码属性
            take = min(max_chunk_size - current_size, len(flat_keys))
            part, flat_keys = flat_keys[:take], flat_keys[take:]

            language_keys = current_schema.setdefault(language_code, [])
            for key in part:
                current_base[key] = flat_base_translations[key]
                language_keys.append(key)

            current_size += take
            if current_size >= max_chunk_size:
                push_chunk()

        # 剩余空间不足以容纳下一个语言代码加至少一个键时提前推送，
        # 避免出现只有语言代码、没有任何属性的对象
        if current_size >= max_chunk_size - 1:
            push_chunk()

    if current_size:
        push_chunk()

    return chunks


def merge_chunk_results(results: List[Dict[str, Dict[str, Any]]]) -> Dict[str, TranslationTree]:
    """按语言合并各分块的展开结果，并还原为嵌套结构"""
    merged_flat: Dict[str, Dict[str, Any]] = {}

    for result in results:
        for language_code, translations in result.items():
            bucket = merged_flat.setdefault(language_code, {})
            if isinstance(translations, dict):
                bucket.update(flatten_tree(translations))

    return {
        language_code: unflatten_tree(flat)
        for language_code, flat in merged_flat.items()
    }


def dispatch_chunks(chunks: List[Chunk], fetch_chunk: Callable[[Chunk], Dict[str, Any]],
                    max_workers: Optional[int] = None, engine_name: str = "engine") -> Dict[str, TranslationTree]:
    """并发请求所有分块并合并结果，任一分块失败即中止整个分发"""
    if not chunks:
        return {}

    if max_workers is None:
        max_workers = len(chunks)

    if len(chunks) > 1:
        log_progress(f"{engine_name} > 开始并发请求 {len(chunks)} 个分块", "debug")

    results: List[Optional[Dict[str, Any]]] = [None] * len(chunks)
    completed = 0

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(fetch_chunk, chunk): index
            for index, chunk in enumerate(chunks)
        }

        try:
            for future in concurrent.futures.as_completed(future_to_index):
                index = future_to_index[future]
                results[index] = future.result()
                completed += 1
                log_progress(f"{engine_name} > 已完成分块 {index + 1} ({completed}/{len(chunks)})", "debug")
        except Exception as e:
            for pending in future_to_index:
                pending.cancel()
            log_progress(f"{engine_name} > 分块请求失败，中止分发: {e}", "error")
            raise

    return merge_chunk_results(results)
