#!/usr/bin/env python3
"""
增量翻译脚本 - 只翻译基础语言中新增、变化或缺失的条目

模块结构：
- i18n_translate/config.py: 配置常量、选项数据类、语言目录命名
- i18n_translate/logging.py: 日志函数、进度跟踪器
- i18n_translate/tree.py: 翻译树的展开、还原与合并
- i18n_translate/namespace.py: 命名空间读取、缺失检测与写回
- i18n_translate/cache.py: 差异缓存
- i18n_translate/chunking.py / retry.py: 分块并发请求与重试闸门
- i18n_translate/engines/: 各翻译引擎
- i18n_translate/translation_flow.py: 主流程函数
"""

from i18n_translate.translation_flow import main
from i18n_translate.logging import flush_logs, close_logs

if __name__ == "__main__":
    try:
        main()
    finally:
        # 确保日志文件被正确关闭
        flush_logs()
        close_logs()
