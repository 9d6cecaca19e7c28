"""
工具函数目录
按功能分类组织
"""

from .text import extract_plain_text, cut_digest
from .background_tasks import BackgroundTaskRunner

__all__ = [
    # 文本处理
    "extract_plain_text",
    "cut_digest",
    # 后台任务
    "BackgroundTaskRunner",
]
