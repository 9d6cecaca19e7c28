"""
文本处理工具
"""

import re
from html.parser import HTMLParser
from typing import List

from core.errors import ExtractionException

# 无需闭合的 HTML 元素
VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# 允许省略结束标签的元素
OPTIONAL_END_ELEMENTS = frozenset({"p", "li", "dt", "dd", "tr", "td", "th", "option"})

# 内容不计入纯文本的元素
SKIPPED_ELEMENTS = frozenset({"script", "style", "template"})

_WHITESPACE = re.compile(r"\s+")


class _TextCollector(HTMLParser):
    """收集文本节点，同时校验标签是否配对"""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self.stack: List[str] = []
        self.skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in VOID_ELEMENTS:
            return
        self.stack.append(tag)
        if tag in SKIPPED_ELEMENTS:
            self.skip_depth += 1

    def handle_startendtag(self, tag, attrs):
        pass

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            return
        # 弹出可省略结束标签的元素，直到遇到匹配的开始标签
        while self.stack and self.stack[-1] != tag and self.stack[-1] in OPTIONAL_END_ELEMENTS:
            self.stack.pop()
        if not self.stack or self.stack[-1] != tag:
            raise ExtractionException(f"标签不匹配: </{tag}>")
        self.stack.pop()
        if tag in SKIPPED_ELEMENTS:
            self.skip_depth -= 1

    def handle_data(self, data):
        if not self.skip_depth:
            self.parts.append(data)


def extract_plain_text(html: str) -> str:
    """
    从 HTML 中提取纯文本

    去掉所有空白字符（与列表页摘要的显示格式一致）

    Args:
        html: HTML 字符串

    Returns:
        纯文本

    Raises:
        ExtractionException: 标签不配对或存在未闭合的元素
    """
    parser = _TextCollector()
    parser.feed(html or "")
    parser.close()

    unclosed = [tag for tag in parser.stack if tag not in OPTIONAL_END_ELEMENTS]
    if unclosed:
        raise ExtractionException(f"存在未闭合的标签: {', '.join(unclosed)}")

    return _WHITESPACE.sub("", "".join(parser.parts))


def cut_digest(text: str, length: int) -> str:
    """
    截取摘要（按字符计数，不加省略后缀）

    Args:
        text: 原始文本
        length: 最大字符数

    Returns:
        截取后的文本
    """
    if not text or length <= 0:
        return ""
    return text[:length]
