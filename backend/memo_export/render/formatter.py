"""
正文格式化器 - 原始正文文本 → 语义段落块

规则：
1. 按换行切分，去首尾空白，丢弃空行
2. 全大写（含重音字母）或以 ARTICULO/ARTÍCULO 开头 → 标题段
3. 其余（含 "a)." 形式的列表项）→ 普通段落

测试要点：
- test_split_paragraphs: 切分与空行过滤
- test_detect_title: 标题段识别
- test_list_item_is_paragraph: 列表项按普通段落处理
"""

from __future__ import annotations

import re

from ..models import BlockKind, ContentBlock

_TITLE_PATTERN = re.compile(r"[A-ZÁÉÍÓÚÑÜ\s]+")
_ARTICLE_PATTERN = re.compile(r"^(ARTICULO|ARTÍCULO)")


def split_paragraphs(text: str | None) -> list[str]:
    """切分段落（已去空白、去空行）"""
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]


class ContentFormatter:
    """正文格式化器"""

    def format(self, text: str | None) -> list[ContentBlock]:
        """生成段落块列表"""
        return [ContentBlock(kind=self._classify(p), text=p) for p in split_paragraphs(text)]

    def _classify(self, paragraph: str) -> BlockKind:
        if _TITLE_PATTERN.fullmatch(paragraph) or _ARTICLE_PATTERN.match(paragraph):
            return BlockKind.TITLE
        return BlockKind.PARAGRAPH
