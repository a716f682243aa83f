"""
文字排版工具 - 字体加载/折行/正文度量

职责：
1. 按 FontSpec 加载字体（未配置字体文件时用Pillow内置字体）
2. 贪心折行（超长单词按字符拆分）
3. 正文固定度量（行高/段距/平均字宽），渲染面与页数估算共用

依赖：
- Pillow: ImageFont
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import ImageFont

from ..config import FontSpec
from ..models import BlockKind

LINE_HEIGHT_RATIO = 1.6
PARAGRAPH_SPACING_PX = 12
BODY_PADDING_PX = 12
# 估算用平均字宽（相对字号）
AVG_GLYPH_RATIO = 0.5

logger = logging.getLogger(__name__)


class FontBook:
    """字体缓存（按字号/粗体/倍率）"""

    def __init__(self, spec: FontSpec):
        self.spec = spec
        self._cache: dict[tuple[int, bool], ImageFont.ImageFont | ImageFont.FreeTypeFont] = {}

    def get(self, size: int, bold: bool = False, scale: float = 1.0):
        px = max(1, round(size * scale))
        key = (px, bold)
        if key not in self._cache:
            self._cache[key] = self._load(px, bold)
        return self._cache[key]

    def _load(self, px: int, bold: bool):
        path = self.spec.bold_path if bold and self.spec.bold_path else self.spec.path
        if path:
            try:
                return ImageFont.truetype(path, px)
            except OSError as e:
                logger.warning(f"字体加载失败，改用内置字体: {path}: {e}")
        return ImageFont.load_default(size=px)


def text_width(font, text: str) -> float:
    return font.getlength(text)


def wrap_text(text: str, font, max_width: float) -> list[str]:
    """贪心折行"""
    words = text.split()
    if not words:
        return []

    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if text_width(font, candidate) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        # 单词本身超宽，按字符硬拆
        while text_width(font, word) > max_width and len(word) > 1:
            cut = len(word)
            while cut > 1 and text_width(font, word[:cut]) > max_width:
                cut -= 1
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current:
        lines.append(current)
    return lines


@dataclass(frozen=True)
class BodyMetrics:
    """正文固定度量（像素，名义宽度下）"""
    body_size: int
    title_size: int
    paragraph_spacing: int = PARAGRAPH_SPACING_PX
    padding: int = BODY_PADDING_PX

    @classmethod
    def from_fonts(cls, spec: FontSpec) -> BodyMetrics:
        return cls(body_size=spec.body_size, title_size=spec.paragraph_title_size)

    def font_size(self, kind: BlockKind) -> int:
        return self.title_size if kind == BlockKind.TITLE else self.body_size

    def line_height(self, kind: BlockKind) -> int:
        return round(self.font_size(kind) * LINE_HEIGHT_RATIO)

    def avg_glyph_width(self, kind: BlockKind) -> float:
        return self.font_size(kind) * AVG_GLYPH_RATIO
