"""
渲染模块 - 区域渲染器（外部协作方边界）的默认实现

子模块：
- formatter: 正文格式化（标题段/普通段）
- text_layout: 字体/折行/正文度量
- image_loader: 内嵌图片异步汇合
- surface: Pillow 渲染面
"""

from .formatter import ContentFormatter, split_paragraphs
from .image_loader import ImageLoader
from .surface import PillowRenderSurface
from .text_layout import BodyMetrics, FontBook, wrap_text

__all__ = [
    "ContentFormatter",
    "split_paragraphs",
    "ImageLoader",
    "PillowRenderSurface",
    "BodyMetrics",
    "FontBook",
    "wrap_text",
]
