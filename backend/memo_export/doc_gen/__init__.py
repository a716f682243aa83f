"""
文档生成模块 - 栅格化/页面合成/PDF编码

子模块：
- rasterizer: 区域栅格化
- assembler: 逐页合成（header 重绘页码，footer 仅末页）
- pdf_engine: 多页PDF编码
"""

from .rasterizer import Rasterizer
from .assembler import PageAssembler
from .pdf_engine import PDFEncoder, count_pdf_pages

__all__ = [
    "Rasterizer",
    "PageAssembler",
    "PDFEncoder",
    "count_pdf_pages",
]
