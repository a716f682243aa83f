"""
页数估算器 - 仅凭正文文本预估页数（编辑期实时提示）

算法：
1. 按段落切分正文（与格式化器一致）
2. 以名义宽度、固定字宽/行高/段距合成离屏测量高度
3. 套用与测量器相同的比例换算为毫米
4. 除以"缩减"的每页可用高度（扣除固定页眉/页脚预留，非实测）

说明：
- 估算只作提示，导出流程从不依赖估算结果
- 固定预留与实际导出的实测页眉/页脚不同，临界处可能相差一页（保留原行为）
- 固定字宽保证：段落数不变时，页数随文本长度单调不减

测试要点：
- test_estimate_empty: 空文本 → 1页
- test_estimate_monotonic: 单调性
- test_estimate_long_text: 长文本多页
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from ..config import FontSpec
from ..models import BlockKind, PageGeometry
from ..render.formatter import split_paragraphs
from ..render.text_layout import BodyMetrics
from .geometry import (
    A4,
    ESTIMATE_FOOTER_ALLOWANCE,
    ESTIMATE_HEADER_ALLOWANCE,
    NOMINAL_WIDTH_PX,
    side_padding_px,
)
from .measurer import scale_factor_for


class PageEstimate(BaseModel):
    """估算结果"""
    total_pages: int
    body_height_units: float
    per_page_units: float


class PageEstimator:
    """页数估算器"""

    def __init__(
        self,
        geometry: PageGeometry = A4,
        fonts: FontSpec | None = None,
        width_px: int = NOMINAL_WIDTH_PX,
        header_allowance: float = ESTIMATE_HEADER_ALLOWANCE,
        footer_allowance: float = ESTIMATE_FOOTER_ALLOWANCE,
    ):
        self.geometry = geometry
        self.metrics = BodyMetrics.from_fonts(fonts or FontSpec())
        self.width_px = width_px
        self.header_allowance = header_allowance
        self.footer_allowance = footer_allowance
        # 标题段与普通段取同一组（较大的）度量，段落语义变化不影响单调性
        self.line_height = max(self.metrics.line_height(k) for k in BlockKind)
        self.glyph_width = max(self.metrics.avg_glyph_width(k) for k in BlockKind)

    @property
    def per_page_units(self) -> float:
        """缩减后的每页正文高度（毫米）"""
        return self.geometry.usable_height - self.header_allowance - self.footer_allowance

    def estimate(self, body_text: str | None) -> PageEstimate:
        """估算页数"""
        height_px = self._synthesize_height(body_text)
        body_units = height_px * scale_factor_for(self.width_px, self.geometry)
        per_page = self.per_page_units
        total = max(1, math.ceil(round(body_units / per_page, 9)))
        return PageEstimate(total_pages=total, body_height_units=body_units, per_page_units=per_page)

    def _synthesize_height(self, body_text: str | None) -> float:
        """离屏合成正文高度（像素）"""
        paragraphs = split_paragraphs(body_text)
        if not paragraphs:
            return 0.0

        m = self.metrics
        height = float(m.padding)
        for paragraph in paragraphs:
            height += self.lines_for(paragraph) * self.line_height + m.paragraph_spacing
        return height + m.padding

    def lines_for(self, text: str) -> int:
        """单段落估算行数"""
        line_width = self.width_px - 2 * side_padding_px(self.geometry, self.width_px)
        chars_per_line = max(1, int(line_width // self.glyph_width))
        return max(1, math.ceil(len(text) / chars_per_line))
