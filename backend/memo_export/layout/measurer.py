"""
版面测量器 - 读取渲染面像素尺寸并计算物理比例

职责：
1. 读取整篇文档与各区域的像素宽高
2. 计算比例 scale_factor = 页面物理宽度 / 像素宽度
3. 宽度为0（未渲染/不可见）时等待后重试一次，仍为0则退回默认宽度（降级精度）

测试要点：
- test_measure_scale_factor: 比例计算
- test_measure_regions: 区域尺寸收集
- test_render_not_ready_retry: 重试一次后恢复
- test_render_not_ready_fallback: 退回默认宽度并标记降级
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..interfaces import RenderNotReady
from ..models import MeasuredLayout, PageGeometry, RegionName, RenderedRegion
from .geometry import A4, DEFAULT_PIXEL_WIDTH

if TYPE_CHECKING:
    from ..interfaces import IRenderSurface

logger = logging.getLogger(__name__)


def scale_factor_for(pixel_width: int, geometry: PageGeometry = A4) -> float:
    """物理宽度 / 像素宽度"""
    if pixel_width <= 0:
        raise RenderNotReady(f"像素宽度无效: {pixel_width}")
    return geometry.page_width / pixel_width


class LayoutMeasurer:
    """版面测量器"""

    def __init__(
        self,
        geometry: PageGeometry = A4,
        retry_delay_ms: int = 100,
        default_width: int = DEFAULT_PIXEL_WIDTH,
    ):
        self.geometry = geometry
        self.retry_delay_ms = retry_delay_ms
        self.default_width = default_width

    async def measure(self, surface: IRenderSurface) -> MeasuredLayout:
        """测量已渲染文档"""
        degraded = False
        try:
            pixel_width = self._read_width(surface)
        except RenderNotReady:
            # 1. 等待后重试一次
            logger.warning(f"渲染面未就绪，{self.retry_delay_ms}ms 后重试")
            await asyncio.sleep(self.retry_delay_ms / 1000)
            try:
                pixel_width = self._read_width(surface)
            except RenderNotReady:
                # 2. 退回默认宽度（降级精度，不报错）
                logger.warning(f"渲染面仍未就绪，退回默认宽度 {self.default_width}px")
                pixel_width = self.default_width
                degraded = True

        regions: dict[RegionName, RenderedRegion] = {}
        for name in RegionName:
            if not surface.has_region(name):
                continue
            width, height = surface.region_size(name)
            if width and width != pixel_width:
                logger.warning(f"区域宽度不一致: {name.value}={width}px, 文档={pixel_width}px")
            regions[name] = RenderedRegion(name=name, pixel_width=pixel_width, pixel_height=height)

        _, document_height = surface.document_size()
        return MeasuredLayout(
            pixel_width=pixel_width,
            scale_factor=scale_factor_for(pixel_width, self.geometry),
            document_height=document_height,
            regions=regions,
            degraded=degraded,
        )

    def _read_width(self, surface: IRenderSurface) -> int:
        width, _ = surface.document_size()
        if width <= 0:
            raise RenderNotReady("渲染面宽度为0")
        return width
