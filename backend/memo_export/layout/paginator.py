"""
分页器 - 计算页数与每页正文位图切片

算法：
    C = 可用页高 − (页眉块 + 页眉间距) − (页脚 + 页脚间距)
    total_pages = max(1, ceil(正文高度 / C))
    第p页切片 = [(p−1)·C, min(p·C, 正文高度)) 换算为正文位图像素

约束：
1. 切片首尾相接，首片从0开始，末片止于正文位图高度
2. 正文高度恰为 C 的整数倍时不多出一页（比值取9位小数后再向上取整）
3. 正文为空 → 1页，空切片（页眉/页脚照常输出）
4. C <= 0 → InvalidPageGeometry（必须在任何栅格化之前校验）
5. 页眉不切片（每页重绘页码）；页脚不跨页，只在末页

测试要点：
- test_total_pages_formula: 页数公式
- test_total_pages_monotonic: 页数单调不减
- test_slices_contiguous: 切片连续性
- test_exact_boundary_no_extra_page: 整倍数边界
- test_last_page_never_empty: 正文略超整倍数时末页仍有切片
- test_empty_body_single_page: 空正文
- test_invalid_geometry: 页眉+页脚超出页高
"""

from __future__ import annotations

import logging
import math

from ..interfaces import InvalidPageGeometry
from ..models import PageGeometry, PageSlice, PaginationPlan
from .geometry import A4

logger = logging.getLogger(__name__)

# 页数比值的舍入精度（抵消浮点误差）
RATIO_PRECISION = 9


def total_pages_for(body_units: float, content_height: float) -> int:
    """页数 = max(1, ceil(正文高度 / 每页正文高度))"""
    if content_height <= 0:
        raise InvalidPageGeometry(content_height)
    if body_units <= 0:
        return 1
    return max(1, math.ceil(round(body_units / content_height, RATIO_PRECISION)))


class Paginator:
    """分页器"""

    def __init__(self, geometry: PageGeometry = A4):
        self.geometry = geometry

    def content_height(self, header_units: float, footer_units: float) -> float:
        """每页正文可用高度（毫米）"""
        g = self.geometry
        return g.usable_height - (header_units + g.header_gap) - (footer_units + g.footer_gap)

    def validate(self, header_units: float, footer_units: float) -> float:
        """校验页面几何，返回每页正文高度"""
        content_height = self.content_height(header_units, footer_units)
        if content_height <= 0:
            raise InvalidPageGeometry(
                content_height,
                f"页眉({header_units:.2f}mm)+页脚({footer_units:.2f}mm)超出可用页高"
                f"({self.geometry.usable_height:.2f}mm)",
            )
        return content_height

    def plan(
        self,
        body_units: float,
        header_units: float,
        footer_units: float,
        body_raster_height: int,
        units_per_pixel: float,
    ) -> PaginationPlan:
        """
        生成分页计划

        Args:
            body_units: 正文高度（毫米）
            header_units: 页眉块高度（毫米）
            footer_units: 页脚高度（毫米，无页脚为0）
            body_raster_height: 正文位图高度（像素）
            units_per_pixel: 正文位图每像素对应毫米数

        Returns:
            PaginationPlan
        """
        if units_per_pixel <= 0:
            raise ValueError(f"units_per_pixel 必须为正: {units_per_pixel}")

        content_height = self.validate(header_units, footer_units)
        total = total_pages_for(body_units, content_height)
        content_px = content_height / units_per_pixel

        slices: list[PageSlice] = []
        start = 0
        for page_index in range(1, total + 1):
            if page_index == total:
                end = body_raster_height
            else:
                # 向下取整，末页切片至少1像素
                end = min(
                    math.floor(round(page_index * content_px, RATIO_PRECISION)),
                    body_raster_height,
                )
            slices.append(PageSlice(page_index=page_index, body_pixel_start=start, body_pixel_end=end))
            start = end

        logger.debug(
            f"分页: 正文 {body_units:.2f}mm / 每页 {content_height:.2f}mm → {total} 页"
        )
        return PaginationPlan(
            slices=tuple(slices),
            content_height_per_page=content_height,
            body_raster_height=body_raster_height,
        )
