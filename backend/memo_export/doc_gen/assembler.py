"""
页面合成器 - 按分页计划逐页合成

每页流程：
1. header 页码字段设为 "{page} of {total}"，重新栅格化 header（唯一逐页重绘的区域）
2. 页面画布上自上而下：上边距 → header → title → info → 页眉间距 → 正文切片
   → （仅末页）页脚间距 → footer
3. 产出 ExportedPage，由调用方写入输出后释放（同一时刻只持有一页）

保证：
- 第1页页码为 "1 of M"
- 只有末页带 footer
- 各页 header 仅页码框不同

测试要点：
- test_footer_only_last_page: 页脚只在末页
- test_first_page_counter: 第1页页码
- test_header_rasterized_per_page: header 每页重绘
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from PIL import Image

from ..models import ExportedPage, PageGeometry, PaginationPlan, Raster, RegionName
from ..layout.geometry import A4

if TYPE_CHECKING:
    from ..config import LetterheadTemplate
    from ..interfaces import IRenderSurface
    from .rasterizer import Rasterizer

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)

# 页眉块中只栅格化一次、逐页复用的区域
STATIC_HEADER_REGIONS = (RegionName.TITLE, RegionName.INFO)


class PageAssembler:
    """页面合成器"""

    def __init__(
        self,
        rasterizer: Rasterizer,
        template: LetterheadTemplate,
        geometry: PageGeometry = A4,
    ):
        self.rasterizer = rasterizer
        self.template = template
        self.geometry = geometry

    def page_size_px(self, units_per_pixel: float) -> tuple[int, int]:
        """整页画布像素尺寸"""
        g = self.geometry
        return round(g.page_width / units_per_pixel), round(g.page_height / units_per_pixel)

    async def iter_pages(
        self,
        surface: IRenderSurface,
        plan: PaginationPlan,
        rasters: dict[RegionName, Raster],
        units_per_pixel: float,
    ) -> AsyncIterator[ExportedPage]:
        """
        逐页合成

        Args:
            surface: 渲染面（用于重绘 header）
            plan: 分页计划
            rasters: 一次性栅格化的区域（body 必须存在，title/info/footer 可选）
            units_per_pixel: 位图每像素毫米数
        """
        g = self.geometry
        body = rasters[RegionName.BODY]
        footer = rasters.get(RegionName.FOOTER)
        static_block = [rasters[name] for name in STATIC_HEADER_REGIONS if name in rasters]

        page_w, page_h = self.page_size_px(units_per_pixel)
        margin_px = round(g.margin / units_per_pixel)
        header_gap_px = round(g.header_gap / units_per_pixel)
        footer_gap_px = round(g.footer_gap / units_per_pixel)

        for page_slice in plan.slices:
            # 1. 重绘 header
            counter = self.template.format_counter(page_slice.page_index, plan.total_pages)
            surface.set_page_counter(counter)
            header = await self.rasterizer.rasterize(surface, RegionName.HEADER)

            # 2. 合成
            canvas = Image.new("RGB", (page_w, page_h), WHITE)
            y = margin_px
            for raster in (header, *static_block):
                y = self._paste(canvas, raster.image, y)
            y += header_gap_px

            if page_slice.pixel_height > 0:
                chunk = body.image.crop(
                    (0, page_slice.body_pixel_start, body.width, page_slice.body_pixel_end)
                )
                y = self._paste(canvas, chunk, y)

            is_last = page_slice.page_index == plan.total_pages
            has_footer = is_last and footer is not None
            if has_footer:
                y += footer_gap_px
                y = self._paste(canvas, footer.image, y)

            if y > page_h - margin_px + 1:
                logger.warning(
                    f"第{page_slice.page_index}页内容超出下边距: {y}px > {page_h - margin_px}px"
                )

            yield ExportedPage(
                page_index=page_slice.page_index,
                image=canvas,
                has_footer=has_footer,
                header_counter=counter,
            )

    def _paste(self, canvas: Image.Image, image: Image.Image, y: int) -> int:
        """贴到页面左缘（区域自带左右留白），返回新的纵向位置"""
        if image.width != canvas.width and image.width > 0:
            height = round(image.height * canvas.width / image.width)
            image = image.resize((canvas.width, height))
        if image.height > 0:
            canvas.paste(image, (0, y))
        return y + image.height
