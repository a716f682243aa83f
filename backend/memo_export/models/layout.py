"""
版面模型 - 区域/页面几何/分页计划

单位约定：
- *_px / pixel_*: 渲染面或位图像素
- 其余长度: 物理单位（毫米）
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from PIL import Image


class RegionName(str, Enum):
    """文档区域"""
    HEADER = "header"
    TITLE = "title"
    INFO = "info"
    BODY = "body"
    FOOTER = "footer"


# 每页重复的页眉块（header + title + info 纵向堆叠）
HEADER_BLOCK: tuple[RegionName, ...] = (RegionName.HEADER, RegionName.TITLE, RegionName.INFO)


class PageGeometry(BaseModel):
    """物理页面常量（毫米）"""
    page_width: float
    page_height: float
    margin: float
    header_gap: float = 5.0
    footer_gap: float = 5.0

    model_config = {"frozen": True}

    @property
    def usable_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def usable_height(self) -> float:
        return self.page_height - 2 * self.margin


class RenderedRegion(BaseModel):
    """已渲染区域的像素尺寸"""
    name: RegionName
    pixel_width: int
    pixel_height: int

    model_config = {"frozen": True}


class MeasuredLayout(BaseModel):
    """一次导出的测量结果"""
    pixel_width: int
    scale_factor: float = Field(..., gt=0, description="毫米/像素")
    document_height: int = 0
    regions: dict[RegionName, RenderedRegion] = Field(default_factory=dict)
    degraded: bool = False

    model_config = {"frozen": True}

    def to_units(self, pixels: float) -> float:
        """像素 → 毫米"""
        return pixels * self.scale_factor

    def region_units(self, name: RegionName) -> float:
        """区域高度（毫米），区域不存在时为0"""
        region = self.regions.get(name)
        return self.to_units(region.pixel_height) if region else 0.0

    def header_block_units(self) -> float:
        """页眉块总高度（毫米）"""
        return sum(self.region_units(name) for name in HEADER_BLOCK)


class PageSlice(BaseModel):
    """单页正文切片（正文位图像素区间 [start, end)）"""
    page_index: int = Field(..., ge=1)
    body_pixel_start: int = Field(..., ge=0)
    body_pixel_end: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def pixel_height(self) -> int:
        return self.body_pixel_end - self.body_pixel_start


class PaginationPlan(BaseModel):
    """分页计划（构建完成后只读）"""
    slices: tuple[PageSlice, ...]
    content_height_per_page: float
    body_raster_height: int

    model_config = {"frozen": True}

    @property
    def total_pages(self) -> int:
        return len(self.slices)

    def boundaries(self) -> list[tuple[int, int]]:
        """切片边界列表（用于比较两次计划）"""
        return [(s.body_pixel_start, s.body_pixel_end) for s in self.slices]


@dataclass
class Raster:
    """区域位图"""
    region: RegionName
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass
class ExportedPage:
    """合成后的一页（追加到输出后即释放）"""
    page_index: int
    image: Image.Image
    has_footer: bool = False
    header_counter: str = ""
