"""
栅格化器 - 区域 → 固定倍率位图

职责：
1. 调用渲染面快照原语
2. 统一输出 RGB 位图
3. 快照失败统一为 RasterizationFailed（是否致命由调用方决定）
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..interfaces import RasterizationFailed
from ..models import Raster, RegionName

if TYPE_CHECKING:
    from ..interfaces import IRenderSurface

logger = logging.getLogger(__name__)


class Rasterizer:
    """区域栅格化器"""

    def __init__(self, scale: float = 2.0):
        if scale <= 0:
            raise ValueError(f"栅格倍率必须为正: {scale}")
        self.scale = scale

    async def rasterize(self, surface: IRenderSurface, region: RegionName) -> Raster:
        """栅格化单个区域"""
        try:
            image = await surface.snapshot(region, self.scale)
        except RasterizationFailed:
            raise
        except Exception as e:
            raise RasterizationFailed(region.value, f"区域快照失败 {region.value}: {e}") from e

        if image.mode != "RGB":
            image = image.convert("RGB")
        logger.debug(f"栅格化 {region.value}: {image.width}x{image.height}")
        return Raster(region=region, image=image)

    async def rasterize_many(
        self, surface: IRenderSurface, regions: list[RegionName]
    ) -> dict[RegionName, Raster]:
        """按顺序栅格化多个区域（不并发，共享渲染面）"""
        rasters: dict[RegionName, Raster] = {}
        for region in regions:
            rasters[region] = await self.rasterize(surface, region)
        return rasters
