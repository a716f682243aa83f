"""
导出流水线阶段定义

单文档导出按以下顺序执行，致命错误以阶段名标注：
RENDER → MEASURE → VALIDATE → RASTERIZE → PAGINATE → ASSEMBLE → ENCODE

VALIDATE 必须位于 RASTERIZE 之前：页面几何无效时不产生任何快照。
"""

from __future__ import annotations

from enum import Enum


class StageEnum(str, Enum):
    """导出阶段枚举"""
    RENDER = "RENDER"
    MEASURE = "MEASURE"
    VALIDATE = "VALIDATE"
    RASTERIZE = "RASTERIZE"
    PAGINATE = "PAGINATE"
    ASSEMBLE = "ASSEMBLE"
    ENCODE = "ENCODE"
