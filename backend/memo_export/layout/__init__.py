"""
版面模块 - 测量/估算/分页

子模块：
- geometry: A4 页面常量与名义宽度
- measurer: 像素测量与比例换算
- paginator: 分页计划（核心算法）
- estimator: 编辑期页数估算
"""

from .geometry import A4, DEFAULT_PIXEL_WIDTH, NOMINAL_WIDTH_PX
from .measurer import LayoutMeasurer, scale_factor_for
from .paginator import Paginator, total_pages_for
from .estimator import PageEstimate, PageEstimator

__all__ = [
    "A4",
    "NOMINAL_WIDTH_PX",
    "DEFAULT_PIXEL_WIDTH",
    "LayoutMeasurer",
    "scale_factor_for",
    "Paginator",
    "total_pages_for",
    "PageEstimator",
    "PageEstimate",
]
