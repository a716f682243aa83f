"""
页面几何常量 - 唯一物理版式（A4，毫米）

构建期固定，不提供运行期配置。
渲染面按名义宽度 NOMINAL_WIDTH_PX 排版，对应整页宽度 A4.page_width；
左右页边距由渲染面以侧边留白的形式绘入区域内。
"""

from __future__ import annotations

from ..models import PageGeometry

A4 = PageGeometry(
    page_width=210.0,
    page_height=297.0,
    margin=10.0,
    header_gap=5.0,
    footer_gap=5.0,
)

# 名义排版宽度（像素）与测量失败时的兜底宽度
NOMINAL_WIDTH_PX = 800
DEFAULT_PIXEL_WIDTH = 800

# 估算用的固定页眉/页脚预留（毫米，含间距；不做实测）
ESTIMATE_HEADER_ALLOWANCE = 62.0
ESTIMATE_FOOTER_ALLOWANCE = 24.0


def side_padding_px(geometry: PageGeometry = A4, width_px: int = NOMINAL_WIDTH_PX) -> int:
    """左右页边距对应的像素留白"""
    return round(geometry.margin / geometry.page_width * width_px)
