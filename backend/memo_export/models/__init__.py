"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- DocumentContent: 文档内容记录（只读输入）
- RenderedRegion/MeasuredLayout: 区域测量结果
- PageGeometry/PaginationPlan/PageSlice: 页面几何与分页计划
- ExportJob/BatchReport: 导出任务状态
"""

from .content import BlockKind, CommunicationType, ContentBlock, DocumentContent
from .job import BatchReport, ExportJob, JobStatus
from .layout import (
    HEADER_BLOCK,
    ExportedPage,
    MeasuredLayout,
    PageGeometry,
    PageSlice,
    PaginationPlan,
    Raster,
    RegionName,
    RenderedRegion,
)

__all__ = [
    "DocumentContent",
    "CommunicationType",
    "ContentBlock",
    "BlockKind",
    "RegionName",
    "HEADER_BLOCK",
    "RenderedRegion",
    "MeasuredLayout",
    "PageGeometry",
    "PageSlice",
    "PaginationPlan",
    "Raster",
    "ExportedPage",
    "ExportJob",
    "JobStatus",
    "BatchReport",
]
