"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 渲染面（surface）与编码器（encoder）是外部协作方，引擎只依赖接口
3. 便于单元测试和mock替换

使用方式：
    from memo_export.interfaces import IRenderSurface

    class MySurface(IRenderSurface):
        async def render(self, content: DocumentContent) -> None:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PIL import Image

    from .models import DocumentContent, RegionName


# ============================================================================
# 渲染面接口（外部协作方边界）
# ============================================================================

class IRenderSurface(ABC):
    """渲染面接口 - 产出命名区域并提供尺寸与快照"""

    @abstractmethod
    async def render(self, content: DocumentContent) -> None:
        """
        清空并按文档内容重新填充全部区域

        实现方需在返回前等待区域内嵌图片全部就绪（或判定失败）。

        Args:
            content: 文档内容记录
        """
        ...

    @abstractmethod
    def has_region(self, name: RegionName) -> bool:
        """区域是否存在（footer 可选）"""
        ...

    @abstractmethod
    def region_size(self, name: RegionName) -> tuple[int, int]:
        """
        区域当前像素尺寸

        Returns:
            (宽, 高)，未渲染时宽为0
        """
        ...

    @abstractmethod
    def document_size(self) -> tuple[int, int]:
        """整篇文档的像素尺寸（各区域纵向堆叠）"""
        ...

    @abstractmethod
    async def snapshot(self, name: RegionName, scale: float) -> Image.Image:
        """
        将区域栅格化为位图

        Args:
            name: 区域名
            scale: 栅格倍率（位图像素 = 布局像素 × scale）

        Raises:
            RasterizationFailed: 快照失败
        """
        ...

    @abstractmethod
    def set_page_counter(self, text: str) -> None:
        """更新 header 中的页码字段并重新排版 header"""
        ...

    @abstractmethod
    def clear(self) -> None:
        """释放全部区域"""
        ...

    @property
    def flags(self) -> list[str]:
        """渲染期间的非致命降级标记"""
        return []


# ============================================================================
# 文档编码器接口
# ============================================================================

class IDocumentEncoder(ABC):
    """多页文档编码器接口 - 位图逐页写入输出文档"""

    @abstractmethod
    def open(self, output_path: Path, page_size_mm: tuple[float, float]) -> None:
        """开始一份新文档"""
        ...

    @abstractmethod
    def add_page(self, image: Image.Image) -> None:
        """追加一页（位图尺寸对应整页）"""
        ...

    @abstractmethod
    def close(self) -> Path:
        """完成文档，返回最终文件路径"""
        ...

    @abstractmethod
    def discard(self) -> None:
        """丢弃未完成的文档（不留半成品）"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class MemoExportError(Exception):
    """基础异常"""
    pass


class RenderNotReady(MemoExportError):
    """区域尚未渲染（测得宽度为0）"""
    pass


class RasterizationFailed(MemoExportError):
    """区域快照失败"""

    def __init__(self, region: str, message: str = ""):
        self.region = region
        super().__init__(message or f"区域栅格化失败: {region}")


class InvalidPageGeometry(MemoExportError):
    """页眉+页脚预留超过可用页高"""

    def __init__(self, content_height: float, message: str = ""):
        self.content_height = content_height
        super().__init__(
            message or f"页面几何无效: 正文可用高度 {content_height:.2f}mm <= 0"
        )


class DocumentExportError(MemoExportError):
    """单文档导出致命错误（标注文档编号与阶段）"""

    def __init__(self, code: str, stage: str, cause: BaseException | None = None):
        self.code = code
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"[{code}] 阶段 {stage} 失败{detail}")


class EncoderError(MemoExportError):
    """输出文档编码失败"""
    pass


class BatchItemFailed(MemoExportError):
    """批量导出中单项失败（不中断批次）"""

    def __init__(self, code: str, stage: str, reason: str):
        self.code = code
        self.stage = stage
        self.reason = reason
        super().__init__(f"批量导出单项失败 [{code}] {stage}: {reason}")
