"""
流水线模块 - 单文档与批量导出编排

子模块：
- stages: 导出阶段定义
- executor: 导出执行器（渲染面独占、批量节流）
- packager: manifest 生成
"""

from .stages import StageEnum
from .executor import DocumentExporter, output_file_name
from .packager import ManifestWriter

__all__ = [
    "StageEnum",
    "DocumentExporter",
    "output_file_name",
    "ManifestWriter",
]
