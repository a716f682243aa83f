"""
公文分页导出引擎 - 后端核心模块

模块结构：
- config/     运行期参数与信头模板
- models/     数据模型定义
- render/     区域渲染（Pillow 渲染面）
- layout/     测量/估算/分页
- doc_gen/    栅格化/页面合成/PDF编码
- pipeline/   单文档与批量导出编排
"""

__version__ = "0.1.0"
