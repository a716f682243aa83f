"""
导出执行器 - 单文档导出与批量导出编排

职责：
1. 独占渲染面（asyncio.Lock + 作用域租用，进入前清空、任何出口都清空）
2. 按阶段执行：渲染 → 测量 → 几何校验 → 栅格化 → 分页 → 合成 → 编码
3. 致命错误标注文档编号与阶段，半成品文件一律删除
4. 批量导出严格串行，条目之间节流，单项失败不中断批次

测试要点：
- test_export_writes_pdf: 单文档导出
- test_export_idempotent: 同一输入两次导出分页一致
- test_invalid_geometry_before_rasterize: 几何无效时零快照
- test_batch_with_failure: 5条中1条失败
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from ..config import LetterheadTemplate, RuntimeConfig, get_config, load_template
from ..doc_gen import PageAssembler, PDFEncoder, Rasterizer
from ..interfaces import (
    BatchItemFailed,
    DocumentExportError,
    IDocumentEncoder,
    IRenderSurface,
)
from ..layout import A4, LayoutMeasurer, PageEstimator, Paginator
from ..models import BatchReport, DocumentContent, ExportJob, PageGeometry, RegionName
from ..render import PillowRenderSurface
from .packager import ManifestWriter
from .stages import StageEnum

logger = logging.getLogger(__name__)

# 文件名中不允许出现的字符
_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\s]+')

# 只栅格化一次的区域（header 由合成器逐页重绘）
_ONCE_REGIONS = (RegionName.TITLE, RegionName.INFO, RegionName.BODY, RegionName.FOOTER)

FLAG_RENDER_FALLBACK = "render_not_ready_fallback"


def document_code(content: DocumentContent, template: LetterheadTemplate) -> str:
    """文档编号（缺失时使用占位编号）"""
    code = (content.code or "").strip()
    return code or template.missing_code


def output_file_name(content: DocumentContent, template: LetterheadTemplate) -> str:
    """按模板生成输出文件名，替换不安全字符"""
    code = _UNSAFE_CHARS.sub("_", document_code(content, template)).strip("._")
    return template.file_name_pattern.format(code=code or template.missing_code)


class DocumentExporter:
    """文档导出执行器"""

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        template: LetterheadTemplate | None = None,
        surface: IRenderSurface | None = None,
        encoder_factory: Callable[[], IDocumentEncoder] = PDFEncoder,
        geometry: PageGeometry = A4,
    ):
        self.config = config or get_config()
        self.template = template or load_template(self.config.template_path)
        self.geometry = geometry
        self.surface = surface or PillowRenderSurface(
            self.template,
            image_timeout_sec=self.config.timeouts.image_load_sec,
        )
        self.encoder_factory = encoder_factory

        self.measurer = LayoutMeasurer(
            geometry, retry_delay_ms=self.config.timeouts.render_retry_delay_ms
        )
        self.estimator = PageEstimator(geometry, self.template.fonts)
        self.paginator = Paginator(geometry)
        self.rasterizer = Rasterizer(self.config.raster.scale)
        self.assembler = PageAssembler(self.rasterizer, self.template, geometry)
        self.manifest_writer = ManifestWriter()

        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def acquire_surface(self) -> AsyncIterator[IRenderSurface]:
        """独占渲染面：进入前清空，退出时（含异常/取消）清空"""
        async with self._lock:
            self.surface.clear()
            try:
                yield self.surface
            finally:
                self.surface.clear()

    # ------------------------------------------------------------------
    # 单文档
    # ------------------------------------------------------------------

    async def export_one(
        self,
        content: DocumentContent,
        output_dir: Path | None = None,
        job: ExportJob | None = None,
    ) -> ExportJob:
        """
        导出单个文档

        Raises:
            DocumentExportError: 致命错误（含编号与阶段），不产生输出文件
        """
        job = job or ExportJob(code=document_code(content, self.template))
        file_name = output_file_name(content, self.template)
        output_path = output_dir / file_name if output_dir else self.config.get_output_path(file_name)
        job.estimated_pages = self.estimator.estimate(content.body_text).total_pages
        logger.info(f"[{job.code}] 开始导出 → {output_path}")

        async with self.acquire_surface() as surface:
            encoder = self.encoder_factory()
            try:
                await self._run(surface, encoder, content, job, output_path)
            except Exception as e:
                encoder.discard()
                error = DocumentExportError(job.code, job.stage, e)
                logger.error(str(error))
                job.mark_failed(str(error))
                raise error from e
            except BaseException:
                # 取消：不留半成品
                encoder.discard()
                job.mark_failed(f"[{job.code}] 阶段 {job.stage} 中断")
                raise
            finally:
                for flag in surface.flags:
                    job.add_flag(flag)

        if job.estimated_pages != job.total_pages:
            logger.info(
                f"[{job.code}] 估算页数 {job.estimated_pages} 与实际页数 {job.total_pages} 不一致"
            )
        logger.info(f"[{job.code}] 导出完成: {job.total_pages} 页")
        return job

    async def _run(
        self,
        surface: IRenderSurface,
        encoder: IDocumentEncoder,
        content: DocumentContent,
        job: ExportJob,
        output_path: Path,
    ) -> None:
        # 1. 渲染
        job.mark_running(StageEnum.RENDER.value)
        await surface.render(content)

        # 2. 测量（每次导出重新计算比例）
        self._enter(job, StageEnum.MEASURE)
        layout = await self.measurer.measure(surface)
        if layout.degraded:
            job.add_flag(FLAG_RENDER_FALLBACK)

        # 3. 几何校验（在任何栅格化之前）
        self._enter(job, StageEnum.VALIDATE)
        header_units = layout.header_block_units()
        footer_units = layout.region_units(RegionName.FOOTER)
        self.paginator.validate(header_units, footer_units)

        # 4. 栅格化固定区域
        self._enter(job, StageEnum.RASTERIZE)
        regions = [name for name in _ONCE_REGIONS if surface.has_region(name)]
        rasters = await self.rasterizer.rasterize_many(surface, regions)

        # 5. 分页
        self._enter(job, StageEnum.PAGINATE)
        units_per_pixel = layout.scale_factor / self.rasterizer.scale
        body = rasters[RegionName.BODY]
        plan = self.paginator.plan(
            body_units=body.height * units_per_pixel,
            header_units=header_units,
            footer_units=footer_units,
            body_raster_height=body.height,
            units_per_pixel=units_per_pixel,
        )
        job.slice_boundaries = plan.boundaries()

        # 6. 逐页合成并写出
        encoder.open(output_path, (self.geometry.page_width, self.geometry.page_height))
        self._enter(job, StageEnum.ASSEMBLE)
        async for page in self.assembler.iter_pages(surface, plan, rasters, units_per_pixel):
            job.stage = StageEnum.ENCODE.value
            encoder.add_page(page.image)
            job.stage = StageEnum.ASSEMBLE.value

        # 7. 完成输出
        self._enter(job, StageEnum.ENCODE)
        final_path = encoder.close()
        job.mark_succeeded(final_path, plan.total_pages)

    @staticmethod
    def _enter(job: ExportJob, stage: StageEnum) -> None:
        job.stage = stage.value
        logger.debug(f"[{job.code}] 阶段: {stage.value}")

    # ------------------------------------------------------------------
    # 批量
    # ------------------------------------------------------------------

    async def export_batch(
        self,
        contents: Sequence[DocumentContent],
        output_dir: Path | None = None,
    ) -> BatchReport:
        """
        批量导出（严格串行，条目之间节流）

        单项失败记为 BatchItemFailed，继续后续条目。
        """
        output_dir = output_dir or self.config.output_dir
        pacing_sec = self.config.batch.pacing_delay_ms / 1000
        report = BatchReport()
        logger.info(f"批量导出开始: {len(contents)} 条 → {output_dir}")

        for index, content in enumerate(contents):
            if index > 0 and pacing_sec > 0:
                await asyncio.sleep(pacing_sec)

            job = ExportJob(code=document_code(content, self.template))
            report.jobs.append(job)
            try:
                await self.export_one(content, output_dir, job=job)
            except DocumentExportError as e:
                failure = BatchItemFailed(e.code, e.stage, str(e.cause))
                report.record_failure(failure)
                logger.warning(str(failure))

        report.finished_at = datetime.now()
        logger.info(
            f"批量导出结束: 成功 {len(report.succeeded)} 条, 失败 {len(report.failed)} 条"
        )

        if self.config.batch.write_manifest:
            self.manifest_writer.write(report, output_dir)
        return report
