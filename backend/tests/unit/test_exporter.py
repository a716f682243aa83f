"""
导出执行器单元测试
"""

import asyncio
import json

import pytest

from memo_export.doc_gen import count_pdf_pages
from memo_export.interfaces import DocumentExportError
from memo_export.models import DocumentContent, JobStatus, RegionName
from memo_export.pipeline import DocumentExporter, output_file_name
from memo_export.pipeline.executor import FLAG_RENDER_FALLBACK


@pytest.fixture
def exporter(runtime_config, template, fake_surface) -> DocumentExporter:
    return DocumentExporter(config=runtime_config, template=template, surface=fake_surface)


class TestOutputFileName:
    """输出文件命名测试"""

    def test_code_file_name(self, template):
        """测试按编号命名"""
        assert output_file_name(DocumentContent(code="COM-7"), template) == "COM-7.pdf"

    def test_unsafe_characters(self, template):
        """测试替换不安全字符"""
        assert output_file_name(DocumentContent(code="A/B: 1"), template) == "A_B_1.pdf"

    def test_missing_code(self, template):
        """测试缺少编号"""
        assert output_file_name(DocumentContent(code=None), template) == "no-code.pdf"
        assert output_file_name(DocumentContent(code="  "), template) == "no-code.pdf"


class TestExportOne:
    """单文档导出测试"""

    def test_export_writes_pdf(self, exporter, runtime_config, sample_content):
        """测试导出多页PDF"""
        job = asyncio.run(exporter.export_one(sample_content))

        output = runtime_config.output_dir / "COM-2024-001.pdf"
        assert job.status == JobStatus.SUCCEEDED
        assert job.output_path == output
        assert job.total_pages == 2
        assert output.exists()
        assert count_pdf_pages(output) == 2
        assert list(runtime_config.output_dir.glob("*.part")) == []

    def test_export_idempotent(
        self, runtime_config, template, fake_surface, encoder_factory, sample_content
    ):
        """测试同一输入两次导出分页一致"""
        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=fake_surface,
            encoder_factory=encoder_factory,
        )
        first = asyncio.run(exporter.export_one(sample_content))
        second = asyncio.run(exporter.export_one(sample_content))

        assert first.total_pages == second.total_pages == 2
        assert first.slice_boundaries == second.slice_boundaries
        first_pages, second_pages = (e.pages for e in encoder_factory.encoders)
        assert [p.tobytes() for p in first_pages] == [p.tobytes() for p in second_pages]

    def test_invalid_geometry_before_rasterize(
        self, runtime_config, template, surface_factory, encoder_factory, sample_content
    ):
        """测试页眉+页脚超出页高：VALIDATE 阶段失败，零快照，无输出"""
        surface = surface_factory(region_heights={RegionName.HEADER: 900})
        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=surface,
            encoder_factory=encoder_factory,
        )
        with pytest.raises(DocumentExportError) as exc_info:
            asyncio.run(exporter.export_one(sample_content))

        assert exc_info.value.code == "COM-2024-001"
        assert exc_info.value.stage == "VALIDATE"
        assert surface.snapshot_calls == []
        assert encoder_factory.encoders[0].pages == []
        assert not (runtime_config.output_dir / "COM-2024-001.pdf").exists()

    def test_failure_discards_partial_output(
        self, runtime_config, template, surface_factory, encoder_factory, sample_content
    ):
        """测试栅格化失败：标注阶段，丢弃输出，渲染面已清空"""
        surface = surface_factory(failing_codes={sample_content.code})
        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=surface,
            encoder_factory=encoder_factory,
        )
        with pytest.raises(DocumentExportError) as exc_info:
            asyncio.run(exporter.export_one(sample_content))

        assert exc_info.value.stage == "RASTERIZE"
        assert encoder_factory.encoders[0].discarded
        assert not encoder_factory.encoders[0].closed
        assert surface.content is None

    def test_unexpected_error_wrapped(
        self, runtime_config, template, surface_factory, encoder_factory, sample_content
    ):
        """测试渲染面抛出非预期异常：仍包装为 DocumentExportError 并丢弃输出"""

        class BrokenSurface(surface_factory):
            async def render(self, content):
                await super().render(content)
                raise TypeError("layout engine crashed")

        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=BrokenSurface(),
            encoder_factory=encoder_factory,
        )
        with pytest.raises(DocumentExportError) as exc_info:
            asyncio.run(exporter.export_one(sample_content))

        assert exc_info.value.code == "COM-2024-001"
        assert exc_info.value.stage == "RENDER"
        assert isinstance(exc_info.value.cause, TypeError)
        assert encoder_factory.encoders[0].discarded

    def test_surface_cleared_before_and_after(self, exporter, fake_surface, sample_content):
        """测试渲染面进入前与退出后都被清空"""
        asyncio.run(exporter.export_one(sample_content))
        assert fake_surface.clear_calls == 2
        assert fake_surface.content is None

    def test_empty_body(self, runtime_config, template, surface_factory, encoder_factory):
        """测试空正文导出1页"""
        surface = surface_factory(region_heights={RegionName.BODY: 0})
        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=surface,
            encoder_factory=encoder_factory,
        )
        job = asyncio.run(exporter.export_one(DocumentContent(code="EMPTY")))
        assert job.total_pages == 1
        assert job.slice_boundaries == [(0, 0)]
        assert len(encoder_factory.encoders[0].pages) == 1

    def test_degraded_measurement_flag(
        self, runtime_config, template, surface_factory, encoder_factory, sample_content
    ):
        """测试测量降级时标记但不失败"""
        surface = surface_factory(not_ready_reads=2)
        exporter = DocumentExporter(
            config=runtime_config,
            template=template,
            surface=surface,
            encoder_factory=encoder_factory,
        )
        job = asyncio.run(exporter.export_one(sample_content))
        assert job.status == JobStatus.SUCCEEDED
        assert FLAG_RENDER_FALLBACK in job.flags

    def test_estimate_recorded(self, exporter, sample_content):
        """测试记录估算页数（仅提示）"""
        job = asyncio.run(exporter.export_one(sample_content))
        assert job.estimated_pages == 1

    def test_real_surface_export(self, runtime_config, template, sample_content):
        """测试使用 Pillow 渲染面完整导出"""
        exporter = DocumentExporter(config=runtime_config, template=template)
        job = asyncio.run(exporter.export_one(sample_content))
        assert job.status == JobStatus.SUCCEEDED
        assert job.total_pages == 1
        assert count_pdf_pages(job.output_path) == 1


class TestExportBatch:
    """批量导出测试"""

    def test_batch_with_failure(
        self, runtime_config, template, surface_factory, contents_factory
    ):
        """测试5条中第3条失败：4个文件，失败编号被记录，批次不中断"""
        surface = surface_factory(failing_codes={"C-3"})
        exporter = DocumentExporter(config=runtime_config, template=template, surface=surface)
        report = asyncio.run(exporter.export_batch(contents_factory(5)))

        assert len(report.jobs) == 5
        assert len(report.succeeded) == 4
        assert report.failed_codes() == ["C-3"]
        assert report.failures == [
            {"code": "C-3", "stage": "RASTERIZE", "reason": "区域栅格化失败: title"}
        ]
        files = sorted(p.name for p in runtime_config.output_dir.glob("*.pdf"))
        assert files == ["C-1.pdf", "C-2.pdf", "C-4.pdf", "C-5.pdf"]

    def test_batch_continues_after_unexpected_error(
        self, runtime_config, template, surface_factory, contents_factory
    ):
        """测试快照抛出 RuntimeError 的条目记为失败，后续条目照常导出"""

        class CrashingSurface(surface_factory):
            async def snapshot(self, name, scale):
                if self.content is not None and self.content.code == "C-2":
                    raise RuntimeError("snapshot crashed")
                return await super().snapshot(name, scale)

        exporter = DocumentExporter(
            config=runtime_config, template=template, surface=CrashingSurface()
        )
        report = asyncio.run(exporter.export_batch(contents_factory(4)))

        assert len(report.succeeded) == 3
        assert report.failed_codes() == ["C-2"]
        assert report.failures[0]["stage"] == "RASTERIZE"
        assert "snapshot crashed" in report.failures[0]["reason"]
        assert report.finished_at is not None
        assert (runtime_config.output_dir / "manifest.json").exists()
        files = sorted(p.name for p in runtime_config.output_dir.glob("*.pdf"))
        assert files == ["C-1.pdf", "C-3.pdf", "C-4.pdf"]

    def test_batch_manifest(self, exporter, runtime_config, contents_factory):
        """测试批量导出生成 manifest.json"""
        asyncio.run(exporter.export_batch(contents_factory(2)))
        manifest = json.loads((runtime_config.output_dir / "manifest.json").read_text(encoding="utf-8"))

        assert manifest["summary"] == {"total": 2, "succeeded": 2, "failed": 0}
        assert [d["file"] for d in manifest["documents"]] == ["C-1.pdf", "C-2.pdf"]
        assert manifest["documents"][0]["total_pages"] == 2

    def test_batch_pacing(self, exporter, contents_factory, monkeypatch):
        """测试条目之间按配置节流"""
        exporter.config.batch.pacing_delay_ms = 300
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        asyncio.run(exporter.export_batch(contents_factory(3)))
        assert delays == [0.3, 0.3]

    def test_batch_sequential_shared_surface(self, exporter, fake_surface, contents_factory):
        """测试批量导出复用同一渲染面，每条都重新渲染"""
        report = asyncio.run(exporter.export_batch(contents_factory(3)))
        assert fake_surface.render_calls == 3
        assert [j.code for j in report.jobs] == ["C-1", "C-2", "C-3"]
