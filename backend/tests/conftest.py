"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(fake_surface, sample_content):
        asyncio.run(fake_surface.render(sample_content))
"""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from memo_export.config import LetterheadTemplate, RuntimeConfig
from memo_export.config.runtime_config import BatchConfig, TimeoutConfig
from memo_export.interfaces import IDocumentEncoder, IRenderSurface, RasterizationFailed
from memo_export.models import DocumentContent, RegionName


# ============================================================================
# 测试替身
# ============================================================================

DEFAULT_REGION_HEIGHTS = {
    RegionName.HEADER: 120,
    RegionName.TITLE: 60,
    RegionName.INFO: 100,
    RegionName.BODY: 1000,
    RegionName.FOOTER: 80,
}


class FakeSurface(IRenderSurface):
    """
    可配置区域尺寸的渲染面替身

    - region_heights: 各区域布局高度（像素），footer 为 None 表示无页脚
    - body_heights: 按文档编号覆盖正文高度
    - failing_codes: 这些编号的文档在快照时失败
    - not_ready_reads: 前 N 次读取文档宽度返回0
    """

    def __init__(
        self,
        width: int = 800,
        region_heights: dict[RegionName, int | None] | None = None,
        body_heights: dict[str, int] | None = None,
        failing_codes: set[str] | None = None,
        not_ready_reads: int = 0,
    ):
        self.width = width
        self.region_heights = {**DEFAULT_REGION_HEIGHTS, **(region_heights or {})}
        self.body_heights = body_heights or {}
        self.failing_codes = failing_codes or set()
        self.not_ready_reads = not_ready_reads

        self.content: DocumentContent | None = None
        self.counter = ""
        self.snapshot_calls: list[tuple[RegionName, str]] = []
        self.clear_calls = 0
        self.render_calls = 0

    async def render(self, content: DocumentContent) -> None:
        self.render_calls += 1
        self.content = content
        self.counter = "1 of 1"

    def _height(self, name: RegionName) -> int | None:
        if name == RegionName.BODY and self.content and self.content.code in self.body_heights:
            return self.body_heights[self.content.code]
        return self.region_heights.get(name)

    def has_region(self, name: RegionName) -> bool:
        return self.content is not None and self._height(name) is not None

    def region_size(self, name: RegionName) -> tuple[int, int]:
        if not self.has_region(name):
            return 0, 0
        return self.width, self._height(name)

    def document_size(self) -> tuple[int, int]:
        if self.content is None:
            return 0, 0
        if self.not_ready_reads > 0:
            self.not_ready_reads -= 1
            return 0, 0
        height = sum(self.region_size(name)[1] for name in RegionName)
        return self.width, height

    async def snapshot(self, name: RegionName, scale: float) -> Image.Image:
        self.snapshot_calls.append((name, self.counter))
        if self.content is not None and self.content.code in self.failing_codes:
            raise RasterizationFailed(name.value)
        width, height = self.region_size(name)
        return Image.new("RGB", (round(width * scale), round(height * scale)), "white")

    def set_page_counter(self, text: str) -> None:
        self.counter = text

    def clear(self) -> None:
        self.clear_calls += 1
        self.content = None


class RecordingEncoder(IDocumentEncoder):
    """只记录页面的编码器替身"""

    def __init__(self):
        self.pages: list[Image.Image] = []
        self.output_path: Path | None = None
        self.page_size_mm: tuple[float, float] | None = None
        self.discarded = False
        self.closed = False

    def open(self, output_path: Path, page_size_mm: tuple[float, float]) -> None:
        self.output_path = output_path
        self.page_size_mm = page_size_mm

    def add_page(self, image: Image.Image) -> None:
        self.pages.append(image)

    def close(self) -> Path:
        self.closed = True
        return self.output_path

    def discard(self) -> None:
        self.discarded = True


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config(temp_dir: Path) -> RuntimeConfig:
    """运行期配置（无节流，输出到临时目录）"""
    return RuntimeConfig(
        output_dir=temp_dir / "output",
        timeouts=TimeoutConfig(image_load_sec=1.0, render_retry_delay_ms=0),
        batch=BatchConfig(pacing_delay_ms=0, write_manifest=True),
    )


@pytest.fixture
def template() -> LetterheadTemplate:
    """默认信头模板"""
    return LetterheadTemplate(organization_name="TEST ORGANIZATION", organization_id="ID 0001")


# ============================================================================
# 数据模型 Fixtures
# ============================================================================

SAMPLE_BODY = (
    "ARTICULO PRIMERO\n"
    "The maintenance window for the document archive starts on Monday.\n"
    "\n"
    "All departments must submit their pending requests before Friday noon."
)


@pytest.fixture
def sample_content() -> DocumentContent:
    """示例文档内容"""
    return DocumentContent(
        code="COM-2024-001",
        subject="Archive maintenance",
        sender="Records Office",
        recipient="All departments",
        body_text=SAMPLE_BODY,
        created_at=datetime(2024, 3, 15, 9, 30),
        department="Records",
        signer_name="J. Smith",
    )


def make_contents(count: int, prefix: str = "C") -> list[DocumentContent]:
    """批量示例文档"""
    return [
        DocumentContent(
            code=f"{prefix}-{i}",
            subject=f"Subject {i}",
            sender="Sender",
            recipient="Recipient",
            body_text=f"Paragraph for document {i}.",
            created_at=datetime(2024, 3, 15),
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def recording_encoder() -> RecordingEncoder:
    return RecordingEncoder()


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# 工厂 Fixtures
# ============================================================================

@pytest.fixture
def surface_factory() -> type[FakeSurface]:
    """按需构造渲染面替身"""
    return FakeSurface


@pytest.fixture
def contents_factory():
    """按需构造批量示例文档"""
    return make_contents


class RecordingEncoderFactory:
    """编码器工厂替身（保留每次导出创建的编码器）"""

    def __init__(self):
        self.encoders: list[RecordingEncoder] = []

    def __call__(self) -> RecordingEncoder:
        encoder = RecordingEncoder()
        self.encoders.append(encoder)
        return encoder


@pytest.fixture
def encoder_factory() -> RecordingEncoderFactory:
    return RecordingEncoderFactory()
