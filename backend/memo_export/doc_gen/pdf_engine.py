"""
PDF编码器 - 逐页位图写入多页PDF

职责：
1. 逐页追加位图（Pillow PDF append 模式，同一时刻只持有一页）
2. 按页面物理尺寸折算DPI，使每页恰为 210×297mm
3. 先写 .part 临时文件，成功后改名；失败/取消时删除
4. PDF页数计算

依赖：
- Pillow: PDF 写出

测试要点：
- test_pdf_written_and_renamed: 成功后只剩最终文件
- test_discard_removes_part: 放弃时删除临时文件
- test_count_pdf_pages: PDF页数计算
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from PIL import Image

from ..interfaces import EncoderError, IDocumentEncoder

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4
PART_SUFFIX = ".part"


class PDFEncoder(IDocumentEncoder):
    """Pillow 多页PDF编码器"""

    def __init__(self):
        self._final_path: Path | None = None
        self._part_path: Path | None = None
        self._page_width_mm = 0.0
        self._pages = 0

    def open(self, output_path: Path, page_size_mm: tuple[float, float]) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._final_path = output_path
        self._part_path = output_path.with_name(output_path.name + PART_SUFFIX)
        self._page_width_mm = page_size_mm[0]
        self._pages = 0
        # 上次中断遗留的临时文件
        self._part_path.unlink(missing_ok=True)

    def add_page(self, image: Image.Image) -> None:
        if self._part_path is None:
            raise EncoderError("编码器未打开")

        dpi = image.width / (self._page_width_mm / MM_PER_INCH)
        if image.mode != "RGB":
            image = image.convert("RGB")
        image.save(
            self._part_path,
            format="PDF",
            resolution=dpi,
            append=self._pages > 0,
        )
        self._pages += 1

    def close(self) -> Path:
        if self._part_path is None or self._final_path is None:
            raise EncoderError("编码器未打开")
        if self._pages == 0:
            raise EncoderError("没有任何页面")

        self._part_path.replace(self._final_path)
        logger.debug(f"PDF写出: {self._final_path} ({self._pages}页)")
        final_path = self._final_path
        self._part_path = None
        self._final_path = None
        return final_path

    def discard(self) -> None:
        if self._part_path is not None:
            self._part_path.unlink(missing_ok=True)
            logger.debug(f"丢弃未完成输出: {self._part_path}")
        self._part_path = None
        self._final_path = None
        self._pages = 0


def count_pdf_pages(pdf_path: Path) -> int:
    """计算PDF页数（取页树 /Count 最大值，兼容追加写出的增量更新）"""
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF文件不存在: {pdf_path}")

    content = pdf_path.read_bytes()
    counts = [int(m) for m in re.findall(rb"/Count\s+(\d+)", content)]
    if counts:
        return max(counts)

    # 兜底：通过字符串匹配
    count = content.count(b"/Type /Page") - content.count(b"/Type /Pages")
    return max(1, count)
