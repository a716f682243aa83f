"""
Pillow 渲染面 - 区域渲染器的默认实现

职责：
1. 按信头模板把文档内容排版为 header/title/info/body/footer 五个区域
2. 报告区域像素尺寸（名义宽度，左右页边距以侧边留白绘入）
3. 按倍率快照区域为位图
4. 更新 header 页码字段（仅重排 header，其余区域不变）

依赖：
- Pillow: Image/ImageDraw
- ImageLoader: 内嵌图片（logo）异步汇合

测试要点：
- test_render_regions: 五个区域均有尺寸且宽度一致
- test_empty_body_zero_height: 空正文高度为0
- test_header_differs_only_in_counter: 页码变化只影响页码框
- test_logo_failure_placeholder: logo解码失败 → 占位图形 + 标记
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from PIL import Image, ImageDraw

from ..config import LetterheadTemplate
from ..interfaces import IRenderSurface, RasterizationFailed
from ..layout.geometry import A4, NOMINAL_WIDTH_PX, side_padding_px
from ..models import BlockKind, ContentBlock, DocumentContent, RegionName
from .formatter import ContentFormatter
from .image_loader import ImageLoader
from .text_layout import LINE_HEIGHT_RATIO, BodyMetrics, FontBook, text_width, wrap_text

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
INK = (33, 33, 33)
MUTED = (110, 110, 110)
RULE = (200, 200, 200)

HEADER_PADDING_PX = 16
LOGO_SIZE_PX = 64
META_LABEL_WIDTH_PX = 90
META_VALUE_WIDTH_PX = 130
SIGNATURE_RULE_PX = 220


@dataclass
class TextOp:
    x: float
    y: float
    text: str
    size: int
    bold: bool = False
    fill: tuple[int, int, int] = INK


@dataclass
class RuleOp:
    x0: float
    y0: float
    x1: float
    y1: float


@dataclass
class ImageOp:
    key: str
    x: float
    y: float
    width: int
    height: int
    image: Image.Image | None = None
    placeholder: str = "?"


@dataclass
class RegionLayout:
    """区域排版结果（名义像素）"""
    name: RegionName
    width: int
    height: int
    ops: list[TextOp | RuleOp | ImageOp] = field(default_factory=list)


class PillowRenderSurface(IRenderSurface):
    """Pillow 渲染面实现"""

    def __init__(
        self,
        template: LetterheadTemplate | None = None,
        image_timeout_sec: float = 5.0,
        width_px: int = NOMINAL_WIDTH_PX,
    ):
        self.template = template or LetterheadTemplate()
        self.width_px = width_px
        self.fonts = FontBook(self.template.fonts)
        self.metrics = BodyMetrics.from_fonts(self.template.fonts)
        self.formatter = ContentFormatter()
        self.image_loader = ImageLoader(image_timeout_sec)

        self._pad = side_padding_px(A4, width_px)
        self._content: DocumentContent | None = None
        self._blocks: list[ContentBlock] = []
        self._images: dict[str, Image.Image | None] = {}
        self._regions: dict[RegionName, RegionLayout] = {}
        self._counter_text = ""
        self._counter_box: tuple[float, float, float, float] = (0, 0, 0, 0)
        self._flags: list[str] = []

    # ------------------------------------------------------------------
    # IRenderSurface
    # ------------------------------------------------------------------

    async def render(self, content: DocumentContent) -> None:
        """清空并重新排版全部区域"""
        self.clear()

        # 1. 等待内嵌图片汇合
        sources = {"logo": self.template.logo_path} if self.template.logo_path else {}
        self._images = await self.image_loader.load_all(sources)
        for key, image in self._images.items():
            if image is None:
                self._add_flag(f"image_placeholder:{key}")

        # 2. 排版
        self._content = content
        self._blocks = self.formatter.format(content.body_text)
        self._counter_text = self.template.format_counter(1, 1)

        self._regions[RegionName.HEADER] = self._layout_header()
        self._regions[RegionName.TITLE] = self._layout_title()
        self._regions[RegionName.INFO] = self._layout_info()
        self._regions[RegionName.BODY] = self._layout_body()
        if self.template.show_footer:
            self._regions[RegionName.FOOTER] = self._layout_footer()

        logger.debug(
            f"渲染完成 [{content.code}]: "
            + ", ".join(f"{n.value}={r.width}x{r.height}" for n, r in self._regions.items())
        )

    def has_region(self, name: RegionName) -> bool:
        return name in self._regions

    def region_size(self, name: RegionName) -> tuple[int, int]:
        layout = self._regions.get(name)
        if layout is None:
            return 0, 0
        return layout.width, layout.height

    def document_size(self) -> tuple[int, int]:
        if not self._regions:
            return 0, 0
        return self.width_px, sum(r.height for r in self._regions.values())

    async def snapshot(self, name: RegionName, scale: float) -> Image.Image:
        layout = self._regions.get(name)
        if layout is None:
            raise RasterizationFailed(name.value, f"区域不存在: {name.value}")
        try:
            return await asyncio.to_thread(self._draw, layout, scale)
        except (OSError, ValueError) as e:
            raise RasterizationFailed(name.value, f"区域快照失败 {name.value}: {e}") from e

    def set_page_counter(self, text: str) -> None:
        self._counter_text = text
        if self._content is not None:
            self._regions[RegionName.HEADER] = self._layout_header()

    def clear(self) -> None:
        self._content = None
        self._blocks = []
        self._images = {}
        self._regions = {}
        self._flags = []

    @property
    def flags(self) -> list[str]:
        return list(self._flags)

    # ------------------------------------------------------------------
    # 页码框（header 内唯一随页变化的区域）
    # ------------------------------------------------------------------

    def counter_box(self, scale: float = 1.0) -> tuple[int, int, int, int]:
        x0, y0, x1, y1 = self._counter_box
        return round(x0 * scale), round(y0 * scale), round(x1 * scale), round(y1 * scale)

    # ------------------------------------------------------------------
    # 区域排版
    # ------------------------------------------------------------------

    def _layout_header(self) -> RegionLayout:
        t = self.template
        c = self._content
        fonts = t.fonts
        width = self.width_px
        top = HEADER_PADDING_PX
        ops: list[TextOp | RuleOp | ImageOp] = []

        # logo + 机构信息
        initial = t.organization_name[:1] or "?"
        ops.append(
            ImageOp("logo", self._pad, top, LOGO_SIZE_PX, LOGO_SIZE_PX,
                    self._images.get("logo"), placeholder=initial)
        )
        text_x = self._pad + LOGO_SIZE_PX + HEADER_PADDING_PX
        ops.append(TextOp(text_x, top + 4, t.organization_name, fonts.org_name_size, bold=True))
        if t.organization_id:
            ops.append(TextOp(text_x, top + 34, t.organization_id, fonts.meta_size, fill=MUTED))

        # 元数据表：页码/编号/日期
        value_x = width - self._pad - META_VALUE_WIDTH_PX
        label_x = value_x - META_LABEL_WIDTH_PX
        row_h = round(fonts.meta_size * LINE_HEIGHT_RATIO)
        rows = [
            ("page", self._counter_text),
            ("code", t.or_fallback(c.code)),
            ("date", c.created_at.strftime(t.date_format)),
        ]
        for i, (key, value) in enumerate(rows):
            y = top + i * row_h
            ops.append(TextOp(label_x, y, t.label(key), fonts.meta_size, bold=True))
            ops.append(TextOp(value_x, y, value, fonts.meta_size))
        self._counter_box = (value_x, top, width - self._pad, top + row_h)

        height = top + max(LOGO_SIZE_PX, len(rows) * row_h) + HEADER_PADDING_PX
        ops.append(RuleOp(self._pad, height - 2, width - self._pad, height - 2))
        return RegionLayout(RegionName.HEADER, width, height, ops)

    def _layout_title(self) -> RegionLayout:
        t = self.template
        c = self._content
        fonts = t.fonts
        width = self.width_px
        max_width = width - 2 * self._pad
        ops: list[TextOp | RuleOp | ImageOp] = []
        y = 20

        title_font = self.fonts.get(fonts.title_size, bold=True)
        title_lh = round(fonts.title_size * LINE_HEIGHT_RATIO)
        for line in wrap_text(f"{t.title_for(c.communication_type.value)}.", title_font, max_width):
            x = (width - text_width(title_font, line)) / 2
            ops.append(TextOp(x, y, line, fonts.title_size, bold=True))
            y += title_lh

        date_font = self.fonts.get(fonts.info_size)
        date_line = f"{c.display_date.strftime(t.long_date_format)}."
        y += 6
        ops.append(TextOp((width - text_width(date_font, date_line)) / 2, y, date_line, fonts.info_size))
        y += round(fonts.info_size * LINE_HEIGHT_RATIO) + 16
        return RegionLayout(RegionName.TITLE, width, y, ops)

    def _layout_info(self) -> RegionLayout:
        t = self.template
        c = self._content
        size = t.fonts.info_size
        width = self.width_px
        line_h = round(size * LINE_HEIGHT_RATIO)
        label_font = self.fonts.get(size, bold=True)
        value_font = self.fonts.get(size)
        ops: list[TextOp | RuleOp | ImageOp] = []

        if c.sender:
            sender = c.sender
        elif c.department:
            sender = f"{c.department} – {t.organization_name}"
        else:
            sender = None

        y = 8
        for key, value in (("to", c.recipient), ("from", sender), ("subject", c.subject)):
            label = t.label(key)
            ops.append(TextOp(self._pad, y, label, size, bold=True))
            value_x = self._pad + text_width(label_font, label) + 8
            lines = wrap_text(t.or_fallback(value), value_font, width - self._pad - value_x) or [""]
            for line in lines:
                ops.append(TextOp(value_x, y, line, size))
                y += line_h
            y += 4
        y += 12
        ops.append(RuleOp(self._pad, y - 2, width - self._pad, y - 2))
        return RegionLayout(RegionName.INFO, self.width_px, y, ops)

    def _layout_body(self) -> RegionLayout:
        width = self.width_px
        if not self._blocks:
            return RegionLayout(RegionName.BODY, width, 0, [])

        m = self.metrics
        max_width = width - 2 * self._pad
        ops: list[TextOp | RuleOp | ImageOp] = []
        y = m.padding
        for block in self._blocks:
            bold = block.kind == BlockKind.TITLE
            size = m.font_size(block.kind)
            font = self.fonts.get(size, bold=bold)
            for line in wrap_text(block.text, font, max_width):
                ops.append(TextOp(self._pad, y, line, size, bold=bold))
                y += m.line_height(block.kind)
            y += m.paragraph_spacing
        return RegionLayout(RegionName.BODY, width, y + m.padding, ops)

    def _layout_footer(self) -> RegionLayout:
        t = self.template
        c = self._content
        size = t.fonts.footer_size
        line_h = round(size * LINE_HEIGHT_RATIO)
        ops: list[TextOp | RuleOp | ImageOp] = []

        y = 40
        ops.append(RuleOp(self._pad, y, self._pad + SIGNATURE_RULE_PX, y))
        y += 8
        ops.append(TextOp(self._pad, y, t.or_fallback(c.signer_name), size, bold=True))
        y += line_h
        ops.append(TextOp(self._pad, y, t.or_fallback(c.department), size, fill=MUTED))
        y += line_h + HEADER_PADDING_PX
        return RegionLayout(RegionName.FOOTER, self.width_px, y, ops)

    # ------------------------------------------------------------------
    # 绘制
    # ------------------------------------------------------------------

    def _draw(self, layout: RegionLayout, scale: float) -> Image.Image:
        size = (round(layout.width * scale), round(layout.height * scale))
        canvas = Image.new("RGB", size, WHITE)
        if size[0] == 0 or size[1] == 0:
            return canvas

        draw = ImageDraw.Draw(canvas)
        for op in layout.ops:
            if isinstance(op, TextOp):
                font = self.fonts.get(op.size, bold=op.bold, scale=scale)
                draw.text((op.x * scale, op.y * scale), op.text, font=font, fill=op.fill)
            elif isinstance(op, RuleOp):
                draw.line(
                    (op.x0 * scale, op.y0 * scale, op.x1 * scale, op.y1 * scale),
                    fill=RULE,
                    width=max(1, round(scale)),
                )
            elif isinstance(op, ImageOp):
                self._draw_image(canvas, draw, op, scale)
        return canvas

    def _draw_image(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, op: ImageOp, scale: float) -> None:
        box = (
            round(op.x * scale),
            round(op.y * scale),
            round((op.x + op.width) * scale),
            round((op.y + op.height) * scale),
        )
        if op.image is not None:
            try:
                fitted = op.image.resize((box[2] - box[0], box[3] - box[1]))
                canvas.paste(fitted, box[:2], fitted if fitted.mode == "RGBA" else None)
                return
            except (OSError, ValueError) as e:
                logger.warning(f"内嵌图片绘制失败，使用占位图形: {op.key}: {e}")
                self._add_flag(f"image_placeholder:{op.key}")

        # 占位图形：圆 + 首字母
        draw.ellipse(box, outline=RULE, width=max(1, round(2 * scale)))
        font = self.fonts.get(round(op.height * 0.45), bold=True, scale=scale)
        left, top, right, bottom = font.getbbox(op.placeholder)
        x = (box[0] + box[2] - (right - left)) / 2 - left
        y = (box[1] + box[3] - (bottom - top)) / 2 - top
        draw.text((x, y), op.placeholder, font=font, fill=MUTED)

    def _add_flag(self, flag: str) -> None:
        if flag not in self._flags:
            self._flags.append(flag)
