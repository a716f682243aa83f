"""
内嵌图片加载器 - 区域快照前的显式异步汇合

职责：
1. 并发解码区域内全部图片（线程中解码，不阻塞事件循环）
2. 每张图片独立超时，超时/解码失败判定为失败（返回None），不挂起整次导出
3. 汇合全部结果后再交给渲染面

依赖：
- Pillow: Image.open

测试要点：
- test_load_ok: 正常解码
- test_load_missing_file: 文件不存在 → None
- test_load_timeout: 超时 → None
- test_load_decompression_bomb: 像素超限 → None
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ImageSource = str | Path | bytes


def _decode(source: ImageSource) -> Image.Image:
    """同步解码（在工作线程中执行）"""
    if isinstance(source, bytes):
        image = Image.open(io.BytesIO(source))
    else:
        image = Image.open(Path(source))
    image.load()
    return image.convert("RGBA")


class ImageLoader:
    """图片汇合加载器"""

    def __init__(self, timeout_sec: float = 5.0):
        self.timeout_sec = timeout_sec

    async def load_all(self, sources: dict[str, ImageSource]) -> dict[str, Image.Image | None]:
        """加载全部图片，失败项为None"""
        if not sources:
            return {}
        keys = list(sources)
        results = await asyncio.gather(*(self._load_one(k, sources[k]) for k in keys))
        return dict(zip(keys, results))

    async def _load_one(self, key: str, source: ImageSource) -> Image.Image | None:
        try:
            return await asyncio.wait_for(asyncio.to_thread(_decode, source), self.timeout_sec)
        except asyncio.TimeoutError:
            logger.warning(f"图片加载超时: {key} ({self.timeout_sec}s)")
        except (
            OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError
        ) as e:
            logger.warning(f"图片解码失败: {key}: {e}")
        return None
