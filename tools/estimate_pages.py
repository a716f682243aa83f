"""
正文页数估算（编辑期提示），并对照模拟分页计划。

示例：
  python tools/estimate_pages.py --text memo.txt
  python tools/estimate_pages.py --text memo.txt --header-mm 73.5 --footer-mm 21
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _add_backend_to_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    backend_root = repo_root / "backend"
    if str(backend_root) not in sys.path:
        sys.path.insert(0, str(backend_root))


def main() -> int:
    parser = argparse.ArgumentParser(description="Estimate page count from memo body text.")
    parser.add_argument("--text", required=True, help="正文文本文件（UTF-8）")
    parser.add_argument("--template", default="", help="可选：信头模板YAML（字体度量）")
    parser.add_argument(
        "--header-mm",
        type=float,
        default=0.0,
        help="可选：实测页眉块高度（毫米），给出时额外模拟分页计划",
    )
    parser.add_argument("--footer-mm", type=float, default=0.0, help="可选：实测页脚高度（毫米）")
    args = parser.parse_args()

    _add_backend_to_path()
    from memo_export.config import load_template  # type: ignore
    from memo_export.layout import A4, PageEstimator, Paginator  # type: ignore

    text = Path(args.text).read_text(encoding="utf-8")
    template = load_template(args.template or None)
    estimator = PageEstimator(A4, template.fonts)
    estimate = estimator.estimate(text)

    print(f"body_mm={estimate.body_height_units:.2f}")
    print(f"per_page_mm={estimate.per_page_units:.2f}")
    print(f"estimated_pages={estimate.total_pages}")

    if args.header_mm > 0:
        paginator = Paginator(A4)
        units_per_pixel = 0.1
        raster_height = round(estimate.body_height_units / units_per_pixel)
        plan = paginator.plan(
            estimate.body_height_units,
            args.header_mm,
            args.footer_mm,
            raster_height,
            units_per_pixel,
        )
        print(f"content_mm_per_page={plan.content_height_per_page:.2f}")
        print(f"planned_pages={plan.total_pages}")
        for page_slice in plan.slices:
            print(
                f"  page {page_slice.page_index}: "
                f"{page_slice.body_pixel_start * units_per_pixel:.1f}mm"
                f" - {page_slice.body_pixel_end * units_per_pixel:.1f}mm"
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
