"""
批量导出公文PDF（JSON 列表输入）。

输入JSON：对象列表，字段同 DocumentContent，例如
  [{"code": "COM-1", "subject": "...", "sender": "...", "recipient": "...",
    "body_text": "...", "created_at": "2024-03-15T09:30:00"}]

示例：
  python tools/export_memos.py --input memos.json --out-dir output
  python tools/export_memos.py --input memos.json --config config/运行期参数.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path


def _add_backend_to_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    backend_root = repo_root / "backend"
    if str(backend_root) not in sys.path:
        sys.path.insert(0, str(backend_root))


def main() -> int:
    parser = argparse.ArgumentParser(description="Export memos to paginated A4 PDFs.")
    parser.add_argument("--input", required=True, help="文档列表JSON")
    parser.add_argument("--out-dir", default="", help="输出目录（默认取运行期配置）")
    parser.add_argument("--config", default="", help="可选：运行期参数YAML")
    parser.add_argument("--template", default="", help="可选：信头模板YAML（覆盖配置）")
    args = parser.parse_args()

    _add_backend_to_path()
    from memo_export.config import configure_logging, get_config, load_template, reload_config  # type: ignore
    from memo_export.models import DocumentContent  # type: ignore
    from memo_export.pipeline import DocumentExporter  # type: ignore

    config = reload_config(args.config) if args.config else get_config()
    configure_logging(config)

    template_path = args.template or config.template_path
    template = load_template(template_path)

    records = json.loads(Path(args.input).read_text(encoding="utf-8"))
    contents = [DocumentContent(**record) for record in records]
    out_dir = Path(args.out_dir) if args.out_dir else config.output_dir

    exporter = DocumentExporter(config=config, template=template)
    report = asyncio.run(exporter.export_batch(contents, out_dir))

    for job in report.jobs:
        pages = job.total_pages if job.total_pages is not None else "-"
        print(f"{job.status.value:9s} {job.code}: pages={pages} flags={','.join(job.flags)}")
    for failure in report.failures:
        print(f"FAILED {failure['code']} [{failure['stage']}]: {failure['reason']}")
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
