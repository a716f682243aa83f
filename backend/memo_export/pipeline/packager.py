"""
manifest 生成 - 批量导出结果汇总

职责：
1. 生成 manifest.json（每条记录的状态/页数/标记/错误）
2. 失败记录单独列出

测试要点：
- test_manifest_structure: manifest结构
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import BatchReport, ExportJob

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
SCHEMA_VERSION = "1.0"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class ManifestWriter:
    """批量导出 manifest 生成器"""

    def build(self, report: BatchReport) -> dict:
        """构建 manifest 字典"""
        return {
            "schema_version": SCHEMA_VERSION,
            "summary": {
                "total": len(report.jobs),
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
            },
            "documents": [self._job_entry(job) for job in report.jobs],
            "failures": list(report.failures),
            "timestamps": {
                "started_at": _iso(report.started_at),
                "finished_at": _iso(report.finished_at),
            },
        }

    def write(self, report: BatchReport, output_dir: Path) -> Path:
        """写出 manifest.json"""
        output_dir.mkdir(parents=True, exist_ok=True)
        manifest_path = output_dir / MANIFEST_NAME
        with open(manifest_path, "w", encoding="utf-8") as f:
            json.dump(self.build(report), f, ensure_ascii=False, indent=2)

        logger.info(f"manifest 已生成: {manifest_path}")
        return manifest_path

    @staticmethod
    def _job_entry(job: ExportJob) -> dict:
        return {
            "code": job.code,
            "status": job.status.value,
            "file": job.output_path.name if job.output_path else None,
            "total_pages": job.total_pages,
            "estimated_pages": job.estimated_pages,
            "flags": job.flags,
            "errors": job.errors,
            "failed_stage": job.failed_stage,
            "timestamps": {
                "created_at": _iso(job.created_at),
                "started_at": _iso(job.started_at),
                "finished_at": _iso(job.finished_at),
            },
        }
