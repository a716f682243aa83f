"""
导出任务模型 - 单文档导出的状态与生命周期

批量导出时每条记录对应一个 ExportJob，汇总为 BatchReport
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..interfaces import BatchItemFailed


class JobStatus(str, Enum):
    """任务状态枚举"""
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ExportJob(BaseModel):
    """单文档导出任务"""
    code: str

    # 状态
    status: JobStatus = JobStatus.QUEUED
    stage: str = "INIT"

    # 产物
    output_path: Path | None = None
    total_pages: int | None = None
    estimated_pages: int | None = None
    slice_boundaries: list[tuple[int, int]] = Field(
        default_factory=list, description="每页正文位图切片 [起, 止)"
    )

    # 结果
    flags: list[str] = Field(default_factory=list, description="降级标记（不中断）")
    errors: list[str] = Field(default_factory=list, description="错误信息")
    failed_stage: str | None = None

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def mark_running(self, stage: str = "RENDER") -> None:
        """标记为运行中"""
        self.status = JobStatus.RUNNING
        self.started_at = datetime.now()
        self.stage = stage

    def mark_succeeded(self, output_path: Path, total_pages: int) -> None:
        """标记为成功"""
        self.status = JobStatus.SUCCEEDED
        self.finished_at = datetime.now()
        self.output_path = output_path
        self.total_pages = total_pages

    def mark_failed(self, error: str, stage: str | None = None) -> None:
        """标记为失败"""
        self.status = JobStatus.FAILED
        self.finished_at = datetime.now()
        self.failed_stage = stage or self.stage
        self.errors.append(error)

    def add_flag(self, flag: str) -> None:
        """添加告警标记（不中断）"""
        if flag not in self.flags:
            self.flags.append(flag)


class BatchReport(BaseModel):
    """批量导出结果"""
    jobs: list[ExportJob] = Field(default_factory=list)
    failures: list[dict[str, str]] = Field(default_factory=list, description="单项失败记录")
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> list[ExportJob]:
        return [j for j in self.jobs if j.status == JobStatus.SUCCEEDED]

    @property
    def failed(self) -> list[ExportJob]:
        return [j for j in self.jobs if j.status == JobStatus.FAILED]

    def failed_codes(self) -> list[str]:
        """失败记录编号"""
        return [j.code for j in self.failed]

    def record_failure(self, failure: BatchItemFailed) -> None:
        """记录单项失败（不中断批次）"""
        self.failures.append(
            {"code": failure.code, "stage": failure.stage, "reason": failure.reason}
        )
