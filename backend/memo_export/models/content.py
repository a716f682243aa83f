"""
文档内容模型 - 引擎的唯一业务输入

由调用方（通信/申请流程）持有，引擎只读。
可选字段缺失时保持 None，兜底文案只在渲染期使用。
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class CommunicationType(str, Enum):
    """通信类型（决定标题行）"""
    INTERNAL = "internal"
    EXTERNAL = "external"


class BlockKind(str, Enum):
    """正文段落语义"""
    TITLE = "title"
    PARAGRAPH = "paragraph"


class ContentBlock(BaseModel):
    """格式化后的正文块"""
    kind: BlockKind
    text: str

    model_config = {"frozen": True}


class DocumentContent(BaseModel):
    """文档内容记录（不可变）"""

    code: str | None = Field(default=None, description="唯一编号，用于输出文件命名")
    subject: str | None = None
    sender: str | None = None
    recipient: str | None = None
    body_text: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    # 原系统附带字段
    communication_type: CommunicationType = CommunicationType.INTERNAL
    issued_on: date | None = None
    department: str | None = None
    signer_name: str | None = None

    model_config = {"frozen": True}

    @property
    def display_date(self) -> date:
        """标题下方显示的日期"""
        return self.issued_on or self.created_at.date()
