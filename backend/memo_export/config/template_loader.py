"""
信头模板加载器 - 读取 config/信头模板.yaml

职责：
- 解析YAML并提供类型安全访问
- 提供机构信息、标签文案、字体、页码格式等版式配置
- 缓存加载结果（避免重复解析）

使用方式：
    template = TemplateLoader.load("config/信头模板.yaml")
    label = template.label("page")
    counter = template.format_counter(1, 3)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class FontSpec(BaseModel):
    """字体配置（path为空时使用Pillow内置字体）"""
    path: str | None = None
    bold_path: str | None = None
    org_name_size: int = 20
    meta_size: int = 12
    title_size: int = 18
    info_size: int = 14
    body_size: int = 15
    paragraph_title_size: int = 16
    footer_size: int = 14


class LetterheadTemplate(BaseModel):
    """信头模板（信头模板.yaml 的结构化表示）"""

    organization_name: str = "ORGANIZATION"
    organization_id: str = ""
    logo_path: str | None = None

    # 标签文案
    labels: dict[str, str] = Field(default_factory=lambda: {
        "page": "Page:",
        "code": "Code:",
        "date": "Date:",
        "to": "To:",
        "from": "From:",
        "subject": "Subject:",
    })
    titles: dict[str, str] = Field(default_factory=lambda: {
        "internal": "OFFICIAL INTERNAL COMMUNICATION",
        "external": "OFFICIAL EXTERNAL COMMUNICATION",
    })

    page_counter_format: str = "{page} of {total}"
    date_format: str = "%d/%m/%Y"
    long_date_format: str = "%B %d, %Y"
    fallback_text: str = "N/A"
    show_footer: bool = True
    file_name_pattern: str = "{code}.pdf"
    missing_code: str = "no-code"

    fonts: FontSpec = Field(default_factory=FontSpec)

    # === 便捷访问方法 ===

    def label(self, key: str) -> str:
        """获取标签文案"""
        return self.labels.get(key, key)

    def title_for(self, communication_type: str) -> str:
        """获取通信类型对应的标题行"""
        return self.titles.get(communication_type, self.titles.get("internal", ""))

    def format_counter(self, page: int, total: int) -> str:
        """页码字段文案"""
        return self.page_counter_format.format(page=page, total=total)

    def or_fallback(self, value: str | None) -> str:
        """可选字段的渲染期兜底"""
        if value is None or not str(value).strip():
            return self.fallback_text
        return str(value)


class TemplateLoader:
    """模板加载器（缓存）"""

    @classmethod
    @lru_cache(maxsize=4)
    def load(cls, template_path: str | Path) -> LetterheadTemplate:
        """加载并缓存模板"""
        path = Path(template_path)
        if not path.exists():
            raise FileNotFoundError(f"信头模板不存在: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        template = LetterheadTemplate(**data.get("letterhead", data))
        # logo 相对路径按模板文件所在目录解析
        if template.logo_path and not Path(template.logo_path).is_absolute():
            template.logo_path = str((path.parent / template.logo_path).resolve())
        return template

    @classmethod
    def reload(cls, template_path: str | Path) -> LetterheadTemplate:
        """强制重新加载（清除缓存）"""
        cls.load.cache_clear()
        return cls.load(template_path)


# 便捷函数
def load_template(template_path: str | Path | None = None) -> LetterheadTemplate:
    """加载信头模板（未指定路径时使用默认模板）"""
    if template_path is None:
        return LetterheadTemplate()
    return TemplateLoader.load(template_path)
