"""
配置层 - 加载信头模板与运行期配置

职责：
- 加载 config/信头模板.yaml（版式与文案）
- 加载 config/运行期参数.yaml（运行期参数）
- 提供类型安全的配置访问接口
"""

from .runtime_config import RuntimeConfig, configure_logging, get_config, reload_config
from .template_loader import FontSpec, LetterheadTemplate, TemplateLoader, load_template

__all__ = [
    "TemplateLoader",
    "LetterheadTemplate",
    "FontSpec",
    "load_template",
    "RuntimeConfig",
    "configure_logging",
    "get_config",
    "reload_config",
]
