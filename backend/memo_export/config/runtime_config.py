"""
运行期配置 - 读取 config/运行期参数.yaml

职责：
- 加载超时/栅格/批量节奏/日志等运行参数
- 提供环境变量覆盖机制
- 类型安全的配置访问

注意：页面物理尺寸不在此处配置，固定于 layout.geometry.A4
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_RUNTIME_PATH = Path("config/运行期参数.yaml")


class TimeoutConfig(BaseModel):
    """超时配置"""

    image_load_sec: float = 5.0
    render_retry_delay_ms: int = 100


class RasterConfig(BaseModel):
    """栅格化配置"""

    scale: float = 2.0


class BatchConfig(BaseModel):
    """批量导出配置"""

    pacing_delay_ms: int = 300
    write_manifest: bool = True


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: Path = Path("logs/memo_export.log")


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    # 基础路径
    output_dir: Path = Path("output")
    template_path: Path | None = None

    # 各子配置
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    raster: RasterConfig = Field(default_factory=RasterConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "MEMO_EXPORT_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})
        paths = cls._extract(runtime_opts, "paths")

        config = cls(
            timeouts=TimeoutConfig(**cls._extract(runtime_opts, "timeouts")),
            raster=RasterConfig(**cls._extract(runtime_opts, "raster")),
            batch=BatchConfig(**cls._extract(runtime_opts, "batch")),
            logging=LoggingConfig(**cls._extract(runtime_opts, "logging")),
            **paths,
        )

        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key, {}) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """解析相对路径配置为绝对路径（基于配置文件所在目录）"""
        if self.template_path and not self.template_path.is_absolute():
            self.template_path = (base_dir / self.template_path).resolve()

    def get_output_path(self, file_name: str) -> Path:
        """获取输出文件路径"""
        return self.output_dir / file_name


def configure_logging(config: RuntimeConfig) -> None:
    """按 LoggingConfig 初始化根日志"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_to_file:
        config.logging.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, config.logging.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_RUNTIME_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or DEFAULT_RUNTIME_PATH
    _config = RuntimeConfig.from_yaml(path)
    return _config
