"""
CLI 本地配置：~/.config/h5ailist/config.json 中保存默认 base_url 与 user_agent。

文件内容由 CliConfig 校验；结构不符（缺 base_url、类型错误、多余字段）的文件按「没有配置」处理。
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator


class CliConfig(BaseModel):
    """CLI 保存的默认连接参数。"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str
    user_agent: str | None = None

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("base_url must not be empty")
        return value


def _config_dir() -> Path:
    return Path.home() / ".config" / "h5ailist"


def _config_file() -> Path:
    return _config_dir() / "config.json"


def load_config() -> CliConfig | None:
    """读取并校验本地配置；文件不存在、不可读或内容无效时返回 None。"""
    path = _config_file()
    try:
        raw = path.read_bytes()
    except OSError:
        return None
    try:
        return CliConfig.model_validate_json(raw)
    except ValidationError:
        return None


def save_config(base_url: str, user_agent: str | None = None) -> CliConfig:
    """
    校验后写入本地配置，返回实际保存的内容（base_url 去掉末尾 /）。

    :raises pydantic.ValidationError: base_url 为空
    """
    config = CliConfig(base_url=base_url, user_agent=user_agent)
    path = _config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    return config


def clear_config() -> bool:
    """删除本地配置文件；原本存在时返回 True。"""
    try:
        _config_file().unlink()
    except FileNotFoundError:
        return False
    return True
