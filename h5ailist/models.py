"""
h5ai 列表数据模型（与 h5ai 服务端 JSON 一致）。

列表响应：{"items": [{"href", "size", "time", "fetched", "managed"}, ...]}
- href: 条目路径（线上为百分号编码；经过滤后为解码形式）
- size: 大小（字节），目录通常不返回
- time: 修改时间，毫秒时间戳
- managed: 为 true 表示可进入的目录

结构严格：出现未知字段即视为解码错误，不做向前兼容。
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, StrictStr, field_validator


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MIN_TIME = datetime.min.replace(tzinfo=timezone.utc)
_MAX_TIME = datetime.max.replace(tzinfo=timezone.utc)


def millis_to_datetime(value: int) -> datetime:
    """
    毫秒时间戳 -> UTC datetime。

    线上允许任意 int64；超出 datetime 可表示范围（公元 1 年至 9999 年）的值
    截断为 datetime.min / datetime.max（UTC），不视为解码错误。
    """
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except OverflowError:
        return _MAX_TIME if value > 0 else _MIN_TIME


class Item(BaseModel):
    """列表中的一个条目（目录或文件），构造后不可修改。"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    href: StrictStr = ""
    size: StrictInt | None = None
    time: datetime | None = None
    fetched: StrictBool = False
    managed: StrictBool = False

    @field_validator("time", mode="before")
    @classmethod
    def _time_from_millis(cls, value: Any) -> Any:
        if value is None or isinstance(value, datetime):
            return value
        # bool 是 int 的子类，需单独排除；线上只接受整数毫秒
        if isinstance(value, int) and not isinstance(value, bool):
            return millis_to_datetime(value)
        raise ValueError(f"time must be integer milliseconds, got {type(value).__name__}")

    @property
    def is_dir(self) -> bool:
        return self.managed is True

    @property
    def has_size(self) -> bool:
        """服务端是否返回了 size（区分「未知」与 0 字节文件）。"""
        return self.size is not None

    @property
    def file_size(self) -> int:
        """文件大小（字节），未提供时为 0。"""
        return self.size if self.size is not None else 0


class Listing(BaseModel):
    """列表响应外层结构。"""

    model_config = ConfigDict(extra="forbid")

    items: list[Item] | None = None
