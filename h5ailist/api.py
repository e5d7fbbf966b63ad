"""
一次性调用：为给定 URL 建一个临时客户端，执行操作后关闭。

    from h5ailist import api
    for item in api.items("https://larsjung.de/h5ai/demo/"):
        print(item.href, item.file_size)

options 即 ClientConfig 的字段（user_agent、transport、cookies、logf、http_client 等）。
"""

from __future__ import annotations

import builtins
from typing import Any

from h5ailist.client import H5aiClient
from h5ailist.models import Item
from h5ailist.walk import WalkFunc


def list(url: str, **options: Any) -> builtins.list[Item]:  # noqa: A001
    """url 处的原始列表。"""
    with H5aiClient(url, **options) as client:
        return client.list()


def items(url: str, **options: Any) -> builtins.list[Item]:
    """url 目录下的条目。"""
    with H5aiClient(url, **options) as client:
        return client.items()


def get(url: str, **options: Any) -> bytes:
    """下载 url 处的文件。"""
    with H5aiClient(url, **options) as client:
        return client.get()


def walk(url: str, fn: WalkFunc, **options: Any) -> None:
    """遍历 url 目录树。"""
    with H5aiClient(url, **options) as client:
        client.walk(fn)
