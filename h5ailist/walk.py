"""
递归遍历：深度优先、严格顺序，一次只有一个请求在途。

回调 fn(path, item, err) 的返回值控制遍历：
- None / WalkSignal.CONTINUE：继续
- WalkSignal.SKIP_DIR：不进入当前目录（兄弟条目照常遍历）
- WalkSignal.SKIP_ALL：立即结束整个遍历
回调抛出的异常会中止遍历并原样抛给调用方。
SKIP_DIR / SKIP_ALL 传到顶层时，遍历视为成功结束。
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional

import httpx

from h5ailist.errors import H5aiError
from h5ailist.models import Item
from h5ailist.paths import with_trailing_slash

if TYPE_CHECKING:
    from h5ailist.client import H5aiClient


class WalkSignal(enum.Enum):
    CONTINUE = "continue"
    SKIP_DIR = "skip dir"
    SKIP_ALL = "skip all"


WalkFunc = Callable[[str, Optional[Item], Optional[Exception]], Optional[WalkSignal]]

# 列表/握手失败时交给回调处理的错误；其余异常直接向上抛
_LIST_ERRORS = (H5aiError, httpx.HTTPError)


def _signal(value: WalkSignal | None) -> WalkSignal:
    if value is None:
        return WalkSignal.CONTINUE
    if not isinstance(value, WalkSignal):
        raise TypeError(f"walk callback must return WalkSignal or None, got {value!r}")
    return value


def walk(client: H5aiClient, fn: WalkFunc, *paths: str) -> None:
    """
    遍历 client.base_url 拼接 paths 后的目录树。

    先对根目录做会话握手；握手失败时以 (根 href, None, 错误) 调用一次 fn 后结束。
    """
    resolved = client.resolve(*paths)
    url = with_trailing_slash(resolved.url)
    href = with_trailing_slash(resolved.href)
    try:
        client.ensure_initialized(url)
    except _LIST_ERRORS as e:
        # path 传根目录的 href（带末尾 /），与成功时第一次回调的 path 相同，而不是字面的 "/"
        _signal(fn(href, None, e))
        return
    root = Item(href=href, managed=True, fetched=True, time=datetime.now(timezone.utc))
    # 无论最终信号为何，到达顶层即为成功
    _visit(client, url, root, fn)


def _visit(client: H5aiClient, url: str, item: Item, fn: WalkFunc) -> WalkSignal:
    if not item.is_dir:
        return _signal(fn(item.href, item, None))
    children: list[Item] = []
    error: Exception | None = None
    try:
        children = client.list_children(url, item.href, True)
    except _LIST_ERRORS as e:
        error = e
    signal = _signal(fn(item.href, item, error))
    if error is not None or signal is not WalkSignal.CONTINUE:
        return signal
    for child in children:
        # SKIP_DIR 只作用于该子目录本身
        if _visit(client, url, child, fn) is WalkSignal.SKIP_ALL:
            return WalkSignal.SKIP_ALL
    return WalkSignal.CONTINUE
