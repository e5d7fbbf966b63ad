"""
会话初始化：每个客户端只做一次「能力握手」，结果（成功或失败）被记住并共享。
"""

from __future__ import annotations

import logging
import threading
from types import TracebackType
from typing import Callable

from h5ailist.paths import containing_dir

log = logging.getLogger(__name__)


class SessionInitializer:
    """
    只结算一次的初始化结果。

    第一次 ensure() 时对 URL 所在目录执行 handshake(url)；此后无论参数为何，
    都直接返回（或重新抛出）第一次的结果，不再发请求。
    检查与设置在同一把锁内完成，锁在握手期间一直持有，并发的首次调用只会产生一次握手。
    """

    def __init__(self, handshake: Callable[[str], None]):
        """
        :param handshake: 实际执行握手的函数，参数为已规范化为目录形式的 URL；失败时抛异常
        """
        self._handshake = handshake
        self._lock = threading.Lock()
        self._settled = False
        self._error: BaseException | None = None
        self._traceback: TracebackType | None = None

    @property
    def settled(self) -> bool:
        """是否已经完成（成功或失败）握手。"""
        return self._settled

    def ensure(self, url: str) -> None:
        """确保已初始化；若首次握手失败，则每次调用都抛出同一个异常。"""
        with self._lock:
            if not self._settled:
                target = containing_dir(url)
                log.debug("session handshake %s", target)
                try:
                    self._handshake(target)
                except Exception as e:
                    log.debug("session handshake failed: %s", e)
                    self._error = e
                    self._traceback = e.__traceback__
                self._settled = True
            if self._error is not None:
                # 从首次失败时的 traceback 重新抛出，其长度不随调用次数增长
                raise self._error.with_traceback(self._traceback)
