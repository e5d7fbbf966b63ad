"""
h5ailist 异常类型。

传输层错误（超时、连接失败等）直接沿用 httpx.TransportError 系列，不做包装；
遍历控制（跳过目录/终止遍历）不是异常，见 h5ailist.walk.WalkSignal。
"""

from __future__ import annotations


class H5aiError(Exception):
    """本包抛出的所有错误的基类。"""


class InvalidPathError(H5aiError, ValueError):
    """URL 或路径无效：格式错误、百分号编码错误，或对目录形式的 URL 调用 get。"""


class StatusError(H5aiError):
    """服务端返回了非 200 的状态码。"""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"status {status_code} != 200: {url}")
        self.status_code = status_code
        self.url = url


class DecodeError(H5aiError):
    """响应体不是合法 JSON，或不符合严格的列表结构（含未知字段）。"""


class RequestCancelled(H5aiError):
    """取消事件已被设置，请求未发出。"""
