"""
h5ai 目录列表 Python 客户端。

h5ai 通过对目录 URL 发送 JSON POST 返回条目列表：
- 首次访问前先做一次能力握手（langs/options/setup/theme/types），以取得会话 cookie
- 列表请求 {"action": "get", "items": {"href": ..., "what": 1}}
- 文件内容直接 GET 文件 URL
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, fields
from http.cookiejar import CookieJar
from pathlib import Path
from typing import Any, Callable

import httpx
from pydantic import BaseModel, ValidationError

from h5ailist.errors import DecodeError, InvalidPathError, RequestCancelled, StatusError
from h5ailist.models import Item, Listing
from h5ailist.paths import ResolvedPath, resolve, unescape_path, with_trailing_slash
from h5ailist.session import SessionInitializer
from h5ailist.walk import WalkFunc, walk

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/108.0.0.0 Safari/537.36"
)

# 握手请求：只为建立会话，响应内容不解析
HANDSHAKE_REQUEST: dict[str, Any] = {
    "action": "get",
    "langs": True,
    "options": True,
    "setup": True,
    "theme": True,
    "types": True,
}


def list_request(href: str) -> dict[str, Any]:
    """列表请求体；what=1 表示只取一层。"""
    return {"action": "get", "items": {"href": href, "what": 1}}


def _log_hooks(logf: Callable[[str], None]) -> dict[str, list[Callable[..., None]]]:
    """把 logf 接到 httpx 的 event_hooks 上：每个请求、每个响应各一行。"""

    def on_request(request: httpx.Request) -> None:
        logf(f"--> {request.method} {request.url}")

    def on_response(response: httpx.Response) -> None:
        logf(f"<-- {response.status_code} {response.request.method} {response.url}")

    return {"request": [on_request], "response": [on_response]}


@dataclass
class ClientConfig:
    """
    客户端配置，构造时一次性确定。

    :param base_url: 客户端绑定的目录 URL，如 https://larsjung.de/h5ai/demo/
    :param user_agent: User-Agent 头；空字符串表示不发送
    :param transport: 替换 httpx 默认传输层（测试时可用 httpx.MockTransport）
    :param cookies: 与调用方共享的 cookie jar；默认新建
    :param logf: 请求/响应日志回调，每行调用一次
    :param http_client: 现成的 httpx.Client；提供时 transport/cookies/logf/timeout/verify 均不生效，且不会被 close()
    :param timeout: 请求超时秒数
    :param verify: 是否验证 HTTPS 证书
    :param cancel_event: 设置后不再发出任何请求（抛 RequestCancelled）
    """

    base_url: str
    user_agent: str = DEFAULT_USER_AGENT
    transport: httpx.BaseTransport | None = None
    cookies: CookieJar | None = None
    logf: Callable[[str], None] | None = None
    http_client: httpx.Client | None = None
    timeout: float = 30.0
    verify: bool = True
    cancel_event: threading.Event | None = None


class H5aiClient:
    """
    h5ai 服务器客户端。

    示例： H5aiClient("https://larsjung.de/h5ai/demo/").items("file preview/")
    """

    def __init__(self, base_url: str, **options: Any):
        """
        :param base_url: 目录 URL
        :param options: ClientConfig 的其余字段（user_agent、transport、cookies、logf 等）
        """
        self.config = ClientConfig(base_url=base_url, **options)
        self._client: httpx.Client | None = self.config.http_client
        self._owns_client = self._client is None
        self._session = SessionInitializer(self._handshake)

    @classmethod
    def from_config(cls, config: ClientConfig) -> H5aiClient:
        options = {f.name: getattr(config, f.name) for f in fields(config) if f.name != "base_url"}
        return cls(config.base_url, **options)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _get_client(self) -> httpx.Client:
        if self._owns_client and (self._client is None or self._client.is_closed):
            cfg = self.config
            self._client = httpx.Client(
                transport=cfg.transport,
                cookies=cfg.cookies if cfg.cookies is not None else CookieJar(),
                timeout=cfg.timeout,
                verify=cfg.verify,
                follow_redirects=True,
                event_hooks=_log_hooks(cfg.logf) if cfg.logf else None,
            )
        assert self._client is not None
        return self._client

    def close(self) -> None:
        """关闭底层 HTTP 客户端（调用方传入的 http_client 不关闭）。"""
        if self._owns_client and self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> H5aiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------- 请求 -------------------------

    def _headers(self, url: str) -> dict[str, str]:
        u = httpx.URL(url)
        headers = {
            "Content-Type": "application/json",
            "Referer": f"{u.scheme}://{u.netloc.decode('ascii')}",
        }
        if self.config.user_agent:
            headers["User-Agent"] = self.config.user_agent
        return headers

    def _send(self, method: str, url: str, payload: dict[str, Any] | None = None) -> httpx.Response:
        """发出一个请求；非 200 状态码抛 StatusError。"""
        event = self.config.cancel_event
        if event is not None and event.is_set():
            raise RequestCancelled(f"cancelled before {method} {url}")
        client = self._get_client()
        if payload is None:
            r = client.request(method, url, headers=self._headers(url))
        else:
            r = client.request(method, url, json=payload, headers=self._headers(url))
        if r.status_code != httpx.codes.OK:
            raise StatusError(r.status_code, url)
        return r

    def _do(self, url: str, payload: dict[str, Any], model: type[BaseModel] | None = None) -> Any:
        """POST JSON；model 不为 None 时按严格结构解码响应。"""
        r = self._send("POST", url, payload)
        if model is None:
            return None
        try:
            data = r.json()
        except ValueError as e:
            raise DecodeError(f"invalid json from {url}: {e}") from e
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"unexpected response from {url}: {e}") from e

    def _handshake(self, url: str) -> None:
        self._do(url, HANDSHAKE_REQUEST)

    def ensure_initialized(self, url: str) -> None:
        """确保会话握手已完成；首次失败后每次都抛出同一个错误。"""
        self._session.ensure(url)

    def request(self, url: str, payload: dict[str, Any], model: type[BaseModel] | None = None) -> Any:
        """先确保会话，再向 url POST payload。"""
        self.ensure_initialized(url)
        return self._do(url, payload, model)

    # ------------------------- 路径 -------------------------

    def resolve(self, *paths: str) -> ResolvedPath:
        """base_url 拼接 paths，返回 (url, href, decoded_href)。"""
        return resolve(self.config.base_url, *paths)

    # ------------------------- 列表 -------------------------

    def list_children(self, url: str, href: str, filter_to_children: bool = True) -> list[Item]:
        """
        请求 href 的列表。

        :param url: 发送请求的目录 URL（缺少末尾 / 时补上）
        :param href: 要列出的目录 href
        :param filter_to_children: 为 True 时解码 href，只保留以父 href 为真前缀的条目（去掉目录自身和无关条目）
        :return: 按服务端顺序的条目
        """
        url = with_trailing_slash(url)
        log.debug("list %s href=%s", url, href)
        listing: Listing = self.request(url, list_request(href), Listing)
        entries = listing.items or []
        if not filter_to_children:
            return entries
        parent = unescape_path(href)
        children: list[Item] = []
        for entry in entries:
            decoded = unescape_path(entry.href)
            if decoded != parent and decoded.startswith(parent):
                children.append(entry.model_copy(update={"href": decoded}))
        return children

    def list(self, *paths: str) -> list[Item]:
        """返回服务端原样的列表（含目录自身等条目）。"""
        resolved = self.resolve(*paths)
        return self.list_children(resolved.url, resolved.href, False)

    def items(self, *paths: str) -> list[Item]:
        """只返回目录下的条目（href 已解码）。"""
        resolved = self.resolve(*paths)
        return self.list_children(resolved.url, resolved.href, True)

    # ------------------------- 下载 -------------------------

    def get(self, *paths: str, save_to: str | Path | None = None) -> bytes:
        """
        下载文件，整体读入内存。

        :param paths: 相对 base_url 的文件路径，如 "file preview", "text.md"
        :param save_to: 本地保存路径，若提供则写入文件
        :return: 文件内容（bytes）
        :raises InvalidPathError: URL 以 / 结尾（目录），此时不发出任何请求
        """
        resolved = self.resolve(*paths)
        if resolved.url.endswith("/"):
            raise InvalidPathError(f"invalid url {resolved.url}")
        self.ensure_initialized(resolved.url)
        log.debug("get %s", resolved.url)
        content = self._send("GET", resolved.url).content
        if save_to:
            Path(save_to).parent.mkdir(parents=True, exist_ok=True)
            Path(save_to).write_bytes(content)
        return content

    # ------------------------- 遍历 -------------------------

    def walk(self, fn: WalkFunc, *paths: str) -> None:
        """深度优先遍历 paths 对应目录，对每个条目调用 fn，见 h5ailist.walk。"""
        walk(self, fn, *paths)
