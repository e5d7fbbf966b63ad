"""
pytest 配置与共享 fixture。

FakeH5ai 模拟 h5ai 服务端（握手、列表、文件下载），通过 httpx.MockTransport 注入客户端。
示例数据见 tests.config。
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from h5ailist import H5aiClient

from tests.config import H5AI_BASE_URL, H5AI_FILES, H5AI_LISTINGS


class FakeH5ai:
    """按 href 返回预置列表的假 h5ai 服务器，并记录收到的每个请求。"""

    def __init__(
        self,
        listings: dict[str, list[dict[str, Any]]] | None = None,
        files: dict[str, bytes] | None = None,
        *,
        handshake_status: int = 200,
        set_cookie: str | None = None,
    ):
        self.listings = H5AI_LISTINGS if listings is None else listings
        self.files = H5AI_FILES if files is None else files
        self.handshake_status = handshake_status
        self.set_cookie = set_cookie
        self.requests: list[httpx.Request] = []
        self.handshakes = 0
        self.listed: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            content = self.files.get(request.url.path)
            if content is None:
                return httpx.Response(404)
            return httpx.Response(200, content=content)
        body = json.loads(request.content)
        if "items" in body:
            href = body["items"]["href"]
            self.listed.append(href)
            # 列表按解码后的 href 查找，编码与未编码的请求都能命中
            key = unquote(href)
            entries = self.listings.get(key)
            if entries is None:
                entries = self.listings.get(key + "/")
            if entries is None:
                return httpx.Response(404)
            return httpx.Response(200, json={"items": entries})
        self.handshakes += 1
        headers = {"Set-Cookie": self.set_cookie} if self.set_cookie else None
        return httpx.Response(self.handshake_status, json={"langs": {}, "options": {}}, headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake() -> FakeH5ai:
    return FakeH5ai()


@pytest.fixture
def client(fake: FakeH5ai) -> H5aiClient:
    """绑定到 H5AI_BASE_URL、由 fake 应答的客户端。"""
    c = H5aiClient(H5AI_BASE_URL, transport=fake.transport())
    yield c
    c.close()
