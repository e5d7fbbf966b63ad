"""
URL 与 href 处理：拼接路径、严格的百分号解码、取所在目录。
"""

from __future__ import annotations

import re
from typing import NamedTuple
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from h5ailist.errors import InvalidPathError

# 路径中无需编码的字符（与浏览器对 path 的处理一致）
_PATH_SAFE = "/!$&'()*+,;=:@"
_SEGMENT_SAFE = "!$&'()*+,;=:@"
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class ResolvedPath(NamedTuple):
    """resolve 的结果：请求用的完整 URL、线上 href（编码形式）、用于前缀过滤的解码 href。"""

    url: str
    href: str
    decoded_href: str


def unescape_path(path: str) -> str:
    """
    严格的百分号解码。

    :raises InvalidPathError: 出现不完整的 %XX 转义，或解码后不是合法 UTF-8
    """
    m = _BAD_ESCAPE.search(path)
    if m:
        raise InvalidPathError(f"invalid escape {path[m.start():m.start() + 3]!r} in {path!r}")
    try:
        return unquote(path, errors="strict")
    except UnicodeDecodeError as e:
        raise InvalidPathError(f"invalid utf-8 in {path!r}") from e


def resolve(base_url: str, *paths: str) -> ResolvedPath:
    """
    在 base_url 后拼接路径段。

    base_url 的 path 中已有的 %XX 转义原样保留，未编码的字符（如空格）按 path 规则编码。
    每个参数按 / 拆分，逐段编码后追加；不折叠 . 与 ..；最后一个参数以 / 结尾时保留末尾 /。

    :param base_url: 如 "https://larsjung.de/h5ai/demo/"
    :param paths: 相对路径，如 "file preview", "text.md"
    """
    parts = urlsplit(base_url.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidPathError(f"invalid url {base_url!r}")
    # 只做校验，不解码再编码：%2F 必须保持为 %2F
    unescape_path(parts.path)
    path = quote(parts.path, safe=_PATH_SAFE + "%")
    for p in paths:
        segments = [quote(seg, safe=_SEGMENT_SAFE) for seg in p.split("/") if seg]
        if segments:
            path = path.rstrip("/") + "/" + "/".join(segments)
        if p.endswith("/") and not path.endswith("/"):
            path += "/"
    url = urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
    return ResolvedPath(url, path, unescape_path(path))


def containing_dir(url: str) -> str:
    """URL 所在目录：无末尾 / 时截到最后一个 / 为止；完全没有 / 时补一个。"""
    if url.endswith("/"):
        return url
    i = url.rfind("/")
    if i == -1:
        return url + "/"
    return url[: i + 1]


def with_trailing_slash(s: str) -> str:
    return s if s.endswith("/") else s + "/"
