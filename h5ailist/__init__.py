"""h5ai 目录列表 Python 客户端 - https://larsjung.de/h5ai/"""

from h5ailist import api
from h5ailist.client import DEFAULT_USER_AGENT, ClientConfig, H5aiClient
from h5ailist.errors import DecodeError, H5aiError, InvalidPathError, RequestCancelled, StatusError
from h5ailist.models import Item, Listing
from h5ailist.paths import ResolvedPath, containing_dir, resolve, unescape_path
from h5ailist.walk import WalkFunc, WalkSignal

__all__ = [
    "api",
    "H5aiClient",
    "ClientConfig",
    "DEFAULT_USER_AGENT",
    "Item",
    "Listing",
    "WalkFunc",
    "WalkSignal",
    "ResolvedPath",
    "resolve",
    "unescape_path",
    "containing_dir",
    "H5aiError",
    "InvalidPathError",
    "StatusError",
    "DecodeError",
    "RequestCancelled",
]
