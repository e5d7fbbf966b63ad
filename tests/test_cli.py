"""
CLI（typer）单元测试。不访问网络：用 FakeH5ai 支撑的真实客户端或 MagicMock 替换 _get_client。
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from h5ailist import H5aiClient, Item
from h5ailist.cli import _format_size, _parse_path_or_url, app
from h5ailist.cli_config import clear_config, load_config, save_config

from tests.conftest import FakeH5ai
from tests.config import H5AI_BASE_URL

runner = CliRunner()


@pytest.fixture(autouse=True)
def _patch_config_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """将配置路径指向临时目录。"""
    config_dir = tmp_path / "h5ailist"
    config_dir.mkdir(parents=True, exist_ok=True)

    def _config_dir():
        return config_dir

    monkeypatch.setattr("h5ailist.cli_config._config_dir", _config_dir)


def _fake_client(fake: FakeH5ai, base_url: str = H5AI_BASE_URL) -> H5aiClient:
    return H5aiClient(base_url, transport=fake.transport())


# ------------------------- config / info -------------------------


def test_config_save_and_show() -> None:
    result = runner.invoke(app, ["config", "save", "--base-url", H5AI_BASE_URL, "--user-agent", "ua/1"])
    assert result.exit_code == 0
    assert "Saved." in result.stdout
    cfg = load_config()
    assert cfg is not None
    assert cfg.base_url == H5AI_BASE_URL.rstrip("/")

    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "user_agent: ua/1" in result.stdout


def test_config_save_rejects_empty_url() -> None:
    result = runner.invoke(app, ["config", "save", "--base-url", "/"])
    assert result.exit_code == 1
    assert "error: invalid base URL" in result.output
    assert load_config() is None


def test_config_clear() -> None:
    save_config(H5AI_BASE_URL)
    result = runner.invoke(app, ["config", "clear"])
    assert "Cleared." in result.stdout
    result = runner.invoke(app, ["config", "clear"])
    assert "No saved config." in result.stdout


def test_info() -> None:
    clear_config()
    result = runner.invoke(app, ["info"])
    assert "No saved config" in result.stdout
    save_config(H5AI_BASE_URL)
    result = runner.invoke(app, ["info"])
    assert f"base_url: {H5AI_BASE_URL.rstrip('/')}" in result.stdout


# ------------------------- helpers -------------------------


def test_format_size() -> None:
    assert _format_size(0) == "0 B"
    assert _format_size(1024) == "1.0 KiB"
    assert _format_size(1536 * 1024) == "1.5 MiB"
    assert _format_size(1024 * 1024 * 1024) == "1.0 GiB"


def test_parse_path_or_url() -> None:
    assert _parse_path_or_url("") == ("", None)
    assert _parse_path_or_url("/sub/") == ("sub/", None)
    assert _parse_path_or_url("file preview/text.md") == ("file preview/text.md", None)
    assert _parse_path_or_url("  https://larsjung.de/h5ai/demo/  ") == ("", "https://larsjung.de/h5ai/demo/")


# ------------------------- list / items -------------------------


def test_list_without_base_url_exits_1() -> None:
    clear_config()
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "no saved base URL" in result.output


def test_items_prints_children() -> None:
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["items", "--base-url", H5AI_BASE_URL])
    assert result.exit_code == 0
    assert "/demo/a.txt  5 B  2023-11-14 22:13" in result.stdout
    assert "/demo/sub/  -" in result.stdout
    assert "/other/x.txt" not in result.stdout


def test_list_uses_mock_client() -> None:
    mock_client = MagicMock()
    mock_client.list.return_value = [Item(href="/demo/", managed=True), Item(href="/demo/a.txt", size=5)]
    with patch("h5ailist.cli._get_client", return_value=mock_client) as get_client:
        result = runner.invoke(app, ["ls", "https://larsjung.de/h5ai/demo/"])
    assert result.exit_code == 0
    assert get_client.call_args[0][0] == "https://larsjung.de/h5ai/demo/"
    mock_client.list.assert_called_once_with("")
    mock_client.close.assert_called_once()
    assert "/demo/a.txt  5 B" in result.stdout


def test_list_error_exits_1() -> None:
    mock_client = MagicMock()
    mock_client.list.side_effect = RuntimeError("boom")
    with patch("h5ailist.cli._get_client", return_value=mock_client):
        result = runner.invoke(app, ["list", "--base-url", H5AI_BASE_URL])
    assert result.exit_code == 1
    assert "error: boom" in result.output
    mock_client.close.assert_called_once()


# ------------------------- get -------------------------


def test_get_saves_file(tmp_path: Path) -> None:
    fake = FakeH5ai()
    out = tmp_path / "out.md"
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["get", "file preview/text file.md", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_bytes() == b"# markdown"
    assert f"to {out}" in result.stdout


def test_get_default_output_name(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["get", "a.txt"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "a.txt").read_bytes() == b"hello"


def test_get_directory_exits_1() -> None:
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["get", "sub/"])
    assert result.exit_code == 1
    assert "invalid url" in result.output
    assert fake.requests == []


# ------------------------- walk -------------------------


def test_walk_prints_tree_and_summary() -> None:
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["walk"])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0].startswith("/demo/  -")
    assert lines[1].startswith("  a.txt  5 B")
    assert lines[2].startswith("  sub/  -")
    assert lines[3].startswith("    b.bin  0 B")
    assert lines[4].startswith("    deep/")
    assert lines[5].startswith("      c.txt  3 B")
    assert lines[6].startswith("  file preview/")
    assert lines[7].startswith("    text file.md  10 B")
    assert lines[-1] == "items: 8 directories: 4 files: 4 size: 18 B"


def test_walk_max_depth() -> None:
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["walk", "--max-depth", "1"])
    assert result.exit_code == 0, result.output
    assert "b.bin" not in result.stdout
    assert result.stdout.splitlines()[-1] == "items: 4 directories: 3 files: 1 size: 5 B"


def test_walk_dirs_only() -> None:
    fake = FakeH5ai()
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["walk", "--dirs-only"])
    assert result.exit_code == 0, result.output
    assert "a.txt" not in result.stdout
    assert "deep/" in result.stdout


def test_walk_list_error_exits_1_after_summary() -> None:
    fake = FakeH5ai({"/demo/": [{"href": "/demo/broken/", "managed": True}, {"href": "/demo/ok.txt", "size": 2}]})
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["walk"])
    assert result.exit_code == 1
    assert "error: /demo/broken/" in result.output
    assert "ok.txt" in result.stdout
    assert "items: 2 directories: 1 files: 1 size: 2 B" in result.stdout


def test_walk_handshake_failure_exits_1() -> None:
    fake = FakeH5ai(handshake_status=500)
    with patch("h5ailist.cli._get_client", return_value=_fake_client(fake)):
        result = runner.invoke(app, ["walk"])
    assert result.exit_code == 1
    assert "status 500" in result.output
