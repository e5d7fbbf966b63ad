"""
h5ailist CLI：保存一次默认服务器地址，之后可直接用相对路径；也可直接粘贴完整链接。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional
from urllib.parse import urlparse

import typer
from pydantic import ValidationError

from h5ailist import H5aiClient, Item, WalkSignal
from h5ailist.cli_config import clear_config, load_config, save_config
from h5ailist.paths import unescape_path, with_trailing_slash

log = logging.getLogger("h5ailist.cli")


def _format_size(n: int) -> str:
    """将字节数格式化为人类可读（KiB/MiB/GiB）。"""
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MiB"
    return f"{n / (1024 * 1024 * 1024):.1f} GiB"


def _format_item(item: Item, name: str | None = None) -> str:
    size = _format_size(item.file_size) if item.has_size else "-"
    modified = item.time.strftime("%Y-%m-%d %H:%M") if item.time else "-"
    return f"{name or item.href}  {size}  {modified}"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # httpx 自身的日志由 logf 代替
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


app = typer.Typer(
    name="h5ai",
    help="h5ai directory listing CLI. Save a base URL once, then use paths relative to it.",
)

# 可选参数：覆盖或补充 base_url（未保存时必填）
_base_url_option: type = Annotated[
    Optional[str],
    typer.Option("--base-url", "-b", help="Override saved base URL (or required if none saved)"),
]
_verbose_option: type = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log every HTTP request and response to stderr"),
]


def _parse_path_or_url(path_or_url: str) -> tuple[str, str | None]:
    """
    解析「相对路径」或「完整链接」。
    返回 (path, base_url_override)。
    - 若输入为 http(s)://host/... → path 为空，整个链接作为 base_url
    - 否则视为相对 base_url 的路径，去掉前导 /（保留末尾 /）
    """
    raw = (path_or_url or "").strip()
    if not raw:
        return "", None
    parsed = urlparse(raw)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return "", raw
    return raw.lstrip("/"), None


def _get_client(base_url: str | None, verbose: bool = False) -> H5aiClient | None:
    cfg = load_config()
    url = base_url or (cfg.base_url if cfg else None)
    if not url:
        return None
    options = {}
    if cfg and cfg.user_agent is not None:
        options["user_agent"] = cfg.user_agent
    if verbose:
        options["logf"] = log.debug
    return H5aiClient(url, timeout=30.0, **options)


def _require_client(base_url: str | None, verbose: bool = False) -> H5aiClient:
    client = _get_client(base_url, verbose)
    if client is None:
        typer.echo("error: no saved base URL. run 'h5ai config save' or pass --base-url", err=True)
        raise typer.Exit(1)
    return client


# ------------------------- list / ls / items -------------------------


def _cmd_list_impl(target: str, base_url: str | None, verbose: bool, filtered: bool) -> None:
    _setup_logging(verbose)
    path, url_override = _parse_path_or_url(target)
    client = _require_client(url_override or base_url, verbose)
    try:
        entries = client.items(path) if filtered else client.list(path)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        client.close()
    for item in entries:
        typer.echo(f"  {_format_item(item)}")


@app.command("list", help="List directory as returned by the server (includes the directory itself)")
def list_cmd(
    target: Annotated[str, typer.Argument(help="Directory path or full URL (default: base URL)")] = "",
    base_url: _base_url_option = None,
    verbose: _verbose_option = False,
) -> None:
    _cmd_list_impl(target, base_url, verbose, filtered=False)


@app.command("ls", help="Alias for list")
def ls_cmd(
    target: Annotated[str, typer.Argument(help="Directory path or full URL (default: base URL)")] = "",
    base_url: _base_url_option = None,
    verbose: _verbose_option = False,
) -> None:
    _cmd_list_impl(target, base_url, verbose, filtered=False)


@app.command("items", help="List only the entries below a directory")
def items_cmd(
    target: Annotated[str, typer.Argument(help="Directory path or full URL (default: base URL)")] = "",
    base_url: _base_url_option = None,
    verbose: _verbose_option = False,
) -> None:
    _cmd_list_impl(target, base_url, verbose, filtered=True)


# ------------------------- get -------------------------


@app.command("get", help="Download a file")
def get_cmd(
    target: Annotated[str, typer.Argument(help="File path or full URL (e.g. 'file preview/text.md')")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Local path (default: same name)")] = None,
    base_url: _base_url_option = None,
    verbose: _verbose_option = False,
) -> None:
    _setup_logging(verbose)
    path, url_override = _parse_path_or_url(target)
    client = _require_client(url_override or base_url, verbose)
    try:
        remote = client.resolve(path).decoded_href
        out = str(output) if output is not None else (Path(remote).name or "index.html")
        content = client.get(path, save_to=out)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        client.close()
    typer.echo(f"Saved {_format_size(len(content))} to {out}.")


# ------------------------- walk -------------------------


@app.command("walk", help="Walk a directory tree recursively")
def walk_cmd(
    target: Annotated[str, typer.Argument(help="Directory path or full URL (default: base URL)")] = "",
    max_depth: Annotated[Optional[int], typer.Option("--max-depth", "-d", help="Do not descend below this depth")] = None,
    dirs_only: Annotated[bool, typer.Option("--dirs-only", help="Print directories only")] = False,
    base_url: _base_url_option = None,
    verbose: _verbose_option = False,
) -> None:
    _setup_logging(verbose)
    path, url_override = _parse_path_or_url(target)
    client = _require_client(url_override or base_url, verbose)
    counts = {"items": 0, "directories": 0, "files": 0, "size": 0, "errors": 0}

    try:
        root = client.resolve(path)
        root_href = with_trailing_slash(root.href)
        root_key = with_trailing_slash(unescape_path(root.href))

        def depth_of(p: str) -> int:
            if p == root_href:
                return 0
            rel = p[len(root_key):] if p.startswith(root_key) else p
            return rel.rstrip("/").count("/") + 1

        def visit(p: str, item: Item | None, err: Exception | None) -> WalkSignal | None:
            if item is None:
                raise err if err is not None else RuntimeError(f"no item for {p}")
            if err is not None:
                counts["errors"] += 1
                typer.echo(f"error: {p}: {err}", err=True)
                return WalkSignal.SKIP_DIR
            depth = depth_of(p)
            counts["items"] += 1
            if item.is_dir:
                counts["directories"] += 1
            else:
                counts["files"] += 1
                counts["size"] += item.file_size
            if item.is_dir or not dirs_only:
                name = p if depth == 0 else p.rstrip("/").rsplit("/", 1)[-1] + ("/" if item.is_dir else "")
                typer.echo("  " * depth + _format_item(item, name))
            if item.is_dir and max_depth is not None and depth >= max_depth:
                return WalkSignal.SKIP_DIR
            return None

        client.walk(visit, path)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        client.close()
    typer.echo(
        f"items: {counts['items']} directories: {counts['directories']} "
        f"files: {counts['files']} size: {_format_size(counts['size'])}"
    )
    if counts["errors"]:
        raise typer.Exit(1)


# ------------------------- config -------------------------


config_app = typer.Typer(help="Config subcommands")
app.add_typer(config_app, name="config")


@config_app.command("save", help="Save default base URL to local config")
def config_save(
    base_url: Annotated[Optional[str], typer.Option("--base-url", "-b", help="h5ai directory URL")] = None,
    user_agent: Annotated[Optional[str], typer.Option("--user-agent", "-a", help="User-Agent header")] = None,
) -> None:
    base_url = base_url or input("Base URL (e.g. https://larsjung.de/h5ai/demo/): ").strip()
    if not base_url:
        typer.echo("error: base URL required", err=True)
        raise typer.Exit(1)
    try:
        save_config(base_url, user_agent)
    except ValidationError:
        typer.echo(f"error: invalid base URL {base_url!r}", err=True)
        raise typer.Exit(1)
    typer.echo("Saved.")


@config_app.command("clear", help="Clear saved config")
def config_clear() -> None:
    if clear_config():
        typer.echo("Cleared.")
    else:
        typer.echo("No saved config.")


@config_app.command("show", help="Show saved config")
def config_show() -> None:
    cfg = load_config()
    if cfg is None:
        typer.echo("No saved config.")
        return
    typer.echo(f"base_url: {cfg.base_url}")
    typer.echo(f"user_agent: {cfg.user_agent or '(default)'}")


# ------------------------- info -------------------------


@app.command("info", help="Show saved base URL")
def info_cmd() -> None:
    cfg = load_config()
    if cfg is None:
        typer.echo("No saved config. Run 'h5ai config save' or pass --base-url for commands.")
        return
    typer.echo(f"base_url: {cfg.base_url}")


# ------------------------- main -------------------------


def main() -> None:
    app()


if __name__ == "__main__":
    main()
