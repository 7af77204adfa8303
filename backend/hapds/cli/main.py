"""CLI entrypoint for HAPDS."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import requests
import typer

app = typer.Typer(name="hapds", help="Co-located derived-document command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5180"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("HAPDS_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _key_path(prefix: str, key: str) -> str:
    return f"{prefix}/{quote(key, safe='/')}"


def _read_content(content: Optional[str], file: Optional[Path]) -> str:
    if file is not None:
        return file.expanduser().read_text(encoding="utf-8")
    if content is None:
        typer.echo("Provide --content or --file", err=True)
        raise typer.Exit(code=2)
    return content


@app.command()
def read(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    as_json: bool = typer.Option(False, "--json", help="Request the note JSON representation"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print a document, preferring its derived version."""
    params = {"format": "json" if as_json else "markdown"}
    resp = _request("GET", _key_path("/vault", key), host=host, params=params)
    payload = resp.json()
    marker = "derived" if payload["is_derived"] else "original"
    body = payload["content"] if payload.get("content") is not None else json.dumps(payload["note"], indent=2)
    typer.echo(body)
    typer.echo(f"Source: {payload['served_key']} ({marker} version)", err=True)


@app.command()
def write(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New document content"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read content from this file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Create or replace a document and its derived version."""
    body = {"content": _read_content(content, file)}
    resp = _request("PUT", _key_path("/vault", key), host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def append(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Content to append"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read content from this file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Append to a document and refresh its derived version."""
    body = {"content": _read_content(content, file)}
    resp = _request("POST", _key_path("/vault", key), host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def patch(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Content to insert"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read content from this file"),
    operation: str = typer.Option("append", "--operation", help="append, prepend or replace"),
    target_type: str = typer.Option("heading", "--target-type", help="heading, block or frontmatter"),
    target: str = typer.Option(..., "--target", help="Heading path, block id or frontmatter field"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Separator for nested heading paths"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Patch a document relative to a target and refresh its derived version."""
    body = {
        "content": _read_content(content, file),
        "operation": operation,
        "target_type": target_type,
        "target": target,
        "target_delimiter": delimiter,
    }
    resp = _request("PATCH", _key_path("/vault", key), host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def delete(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete a document and its derived version."""
    resp = _request("DELETE", _key_path("/vault", key), host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def exists(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Report whether the document and its derived version exist."""
    resp = _request("GET", _key_path("/exists", key), host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def regenerate(
    key: str = typer.Argument(..., help="Document key inside the vault"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Rebuild the derived version from the current document."""
    resp = _request("POST", _key_path("/compression/regenerate", key), host=host)
    payload = resp.json()
    typer.echo(f"Original: {payload['source_key']}")
    typer.echo(f"Compressed: {payload['derived_key']}")
    typer.echo(f"Compression ratio: {payload['reduction_percent']}%")


@app.command()
def status(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show rule cache and naming status."""
    resp = _request("GET", "/compression/status", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command("clear-cache")
def clear_cache(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Drop cached rule-sets so the next write reloads them."""
    resp = _request("POST", "/compression/cache/clear", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    app()
