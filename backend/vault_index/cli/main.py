"""CLI entrypoint for Vault Index."""

from __future__ import annotations

import json
import os
from typing import Optional

import requests
import typer

app = typer.Typer(name="vidx", help="Vault Index command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5173"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("VIDX_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=600, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def index(
    modified: bool = typer.Option(False, "--modified", help="Only index new or changed notes"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Build or refresh the vector store."""
    resp = _request("POST", "/index", host=host, json={"mode": "modified" if modified else "all"})
    payload = resp.json()
    if payload.get("rejected"):
        typer.echo("Indexing already in progress", err=True)
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def query(
    q: str = typer.Argument(..., help="Query text"),
    k: Optional[int] = typer.Option(None, "--k", help="Number of results to return"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search the vector store."""
    payload: dict[str, object] = {"query": q}
    if k is not None:
        payload["k"] = k
    resp = _request("POST", "/query", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def chat(
    message: str = typer.Argument(..., help="Question about your notes"),
    k: Optional[int] = typer.Option(None, "--k", help="Number of notes to use as context"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question answered from the closest notes."""
    payload: dict[str, object] = {"messages": [{"role": "user", "content": message}]}
    if k is not None:
        payload["k"] = k
    resp = _request("POST", "/chat", host=host, json=payload)
    body = resp.json()
    typer.echo(body["reply"])
    if body["sources"]:
        typer.echo("\nSources:")
        for source in body["sources"]:
            typer.echo(f"  {source['score']:.3f}  {source['title']} ({source['id']})")


@app.command()
def stats(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show vector store statistics."""
    resp = _request("GET", "/stats", host=host)
    body = resp.json()
    typer.echo(f"Indexed notes: {body['total_entries']} | Last updated: {body['last_updated']}")


@app.command()
def check(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Check that the embedding provider answers a test request."""
    body = _request("GET", "/health/provider", host=host).json()
    if not body["ok"]:
        typer.echo(f"Provider {body['provider']} is not reachable", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Provider {body['provider']} is reachable")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Remove every stored vector; a full re-index is needed afterwards."""
    if not yes:
        typer.confirm("Remove all indexed vectors?", abort=True)
    _request("POST", "/clear", host=host)
    typer.echo(json.dumps({"status": "ok"}))


if __name__ == "__main__":
    app()
