"""Yarnlog CLI — run the server, set up the database, talk to the API.

Usage:
    yarnlog serve                                  # Run the API with uvicorn
    yarnlog init-db                                # Create tables
    yarnlog gen-secret                             # Print a value for YARNLOG_JWT_SECRET
    yarnlog register alice a@x.com                 # Create an account (prompts for password)
    yarnlog login a@x.com                          # Print an access token
    yarnlog projects                               # List your projects (needs YARNLOG_TOKEN)
    yarnlog add-project "Sweater" -d "Raglan"      # Create a project
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import secrets
import sys
from typing import Optional

import click
import httpx

from yarnlog import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("YARNLOG_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Yarnlog backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running (e.g. tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token() -> str:
    token = os.environ.get("YARNLOG_TOKEN")
    if not token:
        click.secho(
            "Error: set YARNLOG_TOKEN (see `yarnlog login`)", fg="red", err=True
        )
        sys.exit(1)
    return token


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail_on_error(resp: httpx.Response) -> dict:
    """Exit non-zero with the server's error message on a non-2xx response."""
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if resp.status_code >= 400:
        message = body.get("error", resp.text) if isinstance(body, dict) else resp.text
        click.secho(f"Error ({resp.status_code}): {message}", fg="red", err=True)
        sys.exit(1)
    return body


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(
            str(row.get(k) if row.get(k) is not None else "—")[:w].ljust(w)
            for _, k, w in columns
        )
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="yarnlog")
def main():
    """Yarnlog — track your projects behind a bearer-token API."""


# ---------------------------------------------------------------------------
# Server-side commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: YARNLOG_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: YARNLOG_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from yarnlog.config import settings

    uvicorn.run(
        "yarnlog.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create database tables that don't exist yet."""
    from yarnlog.db.engine import engine, init_models

    async def _impl():
        await init_models()
        await engine.dispose()

    _run(_impl())
    click.secho("Tables created.", fg="green")


@main.command("gen-secret")
@click.option("--bytes", "nbytes", default=32, show_default=True, help="Entropy in bytes")
def gen_secret(nbytes: int):
    """Print a random secret for YARNLOG_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(nbytes))


# ---------------------------------------------------------------------------
# API client commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create an account and print its access token."""
    _run(_register_impl(username, email, password))


async def _register_impl(username: str, email: str, password: str):
    async with _client() as c:
        resp = await c.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
    body = _fail_on_error(resp)
    click.secho(f"Registered {body['user']['username']} (id {body['user']['id']})", fg="green")
    click.echo(body["token"])


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print an access token."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        resp = await c.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
    body = _fail_on_error(resp)
    click.echo(body["token"])


@main.command()
def whoami():
    """Show the user behind YARNLOG_TOKEN."""
    _run(_whoami_impl(_token()))


async def _whoami_impl(token: str):
    async with _client() as c:
        resp = await c.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
    body = _fail_on_error(resp)
    click.echo(_pretty_json(body["user"]))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def projects(as_json: bool):
    """List your projects, newest first."""
    _run(_projects_impl(_token(), as_json))


async def _projects_impl(token: str, as_json: bool):
    async with _client() as c:
        resp = await c.get(
            "/api/projects", headers={"Authorization": f"Bearer {token}"}
        )
    body = _fail_on_error(resp)

    if as_json:
        click.echo(_pretty_json(body["projects"]))
        return
    if not body["projects"]:
        click.echo("No projects yet.")
        return
    _print_table(
        body["projects"],
        [("ID", "id", 6), ("NAME", "name", 30), ("DESCRIPTION", "description", 40)],
    )


@main.command("add-project")
@click.argument("name")
@click.option("--description", "-d", default=None, help="Optional description")
def add_project(name: str, description: Optional[str]):
    """Create a project."""
    _run(_add_project_impl(_token(), name, description))


async def _add_project_impl(token: str, name: str, description: Optional[str]):
    async with _client() as c:
        resp = await c.post(
            "/api/projects",
            json={"name": name, "description": description},
            headers={"Authorization": f"Bearer {token}"},
        )
    body = _fail_on_error(resp)
    click.secho(
        f"Created project {body['project']['id']}: {body['project']['name']}",
        fg="green",
    )


if __name__ == "__main__":
    main()
