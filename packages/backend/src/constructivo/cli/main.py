"""Constructivo CLI — inspect the site API, moderate testimonials, watch invalidations.

Usage:
    constructivo health                      # Server, database and realtime status
    constructivo projects                    # Portfolio projects
    constructivo testimonials --approved     # Testimonials (all needs an admin token)
    constructivo approve 12                  # Approve testimonial #12
    constructivo reject 12                   # Reject testimonial #12
    constructivo watch                       # Print cache invalidations as they arrive
    constructivo seed --create-tables        # Load demo data into the database
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from constructivo import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("CONSTRUCTIVO_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Constructivo backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Inside an already running loop (CliRunner under pytest-asyncio) the
    coroutine runs on a worker thread with its own loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(response: httpx.Response) -> None:
    """Print the API's error detail and exit non-zero."""
    try:
        detail = response.json().get("detail", response.text)
    except ValueError:
        detail = response.text
    click.secho(f"Error {response.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _testimonial_status(t: dict) -> str:
    if t.get("approved"):
        return click.style("approved", fg="green")
    if t.get("rejected"):
        return click.style("rejected", fg="red")
    return click.style("pending", fg="yellow")


token_option = click.option(
    "--token",
    envvar="CONSTRUCTIVO_TOKEN",
    help="Access token (or set CONSTRUCTIVO_TOKEN)",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="constructivo")
def main():
    """Constructivo — site API client and realtime cache watcher."""


# ---------------------------------------------------------------------------
# constructivo health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Show server health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        r = await c.get("/api/health")
        if r.status_code != 200:
            _fail(r)
        data = r.json()

    color = "green" if data["status"] == "healthy" else "yellow"
    click.secho(f"Status:   {data['status']}", fg=color, bold=True)
    click.echo(f"Version:  {data.get('version', '—')}")
    click.echo(f"Database: {data.get('database', '—')}")
    click.echo(f"Redis:    {data.get('redis', '—')}")
    realtime = data.get("realtime", {})
    click.echo(
        f"Realtime: {realtime.get('connections', 0)} connection(s), "
        f"{realtime.get('admins', 0)} admin"
    )


# ---------------------------------------------------------------------------
# constructivo projects
# ---------------------------------------------------------------------------


@main.command()
@click.option("--category", "-c", help="Only projects in this category")
@click.option("--sort", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def projects(category: Optional[str], sort: str, as_json: bool):
    """List portfolio projects."""
    _run(_projects_impl(category, sort, as_json))


async def _projects_impl(category: Optional[str], sort: str, as_json: bool):
    params = {"sort": sort}
    if category:
        params["category"] = category

    async with _client() as c:
        r = await c.get("/api/projects", params=params)
        if r.status_code != 200:
            _fail(r)
        rows = r.json()

    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No projects found.")
        return

    click.secho(f"Projects ({len(rows)}):", bold=True)
    for p in rows:
        star = "★" if p.get("featured") else " "
        click.echo(f"  #{p['id']:<4d} {star} {p['title'][:50]:50s}  {p['category']}")


# ---------------------------------------------------------------------------
# constructivo testimonials / approve / reject
# ---------------------------------------------------------------------------


@main.command()
@click.option("--approved", is_flag=True, help="Only approved testimonials (no token needed)")
@token_option
def testimonials(approved: bool, token: Optional[str]):
    """List testimonials."""
    _run(_testimonials_impl(approved, token))


async def _testimonials_impl(approved: bool, token: Optional[str]):
    path = "/api/testimonials/approved" if approved else "/api/testimonials"
    async with _client(token) as c:
        r = await c.get(path)
        if r.status_code != 200:
            _fail(r)
        rows = r.json()

    if not rows:
        click.echo("No testimonials found.")
        return

    click.secho(f"Testimonials ({len(rows)}):", bold=True)
    for t in rows:
        click.echo(f"  #{t['id']:<4d} {_testimonial_status(t):20s}  {t['name']} ({t['role']})")
        click.echo(f"        {t['content'][:90]}")


@main.command()
@click.argument("testimonial_id", type=int)
@token_option
def approve(testimonial_id: int, token: Optional[str]):
    """Approve a testimonial so it shows on the site."""
    _run(_set_status_impl(testimonial_id, token, approved=True))


@main.command()
@click.argument("testimonial_id", type=int)
@token_option
def reject(testimonial_id: int, token: Optional[str]):
    """Reject a testimonial."""
    _run(_set_status_impl(testimonial_id, token, approved=False))


async def _set_status_impl(testimonial_id: int, token: Optional[str], approved: bool):
    async with _client(token) as c:
        r = await c.patch(
            f"/api/testimonials/{testimonial_id}/status",
            json={"approved": approved, "rejected": not approved},
        )
        if r.status_code != 200:
            _fail(r)
        t = r.json()

    click.echo(f"Testimonial #{t['id']} from {t['name']}: {_testimonial_status(t)}")


# ---------------------------------------------------------------------------
# constructivo watch
# ---------------------------------------------------------------------------


class EchoCache:
    """Cache stand-in that prints each invalidation instead of storing data."""

    def invalidate(self, keys: list[str]) -> None:
        click.echo(f"invalidate  {', '.join(keys)}")


@main.command()
@click.option("--max-delay", default=30.0, show_default=True, help="Reconnect backoff cap (s)")
def watch(max_delay: float):
    """Connect to the realtime channel and print cache invalidations."""
    from constructivo.realtime.subscriber import CacheSubscriber

    subscriber = CacheSubscriber(_api_url(), EchoCache(), max_delay=max_delay)
    click.secho(f"Watching {subscriber.url} (Ctrl-C to stop)", bold=True)
    try:
        asyncio.run(subscriber.run())
    except KeyboardInterrupt:
        click.echo()


# ---------------------------------------------------------------------------
# constructivo seed
# ---------------------------------------------------------------------------


@main.command()
@click.option("--create-tables", is_flag=True, help="Create missing tables first (no Alembic)")
def seed(create_tables: bool):
    """Insert demo data directly into the configured database."""
    _run(_seed_impl(create_tables))


async def _seed_impl(create_tables: bool):
    from constructivo.db.engine import async_session_factory, engine
    from constructivo.db.models import Base
    from constructivo.db.seed import AlreadySeededError, seed_demo_data

    try:
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        async with async_session_factory() as session:
            try:
                counts = await seed_demo_data(session)
            except AlreadySeededError as e:
                click.secho(f"Skipped: {e}", fg="yellow")
                return
    finally:
        await engine.dispose()

    click.secho("Seeded demo data:", fg="green", bold=True)
    for table, count in counts.items():
        click.echo(f"  {table:15s} {count}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
