"""`userdeck users`: browse accounts through the API."""

from __future__ import annotations

from typing import Any

import click
import httpx

from userdeck.cli.output import console, user_detail, users_table


def _fetch(ctx: click.Context, path: str, params: dict[str, Any] | None = None,
           not_found: str | None = None, auth: bool = False) -> Any:
    """GET ``api_url + path`` and return the JSON body, exiting 1 on failure."""
    api_url: str = ctx.obj["api_url"]
    headers = {}
    if auth:
        token = ctx.obj.get("token")
        if not token:
            console.print("[red]No access token, pass --token or set USERDECK_TOKEN.[/red]")
            raise SystemExit(1)
        headers["Authorization"] = f"Bearer {token}"

    try:
        r = httpx.get(f"{api_url}{path}", params=params, headers=headers, timeout=15)
        r.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]Cannot connect to API at {api_url}.[/red]")
        raise SystemExit(1)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404 and not_found:
            console.print(f"[yellow]{not_found}[/yellow]")
        else:
            console.print(f"[red]Error {e.response.status_code}:[/red] {e.response.text}")
        raise SystemExit(1)
    return r.json()


@click.group("users")
def users_cmd() -> None:
    """Search and inspect user accounts."""


@users_cmd.command("search")
@click.option("--search", default=None, help="Match against display names")
@click.option("--first", default=10, show_default=True, type=click.IntRange(1, 50), help="Page size")
@click.option("--after", default=None, help="Cursor returned by a previous page")
@click.pass_context
def users_search(ctx: click.Context, search: str | None, first: int, after: str | None) -> None:
    """List confirmed users ordered by username."""
    params: dict[str, Any] = {"first": first}
    if search:
        params["search"] = search
    if after:
        params["after"] = after

    page = _fetch(ctx, "/api/v1/users", params=params)
    console.print(users_table(page["edges"]))
    info = page["page_info"]
    console.print(f"[dim]{page['current_count']} matching after cursor.[/dim]")
    if info["has_next_page"]:
        console.print(f"[dim]Next page: --after {info['end_cursor']}[/dim]")


@users_cmd.command("show")
@click.argument("username_or_id")
@click.pass_context
def users_show(ctx: click.Context, username_or_id: str) -> None:
    """Show a public profile by username or numeric ID."""
    if username_or_id.isdigit():
        path = f"/api/v1/users/{username_or_id}"
    else:
        path = f"/api/v1/users/by-username/{username_or_id}"
    user_detail(_fetch(ctx, path, not_found=f"User {username_or_id!r} not found."))


@users_cmd.command("me")
@click.pass_context
def users_me(ctx: click.Context) -> None:
    """Show the profile of the signed-in user."""
    user_detail(_fetch(ctx, "/api/v1/auth/me", auth=True))
