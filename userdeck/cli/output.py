"""Rich output helpers: user tables and profile display."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()


def status_style(status: str) -> str:
    return {
        "online": "green",
        "busy": "red",
        "do_not_disturb": "red",
        "idle": "yellow",
        "invisible": "dim",
        "offline": "dim",
    }.get(status, "white")


def fmt_date(iso: str | None) -> str:
    if not iso:
        return "—"
    try:
        dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
        return dt.strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


def users_table(edges: list[dict[str, Any]]) -> Table:
    table = Table(
        title=f"Users ({len(edges)})",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
        show_lines=False,
    )
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Username", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Joined", style="dim")

    for edge in edges:
        u = edge["node"]
        status = u.get("online_status", "offline")
        table.add_row(
            str(u.get("id", "")),
            u.get("username", ""),
            u.get("name", ""),
            Text(status, style=status_style(status)),
            fmt_date(u.get("created_at")),
        )
    return table


def user_detail(u: dict[str, Any]) -> None:
    """Print a profile; private fields appear when the payload has them (`/auth/me`)."""
    console.rule(f"[bold cyan]User — {u.get('username')}")

    fields = [
        ("ID", u.get("id")),
        ("Username", u.get("username")),
        ("Name", u.get("name")),
        ("Status", u.get("online_status")),
        ("Picture", u.get("picture")),
        ("Joined", fmt_date(u.get("created_at"))),
        ("Updated", fmt_date(u.get("updated_at"))),
        ("Email", u.get("email")),
        ("Default", u.get("default_status")),
        ("Providers", ", ".join(u.get("auth_providers") or [])),
    ]
    if "confirmed" in u:
        fields.append(("Confirmed", "yes" if u["confirmed"] else "no"))
    for label, value in fields:
        if value:
            console.print(f"  [dim]{label:<10}[/dim] {value}")
