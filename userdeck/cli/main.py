"""`userdeck` command group: server launcher and API client commands."""

from __future__ import annotations

import click

from userdeck.cli.commands.users import users_cmd


@click.group()
@click.version_option(package_name="userdeck")
@click.option(
    "--api-url",
    default="http://localhost:8000",
    envvar="USERDECK_API_URL",
    show_default=True,
    help="Base URL of the userdeck API server",
)
@click.option(
    "--token",
    default=None,
    envvar="USERDECK_TOKEN",
    help="Access token for commands acting as a signed-in user",
)
@click.pass_context
def cli(ctx: click.Context, api_url: str, token: str | None) -> None:
    """Accounts, authentication and profiles over HTTP.

    \b
      userdeck serve --reload
      userdeck users search --search john
      userdeck users show john-doe
      USERDECK_TOKEN=... userdeck users me
    """
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url.rstrip("/")
    ctx.obj["token"] = token


cli.add_command(users_cmd)


@cli.command("serve")
@click.option("--host", default=None, help="Bind host [default: APP_HOST]")
@click.option("--port", default=None, type=int, help="Bind port [default: APP_PORT]")
@click.option("--reload", is_flag=True, default=False, help="Restart on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    from userdeck.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "userdeck.api.app:app",
        host=host or settings.app_host,
        port=port or settings.app_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
