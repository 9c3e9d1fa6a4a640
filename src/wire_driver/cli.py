"""Command line interface for wire-driver."""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .client import Client
from .config import DriverConfig, load_config
from .errors import WireDriverError
from .factory import connect
from .models import Locator

app = typer.Typer(help="Drive a WebDriver server from the command line")
console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
ServerOption = Annotated[
    Optional[str],
    typer.Option("--server", help="WebDriver server URL (e.g. http://localhost:4444)."),
]
UserAgentOption = Annotated[
    Optional[str],
    typer.Option("--user-agent", help="User-Agent header for all requests."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("wire-driver"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def html(
    url: Annotated[str, typer.Argument(help="Page to load.")],
    selector: Annotated[
        str,
        typer.Option("--selector", "-s", help="CSS selector of the element to print."),
    ] = "body",
    outer: Annotated[
        bool,
        typer.Option("--outer/--inner", help="Include the element's own tag."),
    ] = False,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    server: ServerOption = None,
    user_agent: UserAgentOption = None,
) -> None:
    """Load URL and print the HTML of the first element matching SELECTOR."""

    config = _load(config_path, env_file, server, user_agent)

    async def _html(client: Client) -> str:
        await client.goto(url)
        element = await client.wait_for_find(Locator.css(selector))
        return await client.html(element, inner=not outer)

    typer.echo(_run(config, _html))


@app.command()
def source(
    url: Annotated[str, typer.Argument(help="Page to load.")],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    server: ServerOption = None,
    user_agent: UserAgentOption = None,
) -> None:
    """Load URL and print the page source."""

    config = _load(config_path, env_file, server, user_agent)

    async def _source(client: Client) -> str:
        await client.goto(url)
        return await client.source()

    typer.echo(_run(config, _source))


@app.command()
def cookies(
    url: Annotated[str, typer.Argument(help="Page to load.")],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    server: ServerOption = None,
    user_agent: UserAgentOption = None,
) -> None:
    """Load URL and list the cookies the browser holds for it."""

    config = _load(config_path, env_file, server, user_agent)

    async def _cookies(client: Client) -> list[dict[str, Any]]:
        await client.goto(url)
        return await client.cookies()

    table = Table("Name", "Value", "Domain", "Path")
    for cookie in _run(config, _cookies):
        table.add_row(
            str(cookie.get("name", "")),
            str(cookie.get("value", "")),
            str(cookie.get("domain", "")),
            str(cookie.get("path", "")),
        )
    console.print(table)


def _load(
    config_path: Optional[Path],
    env_file: Optional[Path],
    server: Optional[str],
    user_agent: Optional[str],
) -> DriverConfig:
    overrides: dict[str, Any] = {}
    if server:
        overrides["server_url"] = server
    if user_agent:
        overrides["user_agent"] = user_agent
    return load_config(config_path, env_file=env_file, **overrides)


def _run(config: DriverConfig, action: Callable[[Client], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_with_client(config, action))
    except WireDriverError as exc:
        error_console.print(f"error: {exc}", style="red")
        raise typer.Exit(code=1) from exc


async def _with_client(config: DriverConfig, action: Callable[[Client], Awaitable[T]]) -> T:
    client = await connect(config)
    try:
        return await action(client)
    finally:
        await client.aclose()


if __name__ == "__main__":
    app()
