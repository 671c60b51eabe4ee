"""principalfs CLI - browse the user manager tree of an identity store fixture."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from principalfs.drivers.memory.store import InMemoryIdentityStore
from principalfs.drivers.usermanager.provider import AuthorizableResourceProvider
from principalfs.drivers.vfs.usermanager_provider import UserManagerVFSProvider, to_jsonable
from principalfs.kernel.config import ProviderConfig, load_config
from principalfs.kernel.domain.values import TargetType
from principalfs.kernel.exceptions import ConfigurationError, PrincipalFSError
from principalfs.kernel.logging import configure_logging
from principalfs.kernel.ports.identity_store import StoreError

app = typer.Typer(
    name="principalfs",
    help="Browse users and groups of an identity store as a virtual tree.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

console = Console()


class CLIState:
    """Global options shared by every command."""

    def __init__(self, provider: AuthorizableResourceProvider, json_output: bool) -> None:
        self.provider = provider
        self.vfs = UserManagerVFSProvider(provider)
        self.json_output = json_output

    def relative(self, path: str) -> str:
        """Path relative to the mount point; relative input is taken as is."""
        if not path.startswith("/"):
            return path
        try:
            return self.provider.paths.relative(path.rstrip("/") or "/")
        except ValueError as e:
            raise PrincipalFSError(str(e)) from e


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code=1)


def _state(ctx: typer.Context) -> CLIState:
    return ctx.obj


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    store: Path = typer.Option(
        ...,
        "--store",
        "-s",
        envvar="PRINCIPALFS_STORE",
        exists=True,
        dir_okay=False,
        help="YAML or JSON store fixture",
    ),
    root: str | None = typer.Option(None, "--root", help="Override the provider root"),
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML or TOML config file"),
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Enable debug logging"),
) -> None:
    """principalfs - users and groups as paths.

    Global flags are parsed here and stored on `ctx.obj` for subcommands.
    """
    try:
        settings = load_config(config)
        provider_config = settings.provider
        if root is not None:
            provider_config = ProviderConfig.model_validate(
                {**provider_config.model_dump(), "provider_root": root}
            )
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        raise _fail(str(e)) from e

    logging_config = settings.logging
    configure_logging(
        level="DEBUG" if verbose else logging_config.level,
        format=logging_config.format,
        output_file=logging_config.output_file,
        use_color=logging_config.use_color,
        include_timestamp=logging_config.include_timestamp,
    )

    try:
        identity_store = InMemoryIdentityStore.from_file(store)
    except (OSError, ValueError, KeyError) as e:
        raise _fail(f"cannot load store {store}: {e}") from e

    ctx.obj = CLIState(AuthorizableResourceProvider(identity_store, provider_config), json_output)


@app.command("stat")
def stat_cmd(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Absolute path, or path relative to the root"),
) -> None:
    """Show metadata about a path."""
    state = _state(ctx)
    try:
        result = asyncio.run(state.vfs.stat(state.relative(path)))
    except PrincipalFSError as e:
        raise _fail(str(e)) from e

    if state.json_output:
        _echo_json(result.model_dump(mode="json"))
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in result.model_dump(mode="json").items():
        if value not in (None, [], {}):
            table.add_row(field, str(value))
    console.print(table)


@app.command("ls")
def ls_cmd(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Absolute path, or path relative to the root"),
) -> None:
    """List the children of a path."""
    state = _state(ctx)
    try:
        entries = asyncio.run(state.vfs.readdir(state.relative(path)))
    except PrincipalFSError as e:
        raise _fail(str(e)) from e

    if state.json_output:
        _echo_json([entry.model_dump(mode="json") for entry in entries])
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Resource Type")
    table.add_column("Path", overflow="fold")
    for entry in entries:
        table.add_row(entry.name, entry.resource_type, entry.path)
    console.print(table)


@app.command("cat")
def cat_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of a user, group or nested property container"),
) -> None:
    """Print every property of a path as JSON."""
    state = _state(ctx)
    try:
        content = asyncio.run(state.vfs.read(state.relative(path)))
    except PrincipalFSError as e:
        raise _fail(str(e)) from e
    typer.echo(content)


@app.command("get")
def get_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of a user, group or nested property container"),
    key: str = typer.Argument(..., help="Property key, e.g. 'email' or 'memberOf'"),
    target: TargetType | None = typer.Option(None, "--as", help="Convert the value to this type"),
    array: bool = typer.Option(False, "--array", help="Read every value of the property"),
) -> None:
    """Read one property of a path."""
    state = _state(ctx)
    try:
        absolute = state.vfs.absolute_path(state.relative(path))
        node = state.provider.resolve(absolute)
        if node is None:
            raise _fail(f"path not found: {absolute}")
        view = node.value_map()
        if target is None and not array:
            value = view.get(key)
        else:
            value = view.get_as(key, target or TargetType.STRING, array=array)
    except PrincipalFSError as e:
        raise _fail(str(e)) from e
    except StoreError as e:
        raise _fail(f"reading '{key}' at {absolute} failed: {e}") from e

    if value is None:
        raise _fail(f"no property '{key}' at {absolute}")
    if state.json_output:
        _echo_json({"path": absolute, "key": key, "value": to_jsonable(value)})
    else:
        typer.echo(json.dumps(to_jsonable(value), default=str))


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
