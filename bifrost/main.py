"""Bifrost CLI entry point using Typer."""

from __future__ import annotations

from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from bifrost.core.config import BifrostConfig, ConfigManager, RealmConfig
from bifrost.core.engine import DOCKERFILE, ContainerEngine
from bifrost.core.errors import BifrostError
from bifrost.core.lifecycle import (
    LoadOperation,
    Listing,
    OperationResult,
    RunOperation,
    ShowOperation,
    UnloadOperation,
)
from bifrost.core.logging import setup_logging
from bifrost.core.manifest import Manifest
from bifrost.core.materializer import remove_tree
from bifrost.core.path_guard import MANIFEST_NAME, bifrost_dir, container_root
from bifrost.core.realm import Mode, Realm
from bifrost.core.walker import ErrorPolicy
from bifrost.ui import console, error, human_bytes, info, print_logo, success, warn

_MISSING = object()


def _startup_callback(ctx: typer.Context) -> None:
    """Load settings and configure logging for every command."""
    manager = ConfigManager()
    settings = manager.config
    setup_logging(log_level=settings.log_level, logs_dir=settings.logs_dir)
    ctx.obj = manager


app = typer.Typer(
    name="bifrost",
    help="Bridging the tool gap: load a project into the bifrost container and run it there.",
    no_args_is_help=True,
    callback=_startup_callback,
)


def _settings(ctx: typer.Context) -> BifrostConfig:
    manager: ConfigManager = ctx.obj or ConfigManager()
    return manager.config


def _fail(e: BifrostError) -> NoReturn:
    error(escape(e.message))
    raise typer.Exit(1)


def _realm(
    workspace: Optional[str] = None,
    ignore: Optional[List[str]] = None,
    mode: Mode = Mode.NORMAL,
    contents: Optional[List[str]] = None,
) -> Realm:
    config = RealmConfig().check()
    manifest = Manifest.for_realm(config.cwd).with_overrides(workspace=workspace, ignore=ignore)
    return Realm.from_config(config, manifest, mode=mode, contents=contents)


def _print_captured(result: OperationResult) -> None:
    """Pass process output through byte for byte."""
    if result.captured_text:
        typer.echo(result.captured_text, nl=False)
    if result.stderr:
        typer.echo(result.stderr, nl=False, err=True)


# --- Realm setup commands ---


@app.command()
def init(
    workspace: Optional[str] = typer.Option(None, "--workspace", "-w", help="Workspace name"),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", "-i", help="Name prefix to ignore (repeatable)"),
    container: Optional[str] = typer.Option(None, "--container", "-c", help="Container engine"),
    cmd: Optional[List[str]] = typer.Option(None, "--cmd", help="Command to run in the container (repeatable)"),
) -> None:
    """Initialize the current directory as a Bifrost realm."""
    try:
        config = RealmConfig().check()
    except BifrostError as e:
        _fail(e)

    manifest_path = config.cwd / MANIFEST_NAME
    if manifest_path.exists():
        error("`bifrost init` cannot be run on an existing Bifrost realm")
        raise typer.Exit(1)

    manifest = Manifest().with_overrides(workspace=workspace, ignore=ignore, container=container, commands=cmd)
    manifest_path.write_text(manifest.to_toml(), encoding="utf-8")
    success(f"Initialized Bifrost realm in {config.cwd}")


@app.command()
def setup(
    ctx: typer.Context,
    build: bool = typer.Option(True, "--build/--no-build", help="Build the container image"),
) -> None:
    """Create the bifrost container directory and build its image."""
    settings = _settings(ctx)
    home = Path.home()
    root = container_root(home)
    if root.exists():
        error(f"bifrost is already set up at {root}")
        raise typer.Exit(1)

    engine = ContainerEngine(settings.engine)
    if build and not engine.is_installed():
        error(f"`{engine.program}` is not installed; install it or run `bifrost setup --no-build`")
        raise typer.Exit(1)

    print_logo()
    root.mkdir(parents=True)
    (root / "Dockerfile").write_text(DOCKERFILE, encoding="utf-8")
    success(f"Created {root}")

    if not build:
        return

    try:
        with console.status("Building image - this could take a while..."):
            engine.build_image(root)
    except BifrostError as e:
        _fail(e)
    success(f"Built image {settings.engine.image}")


@app.command()
def teardown(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove the bifrost directory and every loaded realm."""
    path = bifrost_dir(Path.home())
    if not path.exists():
        error(f"could not find a bifrost directory at {path}")
        raise typer.Exit(1)
    if not yes and not typer.confirm(f"Remove {path} and all loaded realms?"):
        raise typer.Exit(1)
    try:
        remove_tree(path)
    except BifrostError as e:
        _fail(e)
    success(f"Removed {path}")


# --- Realm operations ---


@app.command()
def load(
    ctx: typer.Context,
    contents: Optional[List[str]] = typer.Argument(None, help="Entries of the current directory to load (default: all)"),
    auto: bool = typer.Option(False, "--auto", help="Reload automatically when sources change"),
    modified: bool = typer.Option(False, "--modified", help="Reload only modified files"),
    workspace: Optional[str] = typer.Option(None, "--workspace", "-w", help="Override the workspace name"),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", "-i", help="Name prefix to ignore (repeatable)"),
) -> None:
    """Load a directory, file, or files into the bifrost container."""
    settings = _settings(ctx)
    try:
        mode = Mode.from_flags(auto=auto, modified=modified)
    except ValueError as e:
        error(str(e))
        raise typer.Exit(1)

    try:
        realm = _realm(workspace=workspace, ignore=ignore, mode=mode, contents=list(contents or []))
        operation = LoadOperation(realm, on_error=ErrorPolicy(settings.walk_errors))
        result = operation.prepare().build().execute()
    except BifrostError as e:
        _fail(e)

    success(
        f"Loaded {human_bytes(result.bytes_copied or 0)} ({result.bytes_copied} bytes) "
        f"into realm `{result.name}`"
    )
    skipped = sum(len(wd.skipped) for wd in realm.contents)
    if skipped:
        warn(f"{skipped} unreadable entries were skipped (see the log)")
    if mode is not Mode.NORMAL:
        info(f"Mode `{mode.value}` recorded; reload with `bifrost unload` then `bifrost load`")


@app.command()
def show(
    ctx: typer.Context,
    all_: bool = typer.Option(False, "--all", "-a", help="Show everything in the realm"),
    diff: bool = typer.Option(False, "--diff", "-d", help="Show files changed since the last load"),
    workspace: Optional[str] = typer.Option(None, "--workspace", "-w", help="Override the workspace name"),
) -> None:
    """Display files currently in the bifrost container."""
    settings = _settings(ctx)
    if all_ and diff:
        error("--all and --diff are mutually exclusive")
        raise typer.Exit(1)
    listing = Listing.ALL if all_ else Listing.DIFF if diff else Listing.DEFAULT

    try:
        realm = _realm(workspace=workspace)
        result = ShowOperation(realm, listing, settings.listing).prepare().build().execute()
    except BifrostError as e:
        _fail(e)

    info(f"bifrost-realm `{result.name}`:")
    _print_captured(result)


@app.command()
def unload(
    workspace: Optional[str] = typer.Option(None, "--workspace", "-w", help="Override the workspace name"),
) -> None:
    """Unload the realm's files from the bifrost container."""
    try:
        realm = _realm(workspace=workspace)
        result = UnloadOperation(realm).prepare().build().execute()
    except BifrostError as e:
        _fail(e)
    success(f"Unloaded realm `{result.name}`")


@app.command()
def run(
    ctx: typer.Context,
    workspace: Optional[str] = typer.Option(None, "--workspace", "-w", help="Override the workspace name"),
) -> None:
    """Run the manifest's commands against the loaded realm in a container."""
    settings = _settings(ctx)
    try:
        realm = _realm(workspace=workspace)
        engine = ContainerEngine(settings.engine, program=realm.manifest.container.name)
        built = RunOperation(realm, engine=engine).prepare().build()
        with console.status("Running..."):
            result = built.execute()
    except BifrostError as e:
        _fail(e)

    _print_captured(result)
    success(f"Ran realm `{result.name}`")


# --- Settings ---


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(False, "--show", "-s", help="Show current configuration"),
    path: bool = typer.Option(False, "--path", "-p", help="Show config file path"),
    get: Optional[str] = typer.Option(None, "--get", help="Print one setting, e.g. engine.image"),
    set_: Optional[str] = typer.Option(None, "--set", help="Change one setting: KEY=VALUE (VALUE is YAML)"),
    reset: bool = typer.Option(False, "--reset", help="Restore the default configuration"),
) -> None:
    """View or manage configuration."""
    manager: ConfigManager = ctx.obj or ConfigManager()
    if path:
        info(str(manager.config_path))
        return
    if reset:
        manager.reset()
        manager.save()
        success(f"Configuration reset: {manager.config_path}")
        return
    if set_ is not None:
        key, sep, raw = set_.partition("=")
        if not sep or not key.strip():
            error("--set expects KEY=VALUE")
            raise typer.Exit(1)
        try:
            manager.set(key.strip(), yaml.safe_load(raw))
        except KeyError as e:
            error(escape(str(e.args[0])))
            raise typer.Exit(1)
        except (yaml.YAMLError, ValidationError) as e:
            error(escape(f"invalid value for {key.strip()}: {e}"))
            raise typer.Exit(1)
        manager.save()
        success(f"{key.strip()} = {escape(str(manager.get(key.strip())))}")
        return
    if get is not None:
        value = manager.get(get, _MISSING)
        if value is _MISSING:
            error(f"Configuration key not found: {escape(get)}")
            raise typer.Exit(1)
        console.print(str(value), markup=False, highlight=False)
        return
    if show:
        table = Table(title="Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        _flat_table(table, manager.config.model_dump())
        console.print(table)
        return
    info(f"Config file: {manager.config_path}")
    info(f"Config file exists: {manager.config_path.exists()}")


def _flat_table(table: Table, data: dict, prefix: str = "") -> None:
    """Flatten nested dict into table rows."""
    for key, value in data.items():
        full_key = f"{prefix}{key}" if not prefix else f"{prefix}.{key}"
        if isinstance(value, dict):
            _flat_table(table, value, full_key)
        else:
            table.add_row(full_key, str(value))


if __name__ == "__main__":
    app()
