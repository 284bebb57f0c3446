"""Lifeblood manager CLI: manage installations and launch programs."""

import os
from pathlib import Path

import typer

from lifeblood_manager import __version__

from .config import ManagerConfig, default_base_path, resolve_config, write_config_template
from .constants import CONFIG_FILE
from .core import Installer, LaunchController, VersionStore
from .errors import ManagerError
from .logging import configure_logging
from .output import OutputContext, get_output_context, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"lifeblood-manager {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="lifeblood-manager",
    help="Manage side-by-side Lifeblood installations",
    no_args_is_help=True,
)

installs_app = typer.Typer(help="Installation management commands", no_args_is_help=True)
app.add_typer(installs_app, name="installs")

_config: ManagerConfig | None = None


def get_config() -> ManagerConfig:
    """Get the resolved configuration."""
    if _config is None:
        return resolve_config(os.environ)
    return _config


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v debug logs, -vv adds timestamps and source paths)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="Config TOML file (defaults to manager.toml in the lifeblood location)",
    ),
) -> None:
    """Lifeblood manager - side-by-side installations and launches."""
    global _config
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))
    _config = resolve_config(os.environ, config_file)


def _load_store(ctx: OutputContext, base_path: Path | None) -> VersionStore:
    """Scan the given base path, or the configured one."""
    base_path = base_path or get_config().base_path or Path(".")
    try:
        return VersionStore.scan(base_path)
    except ManagerError as e:
        ctx.error(f"failed to scan base path {base_path}: {e}")
        raise typer.Exit(1) from None


# ============================================================================
# init
# ============================================================================


@app.command()
def init() -> None:
    """Create the lifeblood location and a default manager.toml in it."""
    ctx = get_output_context()
    location = default_base_path(os.environ, Path.home())
    config_path = location / CONFIG_FILE

    if config_path.exists():
        ctx.print(f"[yellow]Config already exists:[/yellow] {config_path}")
        return
    try:
        write_config_template(config_path)
    except OSError as e:
        ctx.error(f"failed to write config template: {e}")
        raise typer.Exit(1) from None
    ctx.success(f"Created config template: {config_path}", path=str(config_path))


# ============================================================================
# installs
# ============================================================================


@installs_app.command("list")
def installs_list(
    base_path: Path | None = typer.Argument(None, help="Installations root"),
) -> None:
    """List installed versions, newest first."""
    ctx = get_output_context()
    store = _load_store(ctx, base_path)
    ctx.show_store(store)


@installs_app.command("new")
def installs_new(
    base_path: Path | None = typer.Argument(None, help="Installations root"),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to download"),
    no_viewer: bool = typer.Option(False, "--no-viewer", help="Do not install the viewer"),
    python: str | None = typer.Option(
        None, "--python", help="Interpreter to create the venv with"
    ),
) -> None:
    """Download the latest version of a branch and make it current."""
    ctx = get_output_context()
    config = get_config()
    store = _load_store(ctx, base_path)
    installer = Installer(
        store, python_override=config.python_bin, connect_timeout=config.download_timeout
    )

    try:
        index = installer.download_new_version(
            branch=branch or config.branch,
            install_viewer=config.install_viewer and not no_viewer,
            python_command=python,
        )
    except ManagerError as e:
        ctx.error(f"Failed to get latest version: {e}")
        raise typer.Exit(1) from None
    ctx.print("New version downloaded")

    try:
        store.switch_current(index)
    except ManagerError as e:
        ctx.error(f"Failed to set new version as current: {e}")
        ctx.show_store(store)
        raise typer.Exit(1) from None
    ctx.print("New version is set as current")
    ctx.show_store(store)


@installs_app.command("set-current")
def installs_set_current(
    index: int | None = typer.Argument(None, help="Version index (defaults to newest)"),
    base_path: Path | None = typer.Argument(None, help="Installations root"),
) -> None:
    """Make a version current."""
    ctx = get_output_context()
    store = _load_store(ctx, base_path)

    if index is None:
        index = max(store.version_count - 1, 0)
    try:
        store.switch_current(index)
    except ManagerError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None
    ctx.show_store(store)


@installs_app.command("rename")
def installs_rename(
    index: int = typer.Argument(..., help="Version index"),
    name: str = typer.Argument(..., help="New display name (empty to reset)"),
    base_path: Path | None = typer.Argument(None, help="Installations root"),
) -> None:
    """Give a version a display name."""
    ctx = get_output_context()
    store = _load_store(ctx, base_path)
    try:
        store.rename_version(index, name)
    except ManagerError as e:
        ctx.error(f"failed to rename: {e}")
        raise typer.Exit(1) from None
    ctx.show_store(store)


# ============================================================================
# launch
# ============================================================================


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def launch(
    program: str = typer.Argument(..., help="Program to run, e.g. ./lifeblood"),
    args: list[str] | None = typer.Argument(None, help="Arguments for the program"),
    base_path: Path | None = typer.Option(None, "--base", help="Installations root"),
) -> None:
    """Run a program in the installations root and wait for it.

    The program is stopped gracefully (then killed) on interrupt. Its exit
    code becomes this command's exit code.
    """
    ctx = get_output_context()
    config = get_config()
    store = _load_store(ctx, base_path)
    controller = LaunchController(store, label=program, command=program, args=args or [])

    try:
        controller.start()
    except ManagerError as e:
        ctx.error(f"failed to start {program}: {e}")
        raise typer.Exit(1) from None

    try:
        status = controller.wait()
    except KeyboardInterrupt:
        status = controller.close(
            poll_interval=config.process.stop_poll_interval,
            max_polls=config.process.stop_poll_attempts,
        )

    if status.code is None:
        ctx.error(f"{program} was terminated by signal {status.signal}")
        raise typer.Exit(1)
    raise typer.Exit(status.code)
