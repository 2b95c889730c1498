"""CLI entry point for permlock.

Invoked as::

    permlock [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m permlock.cli.main

Commands
--------
- validate  Parse a lock config and print a summary
- check     Decide whether a caller or role may perform an action
- show      List the permissions stored for a caller or role
- allowed   List the target ids a caller or role may act on
- version   Show version information
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from permlock.config import ConfigLoader, LockConfig, build_manager, find_caller
from permlock.errors import LockConfigError
from permlock.lock import Lock
from permlock.manager import Manager

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("lock.yaml")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_id(raw: str | None) -> int | str | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return raw


def _load(config_path: str) -> tuple[LockConfig, Manager]:
    try:
        config = ConfigLoader().load(Path(config_path))
        return config, build_manager(config)
    except LockConfigError as exc:
        err_console.print(f"[red]Invalid config:[/red] {escape(str(exc))}")
        sys.exit(2)


def _resolve_lock(config: LockConfig, manager: Manager, caller: str | None, role: str | None) -> Lock:
    if (caller is None) == (role is None):
        err_console.print("[red]Specify exactly one of --caller or --role.[/red]")
        sys.exit(2)
    if role is not None:
        return manager.role(role)

    caller_type, sep, raw_id = str(caller).partition(":")
    if not sep or not caller_type or not raw_id:
        err_console.print(f"[red]Invalid caller {caller!r}; expected TYPE:ID.[/red]")
        sys.exit(2)
    return manager.caller(find_caller(config, caller_type, _parse_id(raw_id)))  # type: ignore[arg-type]


_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to lock.yaml.",
)
_caller_option = click.option("--caller", default=None, help="Caller as TYPE:ID, e.g. users:1.")
_role_option = click.option("--role", default=None, help="Role name.")


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="permlock")
def cli() -> None:
    """permlock CLI: inspect and query permission configurations."""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from permlock import __version__

    console.print(
        Panel(
            f"[bold]permlock[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Embeddable caller/role permission engine.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@_config_option
def validate_command(config_path: str) -> None:
    """Validate a lock config file."""
    config, manager = _load(config_path)

    table = Table(title="Lock Config", box=box.SIMPLE)
    table.add_column("Section", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_row("aliases", str(len(manager.aliases)))
    table.add_row("roles", str(len(manager.roles)))
    table.add_row("callers", str(len(config.callers)))
    console.print(table)
    console.print(f"[green]Valid[/green] lock config: [bold]{config_path}[/bold]")


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("action")
@click.option("--target", "-t", "target_type", default=None, help="Target type.")
@click.option("--target-id", "-i", "target_id", default=None, help="Target id.")
@_caller_option
@_role_option
@_config_option
def check_command(
    action: str,
    target_type: str | None,
    target_id: str | None,
    caller: str | None,
    role: str | None,
    config_path: str,
) -> None:
    """Decide whether ACTION is allowed. Exit code 0 if allowed, 1 otherwise."""
    config, manager = _load(config_path)
    lock = _resolve_lock(config, manager, caller, role)

    allowed = lock.can(action, target_type, _parse_id(target_id))  # type: ignore[arg-type]
    status_str = "[green]ALLOWED[/green]" if allowed else "[red]DENIED[/red]"
    scope = ""
    if target_type:
        scope = f" on {target_type}" if target_id is None else f" on {target_type}#{target_id}"
    console.print(Panel(f"{status_str}  {action}{scope}", title=repr(lock), border_style="blue"))

    sys.exit(0 if allowed else 1)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@_caller_option
@_role_option
@_config_option
def show_command(caller: str | None, role: str | None, config_path: str) -> None:
    """List the permissions stored for a caller or role."""
    config, manager = _load(config_path)
    lock = _resolve_lock(config, manager, caller, role)
    permissions = lock.get_permissions()

    if not permissions:
        console.print(f"[yellow]No permissions stored for {lock!r}.[/yellow]")
        return

    table = Table(title=f"Permissions of {lock!r}", box=box.SIMPLE)
    table.add_column("Type", style="magenta")
    table.add_column("Action", style="cyan")
    table.add_column("Target type")
    table.add_column("Target id")
    for permission in permissions:
        record = permission.as_record()
        table.add_row(
            str(record["type"]),
            str(record["action"]),
            str(record["target_type"] or "-"),
            str(record["target_id"] if record["target_id"] is not None else "-"),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# allowed
# ---------------------------------------------------------------------------


@cli.command(name="allowed")
@click.argument("action")
@click.argument("target_type")
@_caller_option
@_role_option
@_config_option
def allowed_command(
    action: str,
    target_type: str,
    caller: str | None,
    role: str | None,
    config_path: str,
) -> None:
    """List the TARGET_TYPE ids on which ACTION is allowed."""
    config, manager = _load(config_path)
    lock = _resolve_lock(config, manager, caller, role)
    ids = lock.allowed(action, target_type)

    if not ids:
        console.print(f"[yellow]No {target_type} ids allow {action}.[/yellow]")
        return
    console.print(", ".join(str(i) for i in ids))


if __name__ == "__main__":
    cli()
