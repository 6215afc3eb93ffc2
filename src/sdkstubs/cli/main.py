"""CLI entry point for sdk-stubs.

Invoked as::

    sdk-stubs [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m sdkstubs

Commands
--------
run          Pick the mode from the environment and run it
merge        Merge per-interpreter stub storages
pack-stdlib  Run the generator helper in every interpreter under a root
generate     Index the stdlib of every interpreter under a root
version      Show version and stub format information
backends     List registered storage backends

Exit codes: 0 on success, 1 when an operation fails, 2 on a
configuration error. Pack mode exits 0 once every interpreter was
attempted, unless ``--strict`` (or ``SDK_STUBS_STRICT_PACK``) is given.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from sdkstubs.config import StubsConfig, load_config
from sdkstubs.errors import BackendNotFoundError, ConfigurationError, SdkStubsError

if TYPE_CHECKING:
    from sdkstubs.pack.stdlib import PackResult

console = Console()
err_console = Console(stderr=True)

EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _config(ctx: click.Context) -> StubsConfig:
    """Load the configuration once per invocation, exiting on error."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config(config_file=ctx.obj.get("config_file"))
        except ConfigurationError as exc:
            err_console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
            sys.exit(EXIT_CONFIGURATION)
    return ctx.obj["config"]


def _print_pack_start(sdk_home: Path) -> None:
    console.print(f"[bold]Packing stdlib of[/bold] {escape(str(sdk_home))}")


def _print_pack_result(result: "PackResult") -> None:
    if result.output:
        console.out(result.output, highlight=False)
    if not result.ok:
        err_console.print(f"[red]FAILED[/red] {escape(result.message)}")


def _execute(config: StubsConfig) -> None:
    """Dispatch ``config``, report the outcome and exit with its status."""
    from sdkstubs.dispatch import Mode, run

    try:
        result = run(config, on_pack_result=_print_pack_result, on_pack_start=_print_pack_start)
    except ConfigurationError as exc:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        sys.exit(EXIT_CONFIGURATION)
    except (SdkStubsError, BackendNotFoundError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) else str(exc)
        err_console.print(f"[red]Error:[/red] {escape(message)}")
        sys.exit(EXIT_FAILURE)

    if result.mode is Mode.MERGE:
        console.print(f"[green]Merged[/green] {escape(str(result.merged_storage))}")
    elif result.mode is Mode.PACK:
        report = result.pack_report
        color = "green" if report.ok else "yellow"
        console.print(f"\n[{color}]{report.summary()}[/{color}]")
    else:
        for summary in result.summaries:
            console.print(
                f"[green]Written:[/green] {escape(str(summary.storage))} "
                f"[dim]({summary.file_count} file(s), {len(summary.levels)} level(s))[/dim]"
            )
        if not result.summaries:
            console.print("[yellow]No interpreters were indexed.[/yellow]")

    sys.exit(result.exit_code(config.strict_pack))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="sdk-stubs")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file (defaults to $SDK_STUBS_CONFIG).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """Pre-generate and merge stub indices for Python interpreters."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


base_dir_option = click.option(
    "--base-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory for stub storages (defaults to $PREBUILT_INDICES_PATH).",
)
backend_option = click.option(
    "--backend",
    default=None,
    help="Storage backend name (defaults to 'manifest').",
)


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@cli.command(name="run")
@base_dir_option
@backend_option
@click.option("--helper", type=click.Path(), default=None, help="Generator helper script for pack mode.")
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 from pack mode when any interpreter failed.",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    base_dir: str | None,
    backend: str | None,
    helper: str | None,
    strict: bool,
) -> None:
    """Run the mode selected by the environment.

    MERGE_STUBS_FROM_PATHS selects merge mode, otherwise
    PACK_STDLIB_FROM_PATH selects pack mode, otherwise interpreters under
    PYCHARM_PYTHONS are indexed.
    """
    config = _config(ctx).with_overrides(
        base_dir=base_dir,
        backend=backend,
        generator_helper=helper,
        strict_pack=True if strict else None,
    )
    _execute(config)


# ---------------------------------------------------------------------------
# merge command
# ---------------------------------------------------------------------------


@cli.command(name="merge")
@click.argument("sources", nargs=-1, required=True, type=click.Path())
@base_dir_option
@backend_option
@click.option(
    "--empty-test-data",
    type=click.Path(file_okay=False),
    default=None,
    help="Empty project directory the merged storage is checked against.",
)
@click.pass_context
def merge_command(
    ctx: click.Context,
    sources: tuple[str, ...],
    base_dir: str | None,
    backend: str | None,
    empty_test_data: str | None,
) -> None:
    """Merge the stub storages in SOURCES into the base directory.

    Examples:

    \b
        sdk-stubs merge out/python3.11 out/python3.12 --base-dir out
    """
    config = _config(ctx).with_overrides(
        base_dir=base_dir,
        backend=backend,
        empty_test_data=empty_test_data,
        merge_sources=sources,
    )
    _execute(config)


# ---------------------------------------------------------------------------
# pack-stdlib command
# ---------------------------------------------------------------------------


@cli.command(name="pack-stdlib")
@click.argument("root", type=click.Path(file_okay=False))
@base_dir_option
@click.option("--helper", type=click.Path(), default=None, help="Generator helper script.")
@click.option("--timeout", type=float, default=None, help="Seconds each interpreter may run.")
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 when any interpreter failed.",
)
@click.pass_context
def pack_stdlib_command(
    ctx: click.Context,
    root: str,
    base_dir: str | None,
    helper: str | None,
    timeout: float | None,
    strict: bool,
) -> None:
    """Run the generator helper in every interpreter under ROOT.

    Each non-hidden subdirectory of ROOT is treated as one interpreter
    installation.
    """
    config = _config(ctx).with_overrides(
        base_dir=base_dir,
        generator_helper=helper,
        pack_timeout=timeout,
        strict_pack=True if strict else None,
    )
    _execute(replace(config, merge_sources=None, pack_root=Path(root)))


# ---------------------------------------------------------------------------
# generate command
# ---------------------------------------------------------------------------


@cli.command(name="generate")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of interpreter homes (defaults to $PYCHARM_PYTHONS).",
)
@base_dir_option
@backend_option
@click.pass_context
def generate_command(
    ctx: click.Context,
    root: str | None,
    base_dir: str | None,
    backend: str | None,
) -> None:
    """Index the standard library of every interpreter under the root."""
    config = _config(ctx).with_overrides(base_dir=base_dir, backend=backend, pythons_root=root)
    _execute(replace(config, merge_sources=None, pack_root=None))


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
@backend_option
@click.pass_context
def version_command(ctx: click.Context, backend: str | None) -> None:
    """Show version, stub version and supported language levels."""
    from sdkstubs import __version__
    from sdkstubs.levels import SUPPORTED_LEVELS, LanguageLevel
    from sdkstubs.storage.registry import get_backend

    name = backend or _config(ctx).backend
    try:
        stub_version = get_backend(name).stub_version
    except BackendNotFoundError as exc:
        err_console.print(f"[red]Error:[/red] {escape(exc.args[0])}")
        sys.exit(EXIT_FAILURE)

    table = Table(show_header=False, box=None)
    table.add_row("[bold]sdk-stubs[/bold]", f"v{__version__}")
    table.add_row("Backend", name)
    table.add_row("Stub version", stub_version)
    table.add_row("Default language level", str(LanguageLevel.default()))
    table.add_row("Language levels", ", ".join(str(level) for level in SUPPORTED_LEVELS))
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# backends command
# ---------------------------------------------------------------------------


@cli.command(name="backends")
def backends_command() -> None:
    """List registered storage backends, including entry-point plugins."""
    from sdkstubs.storage.registry import backend_registry

    table = Table(title="Storage backends")
    table.add_column("Name", style="bold")
    table.add_column("Class")
    table.add_column("Stub version")
    for name, cls in backend_registry.list_backends().items():
        table.add_row(name, f"{cls.__module__}.{cls.__qualname__}", cls().stub_version)
    console.print(table)


if __name__ == "__main__":
    cli()
