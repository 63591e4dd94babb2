#!/usr/bin/env python3
"""
phpswitcher CLI - Command-line interface
Click-based CLI for installing and switching PHP versions
"""

import logging
import sys
import click
import yaml
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from phpswitcher import __version__
from phpswitcher.autodetect import detect_project_version, detect_version
from phpswitcher.config import ConfigManager, PhpSwitcherConfig, get_state_dir
from phpswitcher.errors import PhpSwitcherError, VersionNotDetected
from phpswitcher.marker import ActiveVersionMarker
from phpswitcher.platform import get_platform_info
from phpswitcher.platform.backends import BaseBackend, BestEffortStatus, select_backend
from phpswitcher.resolver import resolve, validate_install_version, validate_switch_version
from phpswitcher.switcher import SwitchEngine

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

logger = logging.getLogger('phpswitcher')


def setup_logging(verbose: bool):
    """Route log records through rich on stderr"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(error: PhpSwitcherError):
    """Print an error with its hint and exit 1"""
    err_console.print(f"[red]Error: {escape(error.message)}[/red]", highlight=False)
    if error.hint:
        err_console.print(f"[yellow]Hint: {escape(error.hint)}[/yellow]", highlight=False)
    sys.exit(1)


def _echo_subprocess_line(line: str):
    console.print(line, markup=False, highlight=False)


def _get_config(ctx: click.Context) -> PhpSwitcherConfig:
    return ctx.obj['config']


def _get_backend(config: PhpSwitcherConfig, quiet: bool = False) -> BaseBackend:
    """Select the backend for this host once per command"""
    output = None if quiet else _echo_subprocess_line
    return select_backend(get_platform_info(), config, output)


def _requested_version(version: Optional[str], config: PhpSwitcherConfig, quiet: bool = False) -> str:
    """
    Use the argument, or detect the version from the current directory

    Raises:
        VersionNotDetected: no argument and nothing found in cwd
    """
    if version:
        return version.strip()

    detected = detect_project_version(Path.cwd(), config.version_file, config.manifest_file)
    if detected is None:
        raise VersionNotDetected(
            'PHP version not specified and could not be detected.',
            hint=f'Pass a version (e.g. 8.2) or add a {config.version_file} file '
                 f'or a "require.php" constraint in {config.manifest_file}.',
        )

    if not quiet:
        console.print(f"[cyan]Detected PHP {escape(detected.version)} from {escape(detected.source.name)}[/cyan]")
    return detected.version


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version and exit')
@click.option('-v', '--verbose', is_flag=True, help='Show debug logging')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help='Path to a phpswitcher YAML config file')
@click.pass_context
def main(ctx, version, verbose, config_path):
    """
    phpswitcher - PHP Version Manager

    Install PHP versions with Homebrew (macOS) or APT (Debian/Ubuntu)
    and switch the active one.

    Examples:
        phpswitcher install 8.2      # Install PHP 8.2
        phpswitcher use 8.2          # Make PHP 8.2 the active version
        phpswitcher use              # Use the version from .php-version / composer.json
        phpswitcher list             # Show installed versions
    """
    if version:
        click.echo(f"phpswitcher v{__version__}")
        ctx.exit(0)

    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj['config'] = ConfigManager.load_config(config_path)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument('version', required=False)
@click.pass_context
def install(ctx, version):
    """
    Install a PHP version (X.Y or X.Y.Z).

    Without VERSION, the version is read from .php-version or
    composer.json in the current directory.

    Examples:
        phpswitcher install 8.1
        phpswitcher install 8.2.15
    """
    config = _get_config(ctx)

    try:
        requested = _requested_version(version, config)
        validate_install_version(requested)

        platform_info = get_platform_info()
        backend = _get_backend(config)

        console.print(f"Attempting to install PHP version: {requested}")
        resolved = resolve(requested, platform_info.os_type, backend, verify=config.verify_formula)
        console.print(f"Using package: [bold]{resolved.package_name}[/bold]")

        if backend.needs_privileges and config.use_sudo:
            console.print("[yellow]This may require sudo privileges.[/yellow]")

        result = backend.install(resolved.package_name)
    except PhpSwitcherError as e:
        _fail(e)

    if result.already_installed:
        console.print(f"[yellow]{result.package_name} is already installed.[/yellow]")
    else:
        console.print(f"[green]{result.package_name} installed successfully![/green]")
        console.print(f"[dim]Run 'phpswitcher use {resolved.full_version}' to activate it[/dim]")


@main.command()
@click.argument('version', required=False)
@click.option('--quiet', '-q', is_flag=True, help='Only print errors (used by the shell hook)')
@click.pass_context
def use(ctx, version, quiet):
    """
    Switch the active PHP version (X.Y).

    Without VERSION, the version is read from .php-version or
    composer.json in the current directory.

    Examples:
        phpswitcher use 8.1
        phpswitcher use --quiet 7.4
    """
    config = _get_config(ctx)

    try:
        requested = _requested_version(version, config, quiet=quiet)
        validate_switch_version(requested)

        backend = _get_backend(config, quiet=quiet)
        if not quiet:
            console.print(f"Switching to PHP {requested}...")

        report = SwitchEngine(backend).switch(requested)
    except PhpSwitcherError as e:
        _fail(e)

    if not quiet:
        for outcome in report.deactivated:
            if outcome.status == BestEffortStatus.SUCCEEDED:
                console.print(f" - Unlinked {outcome.package_name}")
            elif outcome.status == BestEffortStatus.ALREADY_DONE:
                console.print(f"[dim] - {outcome.package_name} was not linked[/dim]")
            else:
                console.print(f"[yellow] - Could not unlink {outcome.package_name} (maybe already unlinked).[/yellow]")

    ActiveVersionMarker(config.active_marker_path).write(requested)

    if not quiet:
        console.print(f"[green]Successfully switched to {report.resolved.package_name}![/green]")
        console.print("[dim]If `php -v` still shows the old version, restart your terminal session.[/dim]")


@main.command(name='list')
@click.pass_context
def list_versions(ctx):
    """List installed PHP versions (* marks the active one)."""
    config = _get_config(ctx)

    try:
        backend = _get_backend(config)
        versions = backend.list_installed()
    except PhpSwitcherError as e:
        _fail(e)

    if not versions:
        console.print("[yellow]No PHP versions installed by a supported package manager.[/yellow]")
        console.print("[dim]Run 'phpswitcher install <version>' to install one[/dim]")
        return

    recorded = ActiveVersionMarker(config.active_marker_path).read()
    any_active = any(v.active for v in versions)

    console.print("[bold cyan]Installed PHP versions:[/bold cyan]")
    for installed in versions:
        active = installed.active or (not any_active and installed.version == recorded)
        marker = '*' if active else ' '
        style = 'green' if active else 'white'
        console.print(f"  {marker} [{style}]{installed.version:8}[/{style}] [dim]({installed.package_name})[/dim]")


@main.command()
@click.pass_context
def current(ctx):
    """Show the active PHP version."""
    config = _get_config(ctx)
    recorded = ActiveVersionMarker(config.active_marker_path).read()

    active = None
    try:
        active = _get_backend(config, quiet=True).active_version()
    except PhpSwitcherError as e:
        logger.debug("Backend unavailable: %s", e.message)

    if active is None and recorded is None:
        console.print("[yellow]No active PHP version known.[/yellow]")
        sys.exit(1)

    console.print(active or recorded, highlight=False)
    if active and recorded and active != recorded:
        err_console.print(
            f"[yellow]Note: phpswitcher last switched to {recorded}, "
            f"but the system now points at {active}.[/yellow]"
        )


@main.command()
@click.option('--path', 'start_dir', type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help='Directory to start from (default: current directory)')
@click.option('--source', is_flag=True, help='Also print the file the version came from')
@click.pass_context
def detect(ctx, start_dir, source):
    """
    Print the project PHP version for a directory.

    Walks up from the directory to the filesystem root and stops at the
    first .php-version or composer.json. Exits 1 with no output when
    nothing is found.
    """
    config = _get_config(ctx)
    detected = detect_version(start_dir or Path.cwd(), config.version_file, config.manifest_file)
    if detected is None:
        sys.exit(1)

    click.echo(detected.version)
    if source:
        click.echo(str(detected.source))


@main.command()
@click.option('--init', 'init_config', is_flag=True, help='Write a default config file')
@click.option('--force', is_flag=True, help='Overwrite an existing config file with --init')
@click.pass_context
def config(ctx, init_config, force):
    """
    Show phpswitcher configuration.

    Displays platform detection results and the effective settings.
    """
    cfg = _get_config(ctx)

    if init_config:
        target = get_state_dir() / ConfigManager.GLOBAL_CONFIG_NAME
        if target.exists() and not force:
            console.print(f"[yellow]{target} already exists (use --force to overwrite)[/yellow]")
            sys.exit(1)
        if not ConfigManager.save_config(PhpSwitcherConfig(), target):
            sys.exit(1)
        console.print(f"[green]Wrote {target}[/green]")
        return

    platform_info = get_platform_info()

    console.print("[bold cyan]Platform Information:[/bold cyan]")
    console.print(f"  OS: {platform_info.os_name} {platform_info.os_version} ({platform_info.architecture})")
    console.print(f"  Family: {platform_info.os_type.value}")
    console.print(f"  Shell: {platform_info.shell}")
    if platform_info.is_wsl:
        console.print("  Environment: WSL")
    if platform_info.primary_package_manager:
        console.print(f"  Package Manager: {platform_info.primary_package_manager.value}")
    else:
        console.print("  Package Manager: [yellow]none supported[/yellow]")

    console.print("\n[bold cyan]Settings:[/bold cyan]")
    console.print(yaml.safe_dump(cfg.to_dict(), default_flow_style=False, sort_keys=False).rstrip(),
                  markup=False, highlight=False)

    console.print(f"\n[bold cyan]phpswitcher Version:[/bold cyan] v{__version__}")


if __name__ == '__main__':
    main()
