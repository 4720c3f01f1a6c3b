import logging
import sys
from pathlib import Path
from typing import Optional, Type

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .cli_config import (
    ComprehensiveConfig,
    apply_config_data,
    create_sample_config,
    get_config,
    load_config_file,
    validate_config_values,
)
from .error_handling import setup_error_handling
from .errors import CartfileError
from .loader import (
    ManifestFormat,
    detect_manifest_type,
    load_combined_cartfile,
    load_from_file,
    path_in,
)
from .manifests import Cartfile, ResolvedCartfile, SchemeCartfile
from .structured_logging import configure_logging, get_cli_logger

__version__ = "1.0.0"

console = Console()

FORMAT_CHOICES = {
    "cartfile": Cartfile,
    "resolved": ResolvedCartfile,
    "schemes": SchemeCartfile,
}


def resolve_manifest_type(
    file_path: str, format_name: Optional[str]
) -> Type[ManifestFormat]:
    """Pick the manifest type from --format or from the file name."""
    if format_name:
        return FORMAT_CHOICES[format_name]
    try:
        return detect_manifest_type(file_path)
    except ValueError as e:
        raise click.ClickException(f"{e} (use --format to choose one)")


def load_manifest(manifest_type: Type[ManifestFormat], file_path: str):
    """Load a manifest, turning library errors into CLI errors."""
    try:
        return load_from_file(manifest_type, file_path)
    except CartfileError as e:
        raise click.ClickException(str(e))


def count_entries(manifest) -> int:
    if isinstance(manifest, SchemeCartfile):
        return len(manifest.schemes)
    return len(manifest.dependencies)


format_option = click.option(
    "--format",
    "format_name",
    type=click.Choice(sorted(FORMAT_CHOICES)),
    help="Manifest format (detected from the file name by default)",
)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 cartfile-tools: parse, validate and format Cartfile manifests

    Works with Cartfile, Cartfile.private, Cartfile.resolved and
    Cartfile.schemes.
    """
    if version:
        console.print(f"cartfile-tools version {__version__}", style="bold blue")
        ctx.exit()

    settings = get_config()
    configure_logging(
        settings.logging.log_level,
        structured=settings.logging.structured,
        log_format=settings.logging.log_format,
    )
    setup_error_handling(
        log_level=getattr(logging, settings.logging.log_level.upper(), logging.WARNING)
    )
    if not settings.output.color:
        console.no_color = True

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False)
)
@format_option
@click.option("--quiet", "-q", is_flag=True, help="Only report failures")
@click.pass_context
def check(ctx, files, format_name: Optional[str], quiet: bool):
    """Parse manifest files and report any errors."""
    quiet = quiet or get_config().output.quiet
    failures = 0

    for file_path in files:
        try:
            manifest_type = resolve_manifest_type(file_path, format_name)
            manifest = load_from_file(manifest_type, file_path)
        except (CartfileError, click.ClickException) as e:
            failures += 1
            message = e.format_message() if isinstance(e, click.ClickException) else str(e)
            console.print(
                f"❌ {file_path}: {message}", style="red", markup=False, soft_wrap=True
            )
            continue

        get_cli_logger().debug("manifest_checked", file_path=file_path)
        if not quiet:
            console.print(
                f"✅ {file_path}: {count_entries(manifest)} entries "
                f"({manifest_type.__name__})",
                style="green",
                markup=False,
                soft_wrap=True,
            )

    if failures:
        console.print(f"\n{failures} of {len(files)} files failed", style="bold red")
        ctx.exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@format_option
@click.option("--write", "-w", is_flag=True, help="Rewrite the file in place")
def fmt(file_path: str, format_name: Optional[str], write: bool):
    """Print a manifest in canonical form."""
    manifest = load_manifest(resolve_manifest_type(file_path, format_name), file_path)
    rendered = manifest.render()

    if not write:
        click.echo(rendered, nl=False)
        return

    try:
        Path(file_path).write_text(rendered, encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Failed to write {file_path}: {e}")
    console.print(f"✅ Formatted {file_path}", style="green", markup=False, soft_wrap=True)


@cli.command()
@click.argument(
    "directory", default=".", type=click.Path(exists=True, file_okay=False)
)
def project(directory: str):
    """Show a project's dependencies, constraints and pinned versions."""
    try:
        cartfile = load_combined_cartfile(directory)
        resolved_path = path_in(ResolvedCartfile, directory)
        resolved = (
            load_from_file(ResolvedCartfile, resolved_path)
            if resolved_path.exists()
            else ResolvedCartfile()
        )
        schemes_path = path_in(SchemeCartfile, directory)
        schemes = (
            load_from_file(SchemeCartfile, schemes_path)
            if schemes_path.exists()
            else None
        )
    except CartfileError as e:
        raise click.ClickException(str(e))

    table = Table(title=f"Dependencies of {Path(directory).resolve().name}")
    table.add_column("Dependency", style="cyan")
    table.add_column("Constraint")
    table.add_column("Pinned", style="green")

    for dependency in sorted(set(cartfile.dependencies) | set(resolved.dependencies)):
        specifier = cartfile.dependencies.get(dependency)
        pinned = resolved.dependencies.get(dependency)
        table.add_row(
            str(dependency),
            (str(specifier) or "any") if specifier is not None else "-",
            str(pinned) if pinned is not None else "-",
        )

    console.print(table)

    if schemes is not None:
        console.print(
            f"\n[bold]Schemes:[/bold] {', '.join(sorted(schemes.schemes)) or '(none)'}"
        )


@cli.command()
def info():
    """Show information about supported files and usage examples."""
    info_text = """
[bold blue]📋 Supported Files:[/bold blue]

• [green]Cartfile[/green] - declared dependencies and version constraints
• [green]Cartfile.private[/green] - declarations merged into the Cartfile
• [green]Cartfile.resolved[/green] - exact version pinned for each dependency
• [green]Cartfile.schemes[/green] - build schemes allowed to be built

[bold blue]🔤 Declaration Syntax:[/bold blue]

  github "owner/repo" ~> 1.0
  git "https://example.com/repo.git" "main"
  binary "https://example.com/Framework.json" == 2.3.0

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]CARTFILE_TOOLS_LOG_LEVEL[/cyan] - Logging level
• [cyan]CARTFILE_TOOLS_MAX_FILE_SIZE_MB[/cyan] - Largest manifest accepted
• [cyan]CARTFILE_TOOLS_QUIET[/cyan] - Only report failures

[bold blue]💡 Usage Examples:[/bold blue]

  cartfile-tools check Cartfile Cartfile.resolved
  cartfile-tools fmt Cartfile --write
  cartfile-tools project path/to/project
"""
    console.print(
        Panel(
            info_text,
            title="[bold]cartfile-tools Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".cartfile-tools.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        config_path.write_text(create_sample_config(), encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(
        f"✅ Created configuration file at {config_path}", style="green", soft_wrap=True
    )


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print("\n[bold cyan]📏 Limits:[/bold cyan]")
    console.print(f"  Max File Size: {current_config.limits.max_file_size_mb} MB")

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  Structured: {current_config.logging.structured}")

    console.print("\n[bold cyan]🖥  Output Settings:[/bold cyan]")
    console.print(f"  Quiet: {current_config.output.quiet}")
    console.print(f"  Color: {current_config.output.color}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))
    if config_data is None:
        raise click.ClickException(f"Could not load config from {config_file}")

    candidate = ComprehensiveConfig()
    apply_config_data(candidate, config_data)
    errors = validate_config_values(candidate)
    if errors:
        for error in errors:
            console.print(f"  • {error}", style="red")
        raise click.ClickException("Configuration validation failed")

    console.print(
        f"✅ Configuration file {config_file} is valid", style="green", soft_wrap=True
    )


def main() -> None:
    cli(prog_name="cartfile-tools")


if __name__ == "__main__":
    sys.exit(main())
