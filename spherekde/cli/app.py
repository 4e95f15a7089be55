"""
spherekde Command Line Interface.

Main entry point for the spherekde CLI application.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from spherekde import __version__
from spherekde.cli.utils import (
    setup_logging,
    print_banner,
    load_config,
)
from spherekde.cli.commands import estimate, partition, sample, plot


# Create main CLI group
@click.group()
@click.version_option(version=__version__, prog_name="spherekde")
@click.option(
    "-v", "--verbose",
    count=True,
    help="Increase verbosity (use -vv for debug output)"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Suppress non-error output"
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool) -> None:
    """
    spherekde: von Mises-Fisher kernel density estimation on the sphere.

    \b
    Commands:
      estimate    Compute a density grid from a sample file
      partition   Approximate a density grid from random sample groups
      sample      Draw synthetic vMF samples
      plot        Render a saved density grid
      config      Manage configuration
      info        Show system and package information

    Use 'spherekde COMMAND --help' for command-specific help.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    # Setup logging based on verbosity
    if not quiet:
        log_level = "DEBUG" if verbose > 1 else "INFO" if verbose else "WARNING"
        setup_logging(log_level)

    if not quiet and verbose > 0:
        print_banner()


@cli.command()
def info() -> None:
    """Show system and package information."""
    import platform

    click.echo("\nspherekde System Information")
    click.echo("=" * 40)

    click.echo(f"spherekde Version: {__version__}")
    click.echo(f"Python Version: {platform.python_version()}")
    click.echo(f"Platform: {platform.system()} {platform.release()}")

    click.echo("\nDependencies:")

    deps = [
        ("numpy", "NumPy"),
        ("scipy", "SciPy"),
        ("pydantic", "Pydantic"),
        ("matplotlib", "Matplotlib"),
        ("yaml", "PyYAML"),
        ("tqdm", "tqdm"),
    ]

    for module, name in deps:
        try:
            m = __import__(module)
            version = getattr(m, "__version__", "installed")
            click.echo(f"  {name}: {version}")
        except ImportError:
            click.echo(f"  {name}: not installed")


@cli.group()
def config() -> None:
    """Manage configuration settings."""
    pass


@config.command("init")
@click.option(
    "--format",
    type=click.Choice(["yaml", "json", "toml"]),
    default="yaml",
    help="Configuration format"
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Output file path"
)
def config_init(format: str, output: Optional[str]) -> None:
    """Write a configuration file with default settings."""
    from spherekde.config import Config

    cfg = Config()

    if output is None:
        output = f"spherekde.{format}"
    output_path = Path(output)

    if format == "yaml":
        cfg.to_yaml(output_path)
    elif format == "toml":
        cfg.to_toml(output_path)
    else:
        output_path.write_text(json.dumps(cfg.model_dump(mode="json"), indent=2))

    click.echo(f"Created configuration file: {output_path}")


@config.command("show")
@click.option(
    "-c", "--config-file",
    type=click.Path(exists=True),
    default=None,
    help="Configuration file path"
)
def config_show(config_file: Optional[str]) -> None:
    """Show current configuration."""
    cfg = load_config(config_file)

    click.echo("\nCurrent Configuration:")
    click.echo("=" * 40)

    def show_dict(d, indent=0):
        for key, value in d.items():
            prefix = "  " * indent
            if isinstance(value, dict):
                click.echo(f"{prefix}{key}:")
                show_dict(value, indent + 1)
            else:
                click.echo(f"{prefix}{key}: {value}")

    show_dict(cfg.model_dump(mode="json"))


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
def config_validate(config_file: str) -> None:
    """Validate a configuration file."""
    load_config(config_file)
    click.echo(f"Configuration is valid: {config_file}")


cli.add_command(estimate)
cli.add_command(partition)
cli.add_command(sample)
cli.add_command(plot)


def main() -> int:
    """Main entry point for CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
