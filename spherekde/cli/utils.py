"""
CLI utility functions.

Helper functions for the command-line interface.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import click

from spherekde import __version__

__all__ = [
    "setup_logging",
    "print_banner",
    "validate_path",
    "load_config",
    "apply_overrides",
    "format_duration",
]


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Set up logging for CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger
    """
    logger = logging.getLogger("spherekde")
    logger.setLevel(getattr(logging, level.upper()))

    # Create console handler if not exists
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(getattr(logging, level.upper()))

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def print_banner() -> None:
    """Print CLI banner."""
    banner = f"spherekde v{__version__} - von Mises-Fisher kernel density on the sphere"
    click.echo(click.style(banner, fg="cyan"), err=True)


def validate_path(
    path: Union[str, Path],
    must_exist: bool = True,
    must_be_file: bool = False,
    create_dirs: bool = False,
) -> Path:
    """
    Validate and resolve a file path.

    Args:
        path: Path to validate
        must_exist: Path must exist
        must_be_file: Path must be a file
        create_dirs: Create parent directories if needed

    Returns:
        Resolved Path object

    Raises:
        click.ClickException: If validation fails
    """
    path = Path(path).resolve()

    if must_exist and not path.exists():
        raise click.ClickException(f"Path does not exist: {path}")

    if must_be_file and path.exists() and not path.is_file():
        raise click.ClickException(f"Path is not a file: {path}")

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    return path


def load_config(config_file: Optional[str]):
    """
    Load a Config from file, or defaults when no file is given.

    Raises:
        click.ClickException: If the file cannot be parsed or validated
    """
    from pydantic import ValidationError

    from spherekde.config import Config

    if config_file is None:
        return Config()

    try:
        return Config.from_file(config_file)
    except (ValidationError, ValueError, OSError) as e:
        raise click.ClickException(f"Configuration error in {config_file}: {e}")


def apply_overrides(section, overrides: Dict[str, Any]):
    """
    Return a validated copy of a config section with non-None overrides applied.
    """
    from pydantic import ValidationError

    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return section

    try:
        return type(section)(**{**section.model_dump(), **updates})
    except ValidationError as e:
        raise click.ClickException(str(e))


def format_duration(seconds: float) -> str:
    """
    Format duration to human readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1m 23s")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"

    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m {secs}s"
