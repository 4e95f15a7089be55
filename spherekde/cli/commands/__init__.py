"""
CLI command modules.

Subcommands for the spherekde CLI.
"""

from spherekde.cli.commands.density import estimate, partition
from spherekde.cli.commands.sample import sample
from spherekde.cli.commands.plot import plot

__all__ = ["estimate", "partition", "sample", "plot"]
