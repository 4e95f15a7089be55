"""
spherekde Command Line Interface.

This package provides the command-line interface for spherekde,
including commands for estimation, sampling and plotting.

Usage:
    spherekde --help
    spherekde estimate --help
"""

from spherekde.cli.app import cli, main

__all__ = ["cli", "main"]
