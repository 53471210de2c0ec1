"""
Command Line Interface for convey.

Provides commands for running checks and inspecting version markers
through a rich terminal interface.
"""

from convey.cli.commands import cli

__all__ = ["cli"]
