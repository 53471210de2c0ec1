"""Allow ``python -m convey``."""

from convey.cli import cli

cli(prog_name="convey")
