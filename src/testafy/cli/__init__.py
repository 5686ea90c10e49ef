"""CLI package for running Testafy tests from the terminal."""

from testafy.cli.formatter import CLIFormatter
from testafy.cli.main import main

__all__ = ["CLIFormatter", "main"]
