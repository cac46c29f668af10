"""Evolve parametric body motions that make a hand-held phone move like a real one."""

from rich.console import Console

__version__ = "0.1.0"

console = Console()
