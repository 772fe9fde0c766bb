"""CLI entry point for xpath-to-json."""

from .cli import main

main()
