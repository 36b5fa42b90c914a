"""Command line interface (``alloc-cleaner`` / ``python -m alloc_cleaner.cli``)."""

from .__main__ import main

__all__ = ["main"]
