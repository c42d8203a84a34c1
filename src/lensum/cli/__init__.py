"""Command line interface for lensout files."""

__all__ = ["main"]
