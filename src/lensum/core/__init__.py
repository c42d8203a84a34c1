"""Core module with types, errors, logging and config."""

__all__ = [
    "types",
    "errors",
    "logging",
    "config",
]
