"""Command-line client for the Val Town API."""

__all__ = ["arguments", "cli", "client", "config", "errors", "logging", "render", "stdin", "targets"]
__version__ = "0.4.0"
