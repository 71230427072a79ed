from rich.console import Console

__all__ = ["console"]

# Tracker dumps go to stderr so they don't mix with captured stdout in tests
console = Console(stderr=True)
"""Console used for debug dumps."""
