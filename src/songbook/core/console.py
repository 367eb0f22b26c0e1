"""Centralized Rich Console management.

Command output goes to stdout through one console; error reports go to a
separate stderr console so piped output stays clean.
"""

from rich.console import Console

_console: Console | None = None
_error_console: Console | None = None


def get_console() -> Console:
    """Get or create the global stdout Console instance."""
    global _console
    if _console is None:
        _console = Console(highlight=False, soft_wrap=True)
    return _console


def get_error_console() -> Console:
    """Get or create the global stderr Console instance."""
    global _error_console
    if _error_console is None:
        _error_console = Console(stderr=True, highlight=False, soft_wrap=True)
    return _error_console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Markup is disabled so file names containing brackets print verbatim.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    get_console().print(message, style=style, markup=False)


def print_error(message: str) -> None:
    """Print an error report on stderr."""
    get_error_console().print(f"Error: {message}", style="bold red", markup=False)
