"""
Shared console and naming helpers.
"""

import re

from rich.console import Console

from avabox.commands.constants import MAX_HOSTNAME_LENGTH

console = Console()

_CONTAINER_NAME_INVALID = re.compile(r"[^a-zA-Z0-9_.-]")


def sanitize_container_name(name: str) -> str:
    """Replace characters Docker rejects in container and volume names."""
    return _CONTAINER_NAME_INVALID.sub("_", name)


def condense_host_name(name: str) -> str:
    """Shorten a name to a valid hostname, keeping both ends recognisable."""
    if len(name) <= MAX_HOSTNAME_LENGTH:
        return name
    keep = (MAX_HOSTNAME_LENGTH - 3) // 2
    return f"{name[:keep]}_._{name[-keep:]}"


def format_duration(seconds: float) -> str:
    """Format a duration for console output."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"
