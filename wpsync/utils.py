"""Utility functions for wpsync."""

import re
import shlex
from datetime import datetime
from typing import Sequence
from urllib.parse import urlsplit

# =============================================================================
# Constants
# =============================================================================

# File name timestamp for dump artifacts and archived logs
TIMESTAMP_FORMAT: str = "%Y%m%d%H%M%S"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


# =============================================================================
# Domain utilities
# =============================================================================


def normalize_domain(value: str) -> str:
    """Reduce a configured base URL to the bare host used for search-replace.

    Args:
        value: URL ("https://example.com/") or bare host ("example.com")

    Returns:
        Host portion without scheme or trailing path

    Examples:
        >>> normalize_domain("https://staging.example.com/")
        'staging.example.com'
        >>> normalize_domain("dev.local")
        'dev.local'
        >>> normalize_domain("http://localhost:8080")
        'localhost:8080'
    """
    value = value.strip()
    if _SCHEME_RE.match(value):
        try:
            host = urlsplit(value).netloc
        except ValueError:
            host = ""
        if host:
            # Drop credentials, keep an explicit port
            return host.rsplit("@", 1)[-1]

    host = re.sub(r"^https?://", "", value)
    return host.split("/", 1)[0] if "/" in host else host


# =============================================================================
# Timestamp utilities
# =============================================================================


def format_timestamp(moment: datetime) -> str:
    """Format a datetime for use in artifact file names.

    Examples:
        >>> format_timestamp(datetime(2025, 1, 15, 10, 30, 5))
        '20250115103005'
    """
    return moment.strftime(TIMESTAMP_FORMAT)


# =============================================================================
# Command utilities
# =============================================================================


def format_command(command: Sequence[str]) -> str:
    """Render an argument vector for display, quoting where needed."""
    return shlex.join(command)


def remote_command(workdir: str, command: Sequence[str]) -> str:
    """Build the single command string handed to a remote shell.

    This is the only place where a shell string is assembled. Every token,
    the working directory included, is quoted with shlex.quote.

    Args:
        workdir: Directory to change into on the remote host
        command: Argument vector to run there

    Returns:
        Command string such as ``cd '/var/www/my site' && wp db import -``

    Examples:
        >>> remote_command("/srv/www", ["wp", "db", "export", "-"])
        'cd /srv/www && wp db export -'
        >>> remote_command("/srv/my site", ["wp", "option", "get", "home"])
        "cd '/srv/my site' && wp option get home"
    """
    return f"cd {shlex.quote(workdir)} && {shlex.join(command)}"
