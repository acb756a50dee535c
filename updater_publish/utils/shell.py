"""
Shell quoting helpers for remote commands.
"""

import json
import re
from typing import Sequence

_NEEDS_JSON_QUOTES = re.compile(r'[\s"]')


def shell_quote(value: str) -> str:
    """Quote a string for a POSIX shell: 'foo'"'"'bar'."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


def format_command(command: str, args: Sequence[str]) -> str:
    """
    Render a command line for display.

    Arguments containing whitespace or double quotes are shown JSON-quoted so
    the printed line stays readable. The result is for logs only and is never
    passed to a shell.
    """
    printable = [
        json.dumps(arg, ensure_ascii=False) if _NEEDS_JSON_QUOTES.search(arg) else arg
        for arg in args
    ]
    return " ".join([command, *printable])
