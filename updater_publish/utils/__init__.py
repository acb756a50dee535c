"""
Utility functions.
"""

from updater_publish.utils.shell import format_command, shell_quote
from updater_publish.utils.validation import (
    parse_option_string,
    require_value,
    validate_port,
    validate_ssh_destination,
)

__all__ = [
    "format_command",
    "shell_quote",
    "parse_option_string",
    "require_value",
    "validate_port",
    "validate_ssh_destination",
]
