"""
Validation of connection settings.

Every function here is pure: it returns the normalized value or raises
ValueError with the message shown to the operator.
"""

import re
from typing import List, Optional, Union

SSH_DESTINATION_RE = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9._:-]+$")
OPTION_TOKEN_RE = re.compile(r"^[A-Za-z0-9._:@%+,/=-]+$")
_DIGITS_RE = re.compile(r"^[0-9]{1,5}$")


def require_value(value: Optional[str], env_name: str) -> str:
    """
    Return the trimmed value, rejecting None and blank strings.

    Args:
        value: Raw value (may be None)
        env_name: Environment variable name used in the error message

    Returns:
        Trimmed value
    """
    v = (value or "").strip()
    if v == "":
        raise ValueError(
            f"Missing required env: {env_name}. Set it in .env or your environment."
        )
    return v


def validate_port(value: Union[str, int], env_name: str) -> int:
    """
    Parse a TCP port.

    Args:
        value: Port as string or int
        env_name: Environment variable name used in the error message

    Returns:
        Port number in the range 1-65535
    """
    if isinstance(value, bool):
        raise ValueError(
            f"Invalid {env_name}: {value}. Must be an integer between 1 and 65535."
        )
    text = str(value).strip()
    port = int(text) if _DIGITS_RE.fullmatch(text) else None

    if port is None or port < 1 or port > 65535:
        raise ValueError(
            f"Invalid {env_name}: {text}. Must be an integer between 1 and 65535."
        )
    return port


def validate_ssh_destination(value: str) -> str:
    """Check that value looks like user@host with no shell metacharacters."""
    if not SSH_DESTINATION_RE.fullmatch(value):
        raise ValueError(
            f"Invalid UPDATER_SSH: {value}. Expected user@host and only "
            "alphanumeric, dot, dash, underscore, colon characters."
        )
    return value


def parse_option_string(value: str, env_name: str) -> List[str]:
    """
    Split a whitespace-separated option string into ssh option tokens.

    Args:
        value: Raw option string, e.g. "-o StrictHostKeyChecking=accept-new"
        env_name: Environment variable name used in the error message

    Returns:
        List of tokens (at least one)
    """
    tokens = [token.strip() for token in value.split() if token.strip()]

    if not tokens:
        raise ValueError(f"{env_name} must include at least one ssh option token.")

    for token in tokens:
        if not OPTION_TOKEN_RE.fullmatch(token):
            raise ValueError(
                f'Invalid token in {env_name}: "{token}". Use plain ssh option tokens only.'
            )

    return tokens
