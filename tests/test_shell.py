"""Tests for shell quoting helpers."""
import shlex

import pytest

from updater_publish.utils.shell import format_command, shell_quote


@pytest.mark.parametrize(
    "value",
    ["plain", "", "with space", "it's", "'''", 'dq "x"', "$(rm -rf /)", "a;b|c&d", "multi\nline"],
)
def test_shell_quote_is_parsed_back_to_the_same_string(value):
    assert shlex.split(shell_quote(value)) == [value]


def test_shell_quote_embedded_single_quote():
    assert shell_quote("it's") == "'it'\"'\"'s'"


def test_format_command_plain_args():
    assert format_command("scp", ["-P", "22", "a.yml"]) == "scp -P 22 a.yml"


def test_format_command_quotes_whitespace_and_double_quotes():
    line = format_command("ssh", ["host", "mkdir -p '/tmp/x'", 'say "hi"'])
    assert line == 'ssh host "mkdir -p \'/tmp/x\'" "say \\"hi\\""'
