"""
Command execution engine.
"""

import subprocess
import time
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel

from updater_publish.utils.shell import format_command


class CommandResult(BaseModel):
    """Result of a command execution."""

    command: str
    return_code: int
    stdout: str
    stderr: str
    duration: float
    success: bool


class CommandError(Exception):
    """Raised when an external command fails and failure is not allowed."""

    def __init__(self, message: str, result: Optional[CommandResult] = None):
        super().__init__(message)
        self.result = result


class CommandExecutor:
    """Run external tools (ssh, scp) in the foreground."""

    def __init__(self, app_logger=logger, timeout: Optional[int] = None):
        self.logger = app_logger
        self.timeout = timeout

    def run_command(
        self,
        command: List[str],
        capture_stdout: bool = False,
        allow_fail: bool = False,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """
        Execute a command.

        stdin is closed. stderr always goes to the terminal; stdout is
        captured only when capture_stdout is set.

        Args:
            command: Command and arguments as a list
            capture_stdout: Return stdout instead of streaming it
            allow_fail: Return a failed CommandResult instead of raising
            timeout: Timeout in seconds (defaults to the executor's timeout)

        Returns:
            CommandResult object

        Raises:
            CommandError: if the command cannot be run or exits non-zero,
                unless allow_fail is set
        """
        timeout = timeout if timeout is not None else self.timeout
        cmd_str = format_command(command[0], command[1:])
        start_time = time.time()

        self.logger.info(f"$ {cmd_str}")

        try:
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture_stdout else None,
                text=True,
                encoding="utf-8",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            duration = time.time() - start_time
            self.logger.error(f"Command timed out after {timeout}s: {cmd_str}")
            return self._failed(
                CommandResult(
                    command=cmd_str,
                    return_code=-1,
                    stdout="",
                    stderr=f"Command timed out after {timeout} seconds",
                    duration=duration,
                    success=False,
                ),
                f"{command[0]} timed out after {timeout} seconds",
                allow_fail,
            )
        except OSError as e:
            duration = time.time() - start_time
            self.logger.error(f"Command failed to start: {cmd_str} - {e}")
            return self._failed(
                CommandResult(
                    command=cmd_str,
                    return_code=-1,
                    stdout="",
                    stderr=str(e),
                    duration=duration,
                    success=False,
                ),
                f"{command[0]} could not be started: {e}",
                allow_fail,
            )

        duration = time.time() - start_time
        command_result = CommandResult(
            command=cmd_str,
            return_code=result.returncode,
            stdout=result.stdout or "",
            stderr="",
            duration=duration,
            success=(result.returncode == 0),
        )

        self.logger.debug(
            f"Command completed: {command[0]} "
            f"(return code: {result.returncode}, duration: {duration:.2f}s)"
        )

        if not command_result.success:
            return self._failed(
                command_result,
                f"{command[0]} failed with exit code {result.returncode}",
                allow_fail,
            )
        return command_result

    def _failed(self, result: CommandResult, message: str, allow_fail: bool) -> CommandResult:
        if allow_fail:
            self.logger.debug(f"Ignoring failure: {message}")
            return result
        raise CommandError(message, result)
