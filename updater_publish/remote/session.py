"""
SSH session around the system ssh/scp binaries.

With multiplexing enabled a master connection is opened once and every later
ssh/scp call reuses it through its ControlPath socket. SSHSession is a context
manager: the master is closed exactly once when the block exits, including on
SIGINT/SIGTERM, which are turned into SystemExit(130) and SystemExit(143).
"""

import signal
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger

from updater_publish.core.config import PublishSettings
from updater_publish.core.executor import CommandExecutor, CommandResult

CONTROL_DIR = Path.home() / ".ssh" / "controlmasters"

SIGNAL_EXIT_CODES: Dict[int, int] = {
    signal.SIGINT: 130,
    signal.SIGTERM: 143,
}


class SSHSession:
    """Transport to one destination, optionally multiplexed."""

    def __init__(
        self,
        settings: PublishSettings,
        executor: CommandExecutor,
        use_mux: bool = True,
        control_dir: Optional[Path] = None,
    ):
        self.settings = settings
        self.executor = executor
        self.use_mux = use_mux and settings.ssh_mux
        self.control_dir = control_dir or CONTROL_DIR
        self.control_path = str(self.control_dir / "%C") if self.use_mux else ""
        self._closed = False
        self._previous_handlers: Dict[int, object] = {}

    @property
    def destination(self) -> str:
        return self.settings.ssh

    def ssh_auth_args(self) -> List[str]:
        return [
            "-p", str(self.settings.ssh_port),
            "-i", str(self.settings.key_path),
            *self.settings.ssh_option_tokens,
            "-o", "PreferredAuthentications=publickey",
        ]

    def scp_auth_args(self) -> List[str]:
        return [
            "-P", str(self.settings.ssh_port),
            "-i", str(self.settings.key_path),
            *self.settings.ssh_option_tokens,
            "-o", "PreferredAuthentications=publickey",
        ]

    def mux_args(self) -> List[str]:
        """Options that start a persistent master connection."""
        if not self.use_mux:
            return []
        return [
            "-o", f"ControlPath={self.control_path}",
            "-o", "ControlMaster=auto",
            "-o", "ControlPersist=yes",
        ]

    def reuse_args(self) -> List[str]:
        """Options that route a call through the master connection."""
        if not self.use_mux:
            return []
        return ["-o", f"ControlPath={self.control_path}"]

    # -------------------------
    # lifecycle
    # -------------------------
    def open(self) -> None:
        """Start the master connection in the background (no-op without mux)."""
        if not self.use_mux:
            return
        self.control_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Opening master connection to {self.destination} ({self.control_path})")
        self.executor.run_command(
            ["ssh", *self.mux_args(), *self.ssh_auth_args(), "-M", "-N", "-f", self.destination]
        )

    def close(self) -> None:
        """Ask the master to exit. Runs at most once; failures are ignored."""
        if self._closed:
            return
        self._closed = True
        if not self.use_mux:
            return
        logger.debug(f"Closing master connection to {self.destination}")
        self.executor.run_command(
            ["ssh", "-S", self.control_path, "-O", "exit", *self.ssh_auth_args(), self.destination],
            allow_fail=True,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def _handle_signal(self, signum, frame) -> None:
        code = SIGNAL_EXIT_CODES.get(signum, 1)
        logger.warning(f"Received signal {signum}, shutting down")
        self.close()
        raise SystemExit(code)

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in SIGNAL_EXIT_CODES:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def __enter__(self) -> "SSHSession":
        self._install_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.close()
        finally:
            self._restore_signal_handlers()
        return False

    # -------------------------
    # commands
    # -------------------------
    def run(
        self,
        remote_command: str,
        capture_stdout: bool = False,
        allow_fail: bool = False,
    ) -> CommandResult:
        """Run a shell command line on the remote host."""
        return self.executor.run_command(
            ["ssh", *self.reuse_args(), *self.ssh_auth_args(), self.destination, remote_command],
            capture_stdout=capture_stdout,
            allow_fail=allow_fail,
        )

    def upload(self, local_paths: Sequence[Path], remote_dir: str) -> CommandResult:
        """Copy local files into remote_dir with scp."""
        return self.executor.run_command(
            [
                "scp",
                *self.reuse_args(),
                *self.scp_auth_args(),
                *[str(p) for p in local_paths],
                f"{self.destination}:{remote_dir}",
            ]
        )
