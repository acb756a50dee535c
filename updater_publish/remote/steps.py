"""
Shell scripts for the remote publish steps.

Every value interpolated into a script is single-quoted with shell_quote;
the scripts are passed to ssh as one argument and run by the remote login
shell.
"""

import time
from typing import Optional

from updater_publish.utils.shell import shell_quote

REMOTE_LOG_NAME = "publish.log"
LOG_TAIL_LINES = 200


def _log(message: str, remote_log: str) -> str:
    return f"echo $(date -Is) INFO {message} >> {remote_log}"


class RemotePlan:
    """Remote paths of one publish run and the scripts that use them."""

    def __init__(
        self,
        container: str,
        container_path: str,
        manifest_name: str,
        installer_name: str,
        tmp_prefix: str = "/tmp/app-publish",
        docker: str = "sudo -n docker",
        stamp: Optional[int] = None,
    ):
        if stamp is None:
            stamp = int(time.time() * 1000)
        self.container = container
        self.container_path = container_path
        self.manifest_name = manifest_name
        self.installer_name = installer_name
        self.docker = docker
        self.tmp_dir = f"{tmp_prefix}-{stamp}"
        self.remote_log = f"{self.tmp_dir}/{REMOTE_LOG_NAME}"

    @property
    def upload_target(self) -> str:
        """Directory argument for scp, relative to the ssh destination."""
        return f"{self.tmp_dir}/"

    def prepare_script(self) -> str:
        """Step 1: create a private tmp dir and an empty remote log."""
        q_tmp = shell_quote(self.tmp_dir)
        q_log = shell_quote(self.remote_log)
        return " && ".join([
            f"mkdir -p {q_tmp}",
            f"chmod 700 {q_tmp}",
            f": > {q_log}",
            _log("Created tmp dir", q_log),
        ])

    def publish_script(self) -> str:
        """
        Step 3: copy the uploads into the container and clean up.

        The manifest goes in first and old installers are removed before the
        new one is copied. The remote log is printed at the end so the caller
        can keep a local copy.
        """
        q_tmp = shell_quote(self.tmp_dir)
        q_log = shell_quote(self.remote_log)
        q_manifest = shell_quote(f"{self.tmp_dir}/{self.manifest_name}")
        q_installer = shell_quote(f"{self.tmp_dir}/{self.installer_name}")
        q_container = shell_quote(self.container)
        q_target_dir = shell_quote(f"{self.container}:{self.container_path}/")
        q_cleanup = shell_quote(f'rm -f "{self.container_path}"/*.exe || true')
        manifest_label = shell_quote(self.manifest_name)
        installer_label = shell_quote(self.installer_name)

        return "; ".join([
            "set -e",
            _log("Uploads present:", q_log),
            f"ls -lh {q_tmp} >> {q_log}",
            f"{self.docker} cp {q_manifest} {q_target_dir} && "
            + _log(f"docker cp {manifest_label} ok", q_log),
            f"{self.docker} exec {q_container} sh -lc {q_cleanup} && "
            + _log("removed old installers", q_log),
            f"{self.docker} cp {q_installer} {q_target_dir} && "
            + _log(f"docker cp {installer_label} ok", q_log),
            _log("Full log follows:", q_log),
            f"cat {q_log}",
            f"rm -rf {q_tmp} || true",
            "echo $(date -Is) INFO Cleaned up tmp dir",
        ])

    def log_tail_script(self, lines: int = LOG_TAIL_LINES) -> str:
        """Print the end of the remote log if it exists; never fails."""
        q_log = shell_quote(self.remote_log)
        return f"test -f {q_log} && tail -n {int(lines)} {q_log} || true"
