"""
System and tool detection.
"""

import platform
import shutil
import socket
import sys
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class SystemInfo(BaseModel):
    """System information model."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    os_type: str  # 'Linux', 'Darwin', 'Windows'
    platform: str
    python_version: str
    hostname: str


class MissingTool(BaseModel):
    """Information about a missing tool."""

    name: str
    suggestion: str


class SystemDetector:
    """Detect system information and tool availability."""

    def detect_system(self) -> SystemInfo:
        """Detect current system information."""
        return SystemInfo(
            os_type=platform.system(),
            platform=platform.platform(),
            python_version=sys.version.split()[0],
            hostname=socket.gethostname(),
        )

    def check_required_tools(self, tools: List[str]) -> List[MissingTool]:
        """Check if required tools are available."""
        missing = []
        os_type = platform.system()

        for tool in tools:
            if not self._is_tool_available(tool):
                missing.append(MissingTool(
                    name=tool,
                    suggestion=self._get_installation_suggestion(tool, os_type),
                ))

        return missing

    def supports_multiplexing(self, os_type: Optional[str] = None) -> bool:
        """ControlMaster sockets are not available with Windows OpenSSH."""
        return (os_type or platform.system()) != "Windows"

    def _is_tool_available(self, tool: str) -> bool:
        """Check if a tool is available in PATH."""
        return shutil.which(tool) is not None

    def _get_installation_suggestion(self, tool: str, os_type: str) -> str:
        """Get installation suggestion for a missing tool."""
        suggestions = {
            "Linux": {
                "ssh": "sudo apt-get install openssh-client (or yum install openssh-clients)",
                "scp": "sudo apt-get install openssh-client (or yum install openssh-clients)",
            },
            "Darwin": {
                "ssh": "Pre-installed",
                "scp": "Pre-installed",
            },
            "Windows": {
                "ssh": "Settings > Apps > Optional features > OpenSSH Client",
                "scp": "Settings > Apps > Optional features > OpenSSH Client",
            },
        }

        if os_type in suggestions and tool in suggestions[os_type]:
            return suggestions[os_type][tool]

        return f"Please install {tool} manually"
