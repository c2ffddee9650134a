"""Host platform identification."""

from __future__ import annotations

import sys
from enum import Enum

__all__ = ["HostPlatform", "HostPlatformId"]


class HostPlatformId(str, Enum):
    """Operating system families that change process handling."""

    WINDOWS = "windows"
    LINUX = "linux"
    OSX = "osx"


class HostPlatform:
    """Queries about the platform this process runs on."""

    @staticmethod
    def get_platform_id(platform: str | None = None) -> HostPlatformId:
        """Map ``sys.platform`` (or ``platform``) to a ``HostPlatformId``.

        Unknown Unix flavours are reported as LINUX since they share its
        signal semantics.
        """
        platform = platform if platform is not None else sys.platform
        if platform == "win32" or platform == "cygwin":
            return HostPlatformId.WINDOWS
        if platform == "darwin":
            return HostPlatformId.OSX
        return HostPlatformId.LINUX

    @staticmethod
    def get_npm_cli_command(
        cli_name: str, platform_id: HostPlatformId | None = None
    ) -> str:
        """Name of an npm-installed CLI; Windows installs a ``.cmd`` shim."""
        if platform_id is None:
            platform_id = HostPlatform.get_platform_id()
        if platform_id == HostPlatformId.WINDOWS:
            return f"{cli_name}.cmd"
        return cli_name
