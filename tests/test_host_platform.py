"""Host platform tests."""

from __future__ import annotations

import pytest

from cmd_supervisor.host_platform import HostPlatform, HostPlatformId


@pytest.mark.parametrize(
    ("platform", "expected"),
    [
        ("win32", HostPlatformId.WINDOWS),
        ("cygwin", HostPlatformId.WINDOWS),
        ("darwin", HostPlatformId.OSX),
        ("linux", HostPlatformId.LINUX),
        ("freebsd13", HostPlatformId.LINUX),
    ],
)
def test_get_platform_id(platform: str, expected: HostPlatformId):
    assert HostPlatform.get_platform_id(platform) == expected


def test_npm_cli_command_windows():
    assert HostPlatform.get_npm_cli_command("react-native", HostPlatformId.WINDOWS) == "react-native.cmd"


def test_npm_cli_command_posix():
    assert HostPlatform.get_npm_cli_command("react-native", HostPlatformId.OSX) == "react-native"
    assert HostPlatform.get_npm_cli_command("react-native", HostPlatformId.LINUX) == "react-native"
