"""
phpswitcher Package Backends
Homebrew (macOS) and APT + update-alternatives (Debian/Ubuntu) strategies
"""

import shutil
from typing import Optional

from phpswitcher.config import PhpSwitcherConfig
from phpswitcher.errors import UnsupportedBackend, UnsupportedPlatform
from phpswitcher.platform.backends.base import (
    BaseBackend,
    BestEffortStatus,
    InstallResult,
    InstalledVersion,
    OutputHandler,
    UnlinkOutcome,
)
from phpswitcher.platform.backends.apt import AptBackend
from phpswitcher.platform.backends.homebrew import HomebrewBackend
from phpswitcher.platform.detector import OSType, PlatformInfo


def select_backend(platform_info: PlatformInfo,
                   config: Optional[PhpSwitcherConfig] = None,
                   output: Optional[OutputHandler] = None) -> BaseBackend:
    """
    Pick the backend for this host

    Args:
        platform_info: Detected platform
        config: Loaded configuration
        output: Callback receiving streamed subprocess output lines

    Returns:
        Backend instance

    Raises:
        UnsupportedPlatform: OS family has no backend
        UnsupportedBackend: OS family is supported but its package manager is missing
    """
    if platform_info.os_type == OSType.MACOS:
        if not shutil.which('brew'):
            raise UnsupportedBackend(
                'Homebrew was not found on PATH.',
                hint='Install Homebrew from https://brew.sh and retry.',
            )
        return HomebrewBackend(config, output)

    if platform_info.os_type == OSType.LINUX:
        if not shutil.which('apt-get'):
            raise UnsupportedBackend(
                'Unsupported Linux distribution. Only Debian/Ubuntu (APT) is currently supported.'
            )
        return AptBackend(config, output)

    raise UnsupportedPlatform(
        f'Unsupported OS: {platform_info.os_name or platform_info.os_type.value}. '
        'Only macOS and Linux are supported.'
    )


__all__ = [
    'AptBackend',
    'BaseBackend',
    'BestEffortStatus',
    'HomebrewBackend',
    'InstallResult',
    'InstalledVersion',
    'UnlinkOutcome',
    'select_backend',
]
