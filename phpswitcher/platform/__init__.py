"""
phpswitcher Platform Detection & Backends
OS family detection and package-manager specific strategies
"""

from phpswitcher.platform.detector import (
    PlatformDetector,
    PlatformInfo,
    OSType,
    PackageManager,
    detect_family,
    is_mac_like,
    is_linux_like,
    is_windows_like,
    get_platform_info,
)

__all__ = [
    'PlatformDetector',
    'PlatformInfo',
    'OSType',
    'PackageManager',
    'detect_family',
    'is_mac_like',
    'is_linux_like',
    'is_windows_like',
    'get_platform_info',
]
