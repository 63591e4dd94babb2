#!/usr/bin/env python3
"""
phpswitcher Platform Detection
Detects operating system family and the package managers phpswitcher can drive
"""

import platform
import shutil
import os
from pathlib import Path
from typing import Optional, List
from enum import Enum
from dataclasses import dataclass


class OSType(Enum):
    """Operating system families"""
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


class PackageManager(Enum):
    """Package managers relevant to PHP installs"""
    APT = "apt-get"          # Debian/Ubuntu
    BREW = "brew"            # macOS Homebrew
    UNKNOWN = "unknown"


# Tools that must be on PATH for a backend to be selectable
PACKAGE_MANAGER_PROBES = {
    PackageManager.APT: 'apt-get',
    PackageManager.BREW: 'brew',
}


def detect_family(system: Optional[str] = None) -> OSType:
    """
    Map an OS name to its family

    Args:
        system: OS name as reported by platform.system() (default: current host)

    Returns:
        OSType, UNKNOWN for anything unrecognised
    """
    name = (system if system is not None else platform.system()).lower()

    if name == 'darwin':
        return OSType.MACOS
    if name == 'linux':
        return OSType.LINUX
    if name == 'windows' or name.startswith(('cygwin', 'msys', 'mingw')):
        return OSType.WINDOWS
    return OSType.UNKNOWN


def is_mac_like(system: Optional[str] = None) -> bool:
    return detect_family(system) == OSType.MACOS


def is_linux_like(system: Optional[str] = None) -> bool:
    return detect_family(system) == OSType.LINUX


def is_windows_like(system: Optional[str] = None) -> bool:
    return detect_family(system) == OSType.WINDOWS


@dataclass
class PlatformInfo:
    """Complete platform information"""
    os_type: OSType
    os_name: str
    os_version: str
    architecture: str
    package_managers: List[PackageManager]
    primary_package_manager: Optional[PackageManager]
    is_wsl: bool
    shell: str


class PlatformDetector:
    """
    Detect platform details: OS family, package managers, environment
    """

    def __init__(self):
        self.info: Optional[PlatformInfo] = None

    def detect(self) -> PlatformInfo:
        """
        Perform full platform detection

        Returns:
            PlatformInfo with all detected details
        """
        os_type = detect_family()
        package_managers = self._detect_package_managers()

        self.info = PlatformInfo(
            os_type=os_type,
            os_name=platform.system(),
            os_version=platform.release(),
            architecture=platform.machine(),
            package_managers=package_managers,
            primary_package_manager=self._get_primary_package_manager(os_type, package_managers),
            is_wsl=self._is_wsl(),
            shell=self._detect_shell(),
        )

        return self.info

    def _is_wsl(self) -> bool:
        """Check if running in Windows Subsystem for Linux"""
        # WSL has /proc/version with "Microsoft" or "WSL"
        if Path('/proc/version').exists():
            try:
                with open('/proc/version', 'r') as f:
                    version = f.read().lower()
                    return 'microsoft' in version or 'wsl' in version
            except OSError:
                pass
        return False

    def _detect_package_managers(self) -> List[PackageManager]:
        """Detect available package managers"""
        managers = [pm for pm, cmd in PACKAGE_MANAGER_PROBES.items() if shutil.which(cmd)]
        return managers if managers else [PackageManager.UNKNOWN]

    def _get_primary_package_manager(self, os_type: OSType,
                                     available: List[PackageManager]) -> Optional[PackageManager]:
        """Get the package manager phpswitcher uses on this OS"""
        # Homebrew on Linux exists but its php formulae are not switched with
        # update-alternatives, so only APT counts there
        if os_type == OSType.LINUX:
            return PackageManager.APT if PackageManager.APT in available else None
        if os_type == OSType.MACOS:
            return PackageManager.BREW if PackageManager.BREW in available else None
        return None

    def _detect_shell(self) -> str:
        """Detect current shell"""
        shell = os.environ.get('SHELL', '')
        if shell:
            return Path(shell).name
        return 'unknown'


# Global detector instance
_detector: Optional[PlatformDetector] = None


def get_platform_info() -> PlatformInfo:
    """Get cached platform information"""
    global _detector
    if _detector is None or _detector.info is None:
        _detector = PlatformDetector()
        _detector.detect()
    return _detector.info
