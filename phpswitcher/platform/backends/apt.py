#!/usr/bin/env python3
"""
phpswitcher Linux Backend
Install PHP with APT and switch it with update-alternatives (Debian/Ubuntu)
"""

from pathlib import Path
from typing import List, Optional, Tuple, Type
import logging
import re
import shutil

from phpswitcher.errors import (
    BackendProcessFailure,
    IndexRefreshFailure,
    PrivilegeFailure,
    UnsupportedBackend,
)
from phpswitcher.platform.backends.base import (
    BaseBackend,
    InstallResult,
    InstalledVersion,
    UnlinkOutcome,
    version_key,
)
from phpswitcher.platform.detector import OSType, PackageManager

logger = logging.getLogger(__name__)

PPA_HINT = (
    'For PHP versions not in standard repositories, you might need the '
    'Ondřej Surý PPA: https://launchpad.net/~ondrej/+archive/ubuntu/php'
)


def classify_alternatives_failure(output: str, group: str,
                                  executable: str) -> Tuple[Type[BackendProcessFailure], Optional[str]]:
    """
    Map update-alternatives error text to an error class and hint

    Args:
        output: Combined stdout/stderr of the failed command
        group: Alternatives link group name (e.g. 'php')
        executable: Absolute path of the target binary

    Returns:
        Tuple of (exception class, hint or None)
    """
    text = output.lower()
    if 'is not managed' in text:
        return BackendProcessFailure, (
            f'{group} might not be managed by update-alternatives on this system.'
        )
    if f'no alternatives for {group.lower()}' in text:
        return BackendProcessFailure, (
            f'{group} alternatives might not be configured. Register each installed version first, e.g. '
            f'`sudo update-alternatives --install /usr/bin/{group} {group} {executable} PRIORITY`.'
        )
    if 'permission denied' in text or 'not in the sudoers file' in text:
        return PrivilegeFailure, 'Switching requires sudo privileges.'
    return BackendProcessFailure, None


class AptBackend(BaseBackend):
    """Debian/Ubuntu backend using apt-get, dpkg and update-alternatives"""

    family = OSType.LINUX
    package_manager = PackageManager.APT

    INSTALLED_STATUS = 'install ok installed'
    INSTALL_HINT = PPA_HINT
    needs_privileges = True

    def format_package_name(self, version: str) -> str:
        return f'{self.config.package_prefix}{version}'

    def cli_package(self, package_name: str) -> str:
        """The -cli sub-package that is always installed"""
        return f'{package_name}-cli'

    def executable_path(self, package_name: str) -> Path:
        return Path(self.config.binary_dir) / package_name

    def _dpkg_installed(self, package: str) -> bool:
        result = self.probe(['dpkg', '-s', package])
        if result is None or result.returncode != 0:
            return False
        return f'Status: {self.INSTALLED_STATUS}' in result.stdout

    def is_installed(self, package_name: str) -> bool:
        """Check if package (or its -cli variant) is installed via dpkg"""
        return (self._dpkg_installed(package_name)
                or self._dpkg_installed(self.cli_package(package_name)))

    def install(self, package_name: str) -> InstallResult:
        """Refresh the index, then install <package>-cli with apt-get"""
        if self.is_installed(package_name):
            logger.info("%s is already installed via APT", package_name)
            return InstallResult(package_name, already_installed=True)

        update = self.stream_command(self.with_sudo(['apt-get', 'update']),
                                     timeout=self.config.index_refresh_timeout)
        self.ensure_success(update, error_cls=IndexRefreshFailure)

        cli_package = self.cli_package(package_name)
        result = self.stream_command(self.with_sudo(['apt-get', 'install', '-y', cli_package]),
                                     timeout=self.config.install_timeout)
        hint = self.INSTALL_HINT if 'Unable to locate package' in (result.stdout or '') else None
        self.ensure_success(result, hint=hint)
        return InstallResult(package_name, already_installed=False)

    def list_installed(self) -> List[InstalledVersion]:
        """Installed php<X.Y>-cli packages according to dpkg-query"""
        prefix = self.config.package_prefix
        result = self.run_command(['dpkg-query', '-W', '-f', '${Package} ${Status}\n', f'{prefix}*-cli'])
        # dpkg-query exits 1 when the pattern matches nothing
        if result.returncode not in (0, 1):
            self.ensure_success(result)

        pattern = re.compile(rf'^{re.escape(prefix)}(\d+\.\d+)-cli$')
        active = self.active_version()
        versions = []
        for line in result.stdout.splitlines():
            name, _, status = line.strip().partition(' ')
            match = pattern.match(name)
            if not match or status.strip() != self.INSTALLED_STATUS:
                continue
            version = match.group(1)
            versions.append(InstalledVersion(version, self.format_package_name(version),
                                             active=(version == active)))
        return sorted(versions, key=lambda v: version_key(v.version))

    def active_version(self) -> Optional[str]:
        """Read the selected alternative for the php link group"""
        result = self.probe(['update-alternatives', '--query', self.config.alternatives_group])
        if result is None or result.returncode != 0:
            return None
        match = re.search(
            rf'^Value:\s*\S*/{re.escape(self.config.package_prefix)}(\d+\.\d+)\s*$',
            result.stdout, re.MULTILINE,
        )
        return match.group(1) if match else None

    def check_switch_support(self) -> None:
        if not shutil.which('update-alternatives'):
            raise UnsupportedBackend(
                'Unsupported Linux distribution. Only Debian/Ubuntu (with update-alternatives) '
                'is currently supported for switching.'
            )

    def is_switchable(self, package_name: str) -> bool:
        """The versioned binary must exist, whatever dpkg says"""
        return self.executable_path(package_name).exists()

    def describe_missing(self, package_name: str, version: str) -> Optional[str]:
        return (f'Target PHP executable {self.executable_path(package_name)} not found. '
                f'Is PHP {version} installed correctly via APT?')

    def deactivate_others(self, package_name: str) -> List[UnlinkOutcome]:
        # update-alternatives --set replaces the previous selection itself
        return []

    def activate(self, package_name: str, version: str) -> None:
        """Point the alternatives group at /usr/bin/php<X.Y>"""
        group = self.config.alternatives_group
        executable = str(self.executable_path(package_name))
        result = self.stream_command(
            self.with_sudo(['update-alternatives', '--set', group, executable]),
            timeout=self.config.command_timeout,
        )
        if result.returncode != 0:
            error_cls, hint = classify_alternatives_failure(result.stdout or '', group, executable)
            self.ensure_success(result, hint=hint, error_cls=error_cls)
