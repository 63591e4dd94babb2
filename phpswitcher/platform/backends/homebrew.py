#!/usr/bin/env python3
"""
phpswitcher macOS Backend
Install and switch PHP versions with Homebrew formulae (php@X.Y)
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from phpswitcher.errors import PhpSwitcherError
from phpswitcher.platform.backends.base import (
    BaseBackend,
    BestEffortStatus,
    InstallResult,
    InstalledVersion,
    UnlinkOutcome,
    version_key,
)
from phpswitcher.platform.detector import OSType, PackageManager

logger = logging.getLogger(__name__)


class HomebrewBackend(BaseBackend):
    """macOS backend using brew install / brew link / brew unlink"""

    family = OSType.MACOS
    package_manager = PackageManager.BREW

    # Older PHP releases are dropped from homebrew/core
    INSTALL_HINT = 'Older PHP versions are available from the shivammathur/php tap: brew tap shivammathur/php'

    @property
    def formula_prefix(self) -> str:
        return f'{self.config.package_prefix}@'

    def format_package_name(self, version: str) -> str:
        return f'{self.formula_prefix}{version}'

    def formula_exists(self, package_name: str) -> bool:
        """Ask the formula index whether package_name exists"""
        if self.is_installed(package_name):
            return True
        result = self.probe(['brew', 'info', '--formula', package_name])
        return result is not None and result.returncode == 0

    def is_installed(self, package_name: str) -> bool:
        """Check if formula is installed via brew list"""
        result = self.probe(['brew', 'list', package_name])
        return result is not None and result.returncode == 0

    def install(self, package_name: str) -> InstallResult:
        """Install formula using brew (no sudo needed)"""
        if self.is_installed(package_name):
            logger.info("%s is already installed via Homebrew", package_name)
            return InstallResult(package_name, already_installed=True)

        result = self.stream_command(['brew', 'install', package_name],
                                     timeout=self.config.install_timeout)
        hint = None
        if 'No available formula' in (result.stdout or ''):
            hint = self.INSTALL_HINT
        self.ensure_success(result, hint=hint)
        return InstallResult(package_name, already_installed=False)

    def _installed_formulae(self) -> List[str]:
        result = self.ensure_success(self.run_command(['brew', 'list', '--formula']))
        formulae = [line.strip() for line in result.stdout.splitlines()]
        return [f for f in formulae if f.startswith(self.formula_prefix)]

    def list_installed(self) -> List[InstalledVersion]:
        active = self.active_version()
        versions = []
        for formula in self._installed_formulae():
            version = formula[len(self.formula_prefix):]
            versions.append(InstalledVersion(version, formula, active=(version == active)))
        return sorted(versions, key=lambda v: version_key(v.version))

    def active_version(self) -> Optional[str]:
        """Follow $(brew --prefix)/bin/php back to its php@X.Y keg"""
        result = self.probe(['brew', '--prefix'])
        if result is None or result.returncode != 0:
            return None

        php_bin = Path(result.stdout.strip()) / 'bin' / self.config.package_prefix
        try:
            target = os.path.realpath(php_bin) if php_bin.is_symlink() else None
        except OSError:
            return None
        if not target:
            return None

        match = re.search(re.escape(self.formula_prefix) + r'(\d+\.\d+)', target)
        return match.group(1) if match else None

    def deactivate_others(self, package_name: str) -> List[UnlinkOutcome]:
        """Unlink every installed php@X.Y except the target"""
        outcomes = []
        for formula in self._installed_formulae():
            if formula == package_name:
                continue
            outcomes.append(self._unlink(formula))
        return outcomes

    def _unlink(self, formula: str) -> UnlinkOutcome:
        try:
            result = self.run_command(['brew', 'unlink', formula])
        except PhpSwitcherError as e:
            logger.info("Could not unlink %s: %s", formula, e)
            return UnlinkOutcome(formula, BestEffortStatus.IGNORED_FAILURE, str(e))

        output = (result.stdout or '') + (result.stderr or '')
        if result.returncode != 0:
            # brew cannot tell "not linked" apart from a real failure here
            logger.info("Could not unlink %s (maybe already unlinked): %s", formula, output.strip())
            return UnlinkOutcome(formula, BestEffortStatus.IGNORED_FAILURE, output.strip())
        if re.search(r'\b0 symlinks removed', output):
            return UnlinkOutcome(formula, BestEffortStatus.ALREADY_DONE)
        return UnlinkOutcome(formula, BestEffortStatus.SUCCEEDED)

    def activate(self, package_name: str, version: str) -> None:
        """Force-link the target formula"""
        result = self.stream_command(['brew', 'link', '--force', '--overwrite', package_name],
                                     timeout=self.config.command_timeout)
        self.ensure_success(result)
