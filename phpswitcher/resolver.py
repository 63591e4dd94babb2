#!/usr/bin/env python3
"""
phpswitcher Version Resolver
Validates requested versions and maps them to backend package names
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from phpswitcher.errors import InvalidVersionFormat, UnresolvedVersion
from phpswitcher.platform.backends.base import BaseBackend, normalize_version
from phpswitcher.platform.detector import OSType

logger = logging.getLogger(__name__)

INSTALL_VERSION_PATTERN = re.compile(r'^\d+\.\d+(\.\d+)?$')
SWITCH_VERSION_PATTERN = re.compile(r'^\d+\.\d+$')


@dataclass(frozen=True)
class ResolvedPackage:
    """A version mapped onto a concrete package"""
    package_name: str   # php@8.2 (brew) or php8.2 (apt)
    full_version: str   # canonical X.Y


def validate_install_version(version: str) -> str:
    """Accept X.Y or X.Y.Z, raise InvalidVersionFormat otherwise"""
    if not INSTALL_VERSION_PATTERN.match(version or ''):
        raise InvalidVersionFormat(version, 'X.Y or X.Y.Z (e.g., 7.4, 8.1, 8.2.15)')
    return version


def validate_switch_version(version: str) -> str:
    """Accept X.Y only, raise InvalidVersionFormat otherwise"""
    if not SWITCH_VERSION_PATTERN.match(version or ''):
        raise InvalidVersionFormat(version, 'X.Y (e.g., 7.4, 8.1)')
    return version


def resolve(requested_version: str, platform: OSType,
            backend: Optional[BaseBackend], verify: bool = True) -> ResolvedPackage:
    """
    Resolve a requested version to a package for the given platform

    The patch component is stripped here for every backend, so callers may
    pass either "8.1" or "8.1.5".

    Args:
        requested_version: Version from the user or auto-detection
        platform: Detected OS family
        backend: Backend selected for the platform (None if none available)
        verify: Confirm the package exists in the index, where supported

    Returns:
        ResolvedPackage

    Raises:
        UnresolvedVersion: no package can be determined
    """
    logger.debug("Resolving version %s for %s", requested_version, platform.value)

    if backend is None or platform not in (OSType.MACOS, OSType.LINUX) or backend.family != platform:
        raise UnresolvedVersion(
            'Currently only macOS (using Homebrew) and Linux (using APT) '
            'are supported for version resolution.'
        )

    base_version = normalize_version(requested_version)
    if base_version is None:
        raise UnresolvedVersion(f'Could not extract X.Y version from "{requested_version}".')

    package_name = backend.format_package_name(base_version)

    if verify and not backend.formula_exists(package_name):
        raise UnresolvedVersion(
            f'No package named {package_name} was found.',
            hint=backend.INSTALL_HINT,
        )

    logger.debug("Resolved %s to package %s", requested_version, package_name)
    return ResolvedPackage(package_name=package_name, full_version=base_version)
