#!/usr/bin/env python3
"""
phpswitcher Errors
Exception hierarchy shared by the resolver, backends and switch engine
"""

from typing import List, Optional, Sequence


class PhpSwitcherError(Exception):
    """
    Base class for every failure surfaced to the user.

    Attributes:
        message: One-line description of what went wrong
        hint: Optional actionable follow-up shown under the message
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class InvalidVersionFormat(PhpSwitcherError):
    """Version string does not match the accepted grammar"""

    def __init__(self, version: str, expected: str):
        super().__init__(
            f'Invalid version format: "{version}". Please use format {expected}.'
        )
        self.version = version


class UnresolvedVersion(PhpSwitcherError):
    """Requested version cannot be mapped to a package"""


class VersionNotDetected(PhpSwitcherError):
    """No version argument given and none found in the project"""


class UnsupportedPlatform(PhpSwitcherError):
    """Operating system family is not supported"""


class UnsupportedBackend(PhpSwitcherError):
    """Platform is supported but the required package manager is missing"""


class NotInstalled(PhpSwitcherError):
    """Switch target is not installed"""

    def __init__(self, version: str, package_name: str, detail: Optional[str] = None):
        message = detail or f'Target version {package_name} does not appear to be installed.'
        super().__init__(message, hint=f'Please run `phpswitcher install {version}` first.')
        self.version = version
        self.package_name = package_name


class BackendProcessFailure(PhpSwitcherError):
    """
    External tool exited non-zero (or could not be run at all).

    Attributes:
        command: Command and arguments that were run
        returncode: Exit status (None when the process never started)
        output: Captured stdout/stderr text
    """

    def __init__(self, command: Sequence[str], returncode: Optional[int],
                 output: str = '', message: Optional[str] = None,
                 hint: Optional[str] = None):
        self.command: List[str] = list(command)
        self.returncode = returncode
        self.output = output or ''
        if message is None:
            message = f"Command '{' '.join(self.command)}' failed"
            if returncode is not None:
                message += f' with exit code {returncode}'
            detail = self.output.strip().splitlines()
            if detail:
                message += f': {detail[-1]}'
        super().__init__(message, hint=hint)


class ProcessTimeout(BackendProcessFailure):
    """External tool did not finish within its timeout"""

    def __init__(self, command: Sequence[str], timeout: float, output: str = ''):
        super().__init__(
            command, None, output,
            message=f"Command '{' '.join(command)}' timed out after {int(timeout)} seconds",
        )
        self.timeout = timeout


class IndexRefreshFailure(BackendProcessFailure):
    """Package index refresh (apt-get update) failed"""


class PrivilegeFailure(BackendProcessFailure):
    """Privilege elevation was denied"""


class ManifestReadFailure(PhpSwitcherError):
    """Project manifest exists but could not be read"""


class ManifestParseFailure(PhpSwitcherError):
    """Project manifest is not valid JSON"""
