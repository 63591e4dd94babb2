#!/usr/bin/env python3
"""
phpswitcher Switch Engine
Makes one installed PHP version the active one, deactivating its siblings first
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from phpswitcher.errors import NotInstalled
from phpswitcher.platform.backends.base import BaseBackend, UnlinkOutcome
from phpswitcher.resolver import ResolvedPackage, validate_switch_version

logger = logging.getLogger(__name__)


class SwitchState(Enum):
    """Steps of a single switch, in order"""
    REQUESTED = "requested"
    VALIDATED = "validated"
    TARGET_INSTALLED = "target-installed"
    OTHERS_DEACTIVATED = "others-deactivated"
    TARGET_ACTIVATED = "target-activated"
    DONE = "done"


@dataclass
class SwitchReport:
    """What a successful switch did"""
    resolved: ResolvedPackage
    states: List[SwitchState] = field(default_factory=list)
    deactivated: List[UnlinkOutcome] = field(default_factory=list)


class SwitchEngine:
    """
    Drive a switch through its states against an injected backend.

    The target is checked before anything is deactivated, so a failed
    switch never leaves the machine without an active version.
    """

    def __init__(self, backend: BaseBackend):
        self.backend = backend

    def switch(self, version: str) -> SwitchReport:
        """
        Switch the active PHP version

        Args:
            version: Target version, strictly X.Y

        Returns:
            SwitchReport with visited states and sibling outcomes

        Raises:
            InvalidVersionFormat: version is not X.Y
            UnsupportedBackend: switching is not possible on this host
            NotInstalled: target is not installed
            BackendProcessFailure: listing or activation failed
        """
        self.backend.check_switch_support()
        states = [SwitchState.REQUESTED]

        validate_switch_version(version)
        resolved = ResolvedPackage(self.backend.format_package_name(version), version)
        report = SwitchReport(resolved=resolved, states=states)
        self._advance(report, SwitchState.VALIDATED)

        if not self.backend.is_switchable(resolved.package_name):
            raise NotInstalled(version, resolved.package_name,
                               self.backend.describe_missing(resolved.package_name, version))
        self._advance(report, SwitchState.TARGET_INSTALLED)

        report.deactivated = self.backend.deactivate_others(resolved.package_name)
        self._advance(report, SwitchState.OTHERS_DEACTIVATED)

        self.backend.activate(resolved.package_name, version)
        self._advance(report, SwitchState.TARGET_ACTIVATED)

        self._advance(report, SwitchState.DONE)
        return report

    @staticmethod
    def _advance(report: SwitchReport, state: SwitchState) -> None:
        logger.debug("Switch to %s: %s", report.resolved.package_name, state.value)
        report.states.append(state)
