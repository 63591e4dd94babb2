#!/usr/bin/env python3
"""
phpswitcher Base Backend Class
Base class for the package-manager specific install/switch strategies
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple, Type
import logging
import queue
import re
import subprocess
import threading
import time

from phpswitcher.config import PhpSwitcherConfig
from phpswitcher.errors import BackendProcessFailure, PhpSwitcherError, ProcessTimeout
from phpswitcher.platform.detector import OSType, PackageManager

logger = logging.getLogger(__name__)

XY_PATTERN = re.compile(r'^(\d+\.\d+)')


def version_key(version: str) -> Tuple[int, ...]:
    """Sort key for dotted numeric versions ("8.10" sorts after "8.9")"""
    return tuple(int(part) for part in re.findall(r'\d+', version))


class BestEffortStatus(Enum):
    """Outcome of an operation whose failure does not abort the caller"""
    SUCCEEDED = "succeeded"
    ALREADY_DONE = "already-done"
    IGNORED_FAILURE = "ignored-failure"


@dataclass(frozen=True)
class UnlinkOutcome:
    """Result of deactivating one sibling version"""
    package_name: str
    status: BestEffortStatus
    detail: str = ''


@dataclass(frozen=True)
class InstallResult:
    """Result of an install request"""
    package_name: str
    already_installed: bool


@dataclass(frozen=True)
class InstalledVersion:
    """One installed PHP version as reported by the backend"""
    version: str
    package_name: str
    active: bool = False


OutputHandler = Callable[[str], None]


class BaseBackend(ABC):
    """
    Abstract base class for package backends

    A backend owns everything that differs between package managers: how a
    version maps to a package name, how install state is probed, and how a
    version is made the active one.
    """

    family: OSType = OSType.UNKNOWN
    package_manager: PackageManager = PackageManager.UNKNOWN

    # Install/switch commands run through sudo
    needs_privileges: bool = False

    # Shown when a package cannot be found
    INSTALL_HINT: Optional[str] = None

    def __init__(self, config: Optional[PhpSwitcherConfig] = None,
                 output: Optional[OutputHandler] = None):
        self.config = config or PhpSwitcherConfig()
        self.output = output

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @abstractmethod
    def format_package_name(self, version: str) -> str:
        """
        Build the package identifier for an X.Y version

        Args:
            version: Normalized X.Y version

        Returns:
            Package name (e.g. 'php@8.2' or 'php8.2')
        """

    def formula_exists(self, package_name: str) -> bool:
        """Whether the package index knows the package (default: assume yes)"""
        return True

    # ------------------------------------------------------------------
    # Install path
    # ------------------------------------------------------------------

    @abstractmethod
    def is_installed(self, package_name: str) -> bool:
        """
        Check if a package is already installed. Never raises.

        Args:
            package_name: Package name to check

        Returns:
            True if package is installed
        """

    @abstractmethod
    def install(self, package_name: str) -> InstallResult:
        """
        Install a package unless it is already present

        Args:
            package_name: Package name from the resolver

        Returns:
            InstallResult

        Raises:
            BackendProcessFailure: the package manager failed
        """

    @abstractmethod
    def list_installed(self) -> List[InstalledVersion]:
        """Installed PHP versions, oldest first"""

    @abstractmethod
    def active_version(self) -> Optional[str]:
        """X.Y version the system currently resolves `php` to, if known"""

    # ------------------------------------------------------------------
    # Switch path
    # ------------------------------------------------------------------

    def check_switch_support(self) -> None:
        """Raise UnsupportedBackend if switching cannot work on this host"""

    def is_switchable(self, package_name: str) -> bool:
        """Whether the target can be activated right now"""
        return self.is_installed(package_name)

    def describe_missing(self, package_name: str, version: str) -> Optional[str]:
        """Backend specific explanation for a missing switch target"""
        return None

    @abstractmethod
    def deactivate_others(self, package_name: str) -> List[UnlinkOutcome]:
        """
        Deactivate every installed version except the target. Never raises
        for individual siblings.
        """

    @abstractmethod
    def activate(self, package_name: str, version: str) -> None:
        """
        Make the target the active version

        Raises:
            BackendProcessFailure: activation command failed
        """

    # ------------------------------------------------------------------
    # Process helpers
    # ------------------------------------------------------------------

    def with_sudo(self, cmd: List[str]) -> List[str]:
        """Prefix a privileged command with sudo when configured"""
        if self.config.use_sudo:
            return ['sudo'] + cmd
        return cmd

    def emit(self, line: str) -> None:
        if self.output is not None:
            self.output(line)

    def run_command(self, cmd: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Run a command with captured output

        Args:
            cmd: Command and arguments
            timeout: Seconds before the process is killed (default: config)

        Returns:
            CompletedProcess result, whatever its exit code

        Raises:
            ProcessTimeout: timeout expired
            BackendProcessFailure: the executable could not be started
        """
        if timeout is None:
            timeout = self.config.command_timeout
        logger.debug("Running: %s", ' '.join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False,
                                  shell=False, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            output = e.stdout if isinstance(e.stdout, str) else ''
            raise ProcessTimeout(cmd, timeout, output) from e
        except OSError as e:
            raise BackendProcessFailure(cmd, None, str(e)) from e

    def stream_command(self, cmd: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Run a command, echoing its combined stdout/stderr line by line

        The returned CompletedProcess carries the combined output in stdout so
        callers can inspect error text after a failure. The deadline holds even
        while the process prints nothing (e.g. sudo waiting for a password).

        Raises:
            ProcessTimeout: timeout expired (the process is killed)
            BackendProcessFailure: the executable could not be started
        """
        logger.debug("Streaming: %s", ' '.join(cmd))
        deadline = time.monotonic() + timeout if timeout else None
        captured: List[str] = []

        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
                                    text=True, bufsize=1)
        except OSError as e:
            raise BackendProcessFailure(cmd, None, str(e)) from e

        lines: queue.Queue = queue.Queue()
        reader = threading.Thread(target=_pump_lines, args=(proc.stdout, lines), daemon=True)
        reader.start()

        try:
            while True:
                try:
                    line = lines.get(timeout=_remaining(deadline))
                except queue.Empty:
                    raise subprocess.TimeoutExpired(cmd, timeout)
                if line is None:
                    break
                captured.append(line)
                self.emit(line.rstrip('\n'))
            proc.wait(timeout=_remaining(deadline))
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            raise ProcessTimeout(cmd, timeout, ''.join(captured)) from None
        finally:
            # a grandchild may still hold the pipe open after a kill
            reader.join(timeout=1)
            if not reader.is_alive() and proc.stdout:
                proc.stdout.close()

        return subprocess.CompletedProcess(cmd, proc.returncode, ''.join(captured), '')

    def probe(self, cmd: List[str]) -> Optional[subprocess.CompletedProcess]:
        """Run a state query, returning None instead of raising"""
        try:
            return self.run_command(cmd)
        except PhpSwitcherError as e:
            logger.debug("Probe %s failed: %s", ' '.join(cmd), e.message)
            return None

    @staticmethod
    def ensure_success(result: subprocess.CompletedProcess, hint: Optional[str] = None,
                       error_cls: Type[BackendProcessFailure] = BackendProcessFailure) -> subprocess.CompletedProcess:
        """Raise error_cls unless the process exited zero"""
        if result.returncode != 0:
            output = (result.stdout or '') + (result.stderr or '')
            raise error_cls(_as_list(result.args), result.returncode, output, hint=hint)
        return result


def _as_list(args) -> List[str]:
    if isinstance(args, (list, tuple)):
        return [str(a) for a in args]
    return [str(args)]


def normalize_version(version: str) -> Optional[str]:
    """Reduce X.Y or X.Y.Z to X.Y; None when there is no X.Y prefix"""
    match = XY_PATTERN.match(version.strip())
    return match.group(1) if match else None


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _pump_lines(stream, lines: queue.Queue) -> None:
    """Copy lines from a pipe into a queue, ending with a None sentinel"""
    try:
        for line in stream:
            lines.put(line)
    except (OSError, ValueError) as e:
        logger.debug("Output pipe closed early: %s", e)
    finally:
        lines.put(None)
