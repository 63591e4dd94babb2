"""
Shared fixtures for phpswitcher tests

Backends are replaced by subclasses whose process helpers return scripted
results and record every command instead of spawning anything.
"""
import subprocess
from typing import Callable, Dict, List, Union

import pytest

from phpswitcher.config import PhpSwitcherConfig
from phpswitcher.platform.backends.apt import AptBackend
from phpswitcher.platform.backends.homebrew import HomebrewBackend

Response = Union[tuple, Callable[[], tuple], Exception]


class ScriptedMixin:
    """Answer commands from a {"cmd args": (returncode, output)} table"""

    def __init__(self, responses: Dict[str, Response] = None, config: PhpSwitcherConfig = None):
        super().__init__(config or PhpSwitcherConfig())
        self.responses = dict(responses or {})
        self.calls: List[str] = []
        self.streamed: List[str] = []

    def _respond(self, cmd):
        key = ' '.join(cmd)
        self.calls.append(key)
        value = self.responses.get(key, (0, ''))
        if isinstance(value, Exception):
            raise value
        if callable(value):
            value = value()
        returncode, output = value
        return subprocess.CompletedProcess(list(cmd), returncode, output, '')

    def run_command(self, cmd, timeout=None):
        return self._respond(cmd)

    def stream_command(self, cmd, timeout=None):
        self.streamed.append(' '.join(cmd))
        result = self._respond(cmd)
        for line in result.stdout.splitlines():
            self.emit(line)
        return result


class ScriptedHomebrew(ScriptedMixin, HomebrewBackend):
    pass


class ScriptedApt(ScriptedMixin, AptBackend):
    pass


@pytest.fixture
def brew_backend():
    """Factory for a scripted Homebrew backend"""
    def _create(responses=None, config=None):
        return ScriptedHomebrew(responses, config)
    return _create


@pytest.fixture
def apt_backend(monkeypatch):
    """Factory for a scripted APT backend with update-alternatives on PATH"""
    monkeypatch.setattr(
        'phpswitcher.platform.backends.apt.shutil.which',
        lambda name: f'/usr/bin/{name}',
    )

    def _create(responses=None, config=None):
        return ScriptedApt(responses, config)
    return _create


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point PHPSWITCHER_HOME at a temp dir and drop any config override"""
    home = tmp_path / 'state'
    monkeypatch.setenv('PHPSWITCHER_HOME', str(home))
    monkeypatch.delenv('PHPSWITCHER_CONFIG', raising=False)
    return home
