"""
Tests for platform family detection and backend selection
"""
import pytest

from phpswitcher.errors import UnsupportedBackend, UnsupportedPlatform
from phpswitcher.platform import (
    OSType,
    PlatformInfo,
    detect_family,
    is_linux_like,
    is_mac_like,
    is_windows_like,
)
from phpswitcher.platform.backends import AptBackend, HomebrewBackend, select_backend


def make_platform(os_type: OSType, os_name: str = '') -> PlatformInfo:
    return PlatformInfo(
        os_type=os_type,
        os_name=os_name or os_type.value,
        os_version='1.0',
        architecture='x86_64',
        package_managers=[],
        primary_package_manager=None,
        is_wsl=False,
        shell='bash',
    )


class TestDetectFamily:
    """Test OS name to family mapping"""

    @pytest.mark.parametrize('system,expected', [
        ('Darwin', OSType.MACOS),
        ('Linux', OSType.LINUX),
        ('Windows', OSType.WINDOWS),
        ('CYGWIN_NT-10.0', OSType.WINDOWS),
        ('MSYS_NT-10.0', OSType.WINDOWS),
        ('MINGW64_NT-10.0', OSType.WINDOWS),
        ('FreeBSD', OSType.UNKNOWN),
        ('', OSType.UNKNOWN),
    ])
    def test_family(self, system, expected):
        assert detect_family(system) == expected

    def test_guards_are_exclusive(self):
        """Exactly one guard matches a known family"""
        for system in ('Darwin', 'Linux', 'Windows'):
            guards = [is_mac_like(system), is_linux_like(system), is_windows_like(system)]
            assert guards.count(True) == 1

    def test_unknown_matches_no_guard(self):
        assert not any([is_mac_like('SunOS'), is_linux_like('SunOS'), is_windows_like('SunOS')])


class TestSelectBackend:
    """Test backend selection by family"""

    def test_macos_with_brew(self, monkeypatch):
        monkeypatch.setattr('phpswitcher.platform.backends.shutil.which', lambda name: '/opt/homebrew/bin/brew')
        backend = select_backend(make_platform(OSType.MACOS))
        assert isinstance(backend, HomebrewBackend)

    def test_linux_with_apt(self, monkeypatch):
        monkeypatch.setattr('phpswitcher.platform.backends.shutil.which', lambda name: '/usr/bin/apt-get')
        backend = select_backend(make_platform(OSType.LINUX))
        assert isinstance(backend, AptBackend)

    def test_linux_without_apt(self, monkeypatch):
        monkeypatch.setattr('phpswitcher.platform.backends.shutil.which', lambda name: None)
        with pytest.raises(UnsupportedBackend, match='Debian/Ubuntu'):
            select_backend(make_platform(OSType.LINUX))

    def test_macos_without_brew(self, monkeypatch):
        monkeypatch.setattr('phpswitcher.platform.backends.shutil.which', lambda name: None)
        with pytest.raises(UnsupportedBackend) as exc_info:
            select_backend(make_platform(OSType.MACOS))
        assert 'brew.sh' in exc_info.value.hint

    @pytest.mark.parametrize('os_type', [OSType.WINDOWS, OSType.UNKNOWN])
    def test_unsupported_family(self, os_type):
        with pytest.raises(UnsupportedPlatform, match='Only macOS and Linux'):
            select_backend(make_platform(os_type))
