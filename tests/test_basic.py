"""
Basic tests for phpswitcher
"""
from phpswitcher.cli import main


def test_import():
    """Test that we can import the main module"""
    assert main is not None


def test_version():
    """Test version is accessible"""
    from phpswitcher import __version__
    assert __version__ == "0.3.0"
