"""
phpswitcher - PHP Version Manager
Install PHP versions through Homebrew or APT and switch the active one.
"""

__version__ = "0.3.0"
__author__ = "phpswitcher contributors"
__license__ = "MIT"

__all__ = ["__version__"]
