#!/usr/bin/env python3
"""
phpswitcher Setup
Minimal setup.py for backward compatibility with older pip/setuptools.
All configuration is in pyproject.toml.
"""
from setuptools import setup

# All configuration is in pyproject.toml
setup()
