#!/usr/bin/env python3
"""
phpswitcher module entry point
Allows running: python3 -m phpswitcher
"""

from phpswitcher.cli import main

if __name__ == '__main__':
    main()
