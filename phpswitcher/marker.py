#!/usr/bin/env python3
"""
phpswitcher Active Version Marker
One-line file recording the version phpswitcher last switched to
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ActiveVersionMarker:
    """Read and write the active version marker file"""

    def __init__(self, path: Path):
        """
        Args:
            path: Marker file location (usually ~/.phpswitcher/active_version)
        """
        self.path = path

    def read(self) -> Optional[str]:
        """
        Get the recorded version

        Returns:
            Version string, or None if the marker is absent or empty
        """
        if not self.path.exists():
            return None

        try:
            content = self.path.read_text(encoding='utf-8').strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read active version marker %s: %s", self.path, e)
            return None

        return content or None

    def write(self, version: str) -> bool:
        """
        Record version as the active one

        Returns:
            True if the marker was written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(f'{version}\n', encoding='utf-8')
        except OSError as e:
            # The switch itself already succeeded
            logger.warning("Could not write active version marker %s: %s", self.path, e)
            return False
        return True
