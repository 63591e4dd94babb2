#!/usr/bin/env python3
"""
phpswitcher Project Version Detection
Finds the PHP version a project asks for in .php-version or composer.json
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from phpswitcher.errors import ManifestParseFailure, ManifestReadFailure

logger = logging.getLogger(__name__)

VERSION_FILE = '.php-version'
MANIFEST_FILE = 'composer.json'

# Checked in order, first present wins
CONSTRAINT_FIELDS: Tuple[Tuple[str, ...], ...] = (
    ('require', 'php'),
    ('config', 'platform', 'php'),
)

XY_SEARCH = re.compile(r'(\d+\.\d+)')


@dataclass(frozen=True)
class DetectedVersion:
    """A version found in a project file"""
    version: str
    source: Path


def read_version_file(path: Path) -> Optional[str]:
    """
    First line of a .php-version file with all whitespace removed

    Returns:
        Version text, or None when the file is empty or unreadable
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            first_line = f.readline()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return None

    version = ''.join(first_line.split())
    return version or None


def load_manifest(path: Path) -> Dict[str, Any]:
    """
    Parse a composer.json file

    Raises:
        ManifestReadFailure: file could not be read
        ManifestParseFailure: content is not a JSON object
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        raise ManifestReadFailure(f'Could not read {path}: {e}') from e
    except UnicodeDecodeError as e:
        raise ManifestParseFailure(f'Could not parse {path}: {e}') from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestParseFailure(f'Could not parse {path}: {e}') from e

    if not isinstance(data, dict):
        raise ManifestParseFailure(f'Could not parse {path}: expected a JSON object')
    return data


def _lookup(data: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[Any]:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def extract_constraint(data: Dict[str, Any]) -> Optional[str]:
    """Constraint string from the first known field present"""
    for keys in CONSTRAINT_FIELDS:
        value = _lookup(data, keys)
        if value is not None:
            return str(value)
    return None


def constraint_to_version(constraint: str) -> Optional[str]:
    """First bare X.Y in a constraint ("^8.1 || ^8.2" -> "8.1")"""
    match = XY_SEARCH.search(constraint)
    return match.group(1) if match else None


def read_manifest_constraint(path: Path) -> Optional[str]:
    """
    X.Y version required by a composer.json, if any

    Unreadable or malformed manifests are reported as warnings and treated
    as having no constraint.
    """
    try:
        data = load_manifest(path)
    except (ManifestReadFailure, ManifestParseFailure) as e:
        logger.warning("%s", e.message)
        return None

    constraint = extract_constraint(data)
    if constraint is None:
        return None
    return constraint_to_version(constraint)


def _detect_in(directory: Path, version_file: str,
               manifest_file: str) -> Tuple[bool, Optional[DetectedVersion]]:
    """
    Look at one directory

    Returns:
        (found, detected): found is True when either project file exists
    """
    marker = directory / version_file
    if marker.is_file():
        version = read_version_file(marker)
        return True, DetectedVersion(version, marker) if version else None

    manifest = directory / manifest_file
    if manifest.is_file():
        version = read_manifest_constraint(manifest)
        return True, DetectedVersion(version, manifest) if version else None

    return False, None


def detect_version(start_dir: Path, version_file: str = VERSION_FILE,
                   manifest_file: str = MANIFEST_FILE) -> Optional[DetectedVersion]:
    """
    Version the directory-change hook should switch to

    Walks from start_dir up to the filesystem root and stops at the first
    directory holding a .php-version or composer.json.

    Args:
        start_dir: Directory to start from (inclusive)
        version_file: Marker file name
        manifest_file: Manifest file name

    Returns:
        DetectedVersion or None
    """
    current = Path(start_dir).resolve()

    while True:
        found, detected = _detect_in(current, version_file, manifest_file)
        if found:
            return detected
        if current == current.parent:
            return None
        current = current.parent


def detect_project_version(cwd: Path, version_file: str = VERSION_FILE,
                           manifest_file: str = MANIFEST_FILE) -> Optional[DetectedVersion]:
    """
    Version for install/use when no argument is given

    Only cwd is examined, no upward walk.
    """
    _, detected = _detect_in(Path(cwd), version_file, manifest_file)
    return detected
