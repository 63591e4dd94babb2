#!/usr/bin/env python3
"""
phpswitcher Configuration Management
Handles .phpswitcher.yml / ~/.phpswitcher/config.yml configuration files
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Dict, Optional, Any
from dataclasses import dataclass

logger = logging.getLogger(__name__)

HOME_ENV_VAR = 'PHPSWITCHER_HOME'
CONFIG_ENV_VAR = 'PHPSWITCHER_CONFIG'


def get_state_dir() -> Path:
    """Directory holding the global config and the active version marker"""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / '.phpswitcher'


@dataclass
class PhpSwitcherConfig:
    """phpswitcher configuration structure"""

    # Package naming
    package_prefix: str = "php"          # php@8.2 (brew) / php8.2 (apt)
    alternatives_group: str = "php"      # update-alternatives link group
    binary_dir: str = "/usr/bin"         # where APT puts php8.2

    # Package manager behaviour
    use_sudo: bool = True
    verify_formula: bool = True          # brew info before brew install

    # Timeouts (seconds)
    install_timeout: int = 3600          # formulae may build from source
    index_refresh_timeout: int = 300
    command_timeout: int = 60

    # Project files
    version_file: str = ".php-version"
    manifest_file: str = "composer.json"

    # None = $PHPSWITCHER_HOME/active_version
    marker_path: Optional[str] = None

    @property
    def active_marker_path(self) -> Path:
        if self.marker_path:
            return Path(self.marker_path).expanduser()
        return get_state_dir() / 'active_version'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PhpSwitcherConfig':
        """Create config from dictionary"""
        config = cls()

        for key in ('package_prefix', 'alternatives_group', 'binary_dir',
                    'version_file', 'manifest_file', 'marker_path'):
            if key in data and data[key] is not None:
                setattr(config, key, str(data[key]))

        for key in ('use_sudo', 'verify_formula'):
            if key not in data:
                continue
            if isinstance(data[key], bool):
                setattr(config, key, data[key])
            else:
                logger.warning("Ignoring %s=%r: expected true or false", key, data[key])

        timeouts = data.get('timeouts') or {}
        if not isinstance(timeouts, dict):
            logger.warning("Ignoring timeouts=%r: expected a mapping", timeouts)
            timeouts = {}
        for key, attr in (('install', 'install_timeout'),
                          ('index_refresh', 'index_refresh_timeout'),
                          ('command', 'command_timeout')):
            value = timeouts.get(key, getattr(config, attr))
            try:
                setattr(config, attr, max(1, int(value)))
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid timeout %s=%r", key, value)

        known = {'package_prefix', 'alternatives_group', 'binary_dir', 'version_file',
                 'manifest_file', 'marker_path', 'use_sudo', 'verify_formula', 'timeouts'}
        for key in sorted(set(data) - known):
            logger.warning("Ignoring unknown config key: %s", key)

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for YAML export"""
        return {
            'package_prefix': self.package_prefix,
            'alternatives_group': self.alternatives_group,
            'binary_dir': self.binary_dir,
            'use_sudo': self.use_sudo,
            'verify_formula': self.verify_formula,
            'timeouts': {
                'install': self.install_timeout,
                'index_refresh': self.index_refresh_timeout,
                'command': self.command_timeout,
            },
            'version_file': self.version_file,
            'manifest_file': self.manifest_file,
            'marker_path': str(self.active_marker_path),
        }


class ConfigManager:
    """Manage phpswitcher configuration files"""

    DEFAULT_CONFIG_NAME = ".phpswitcher.yml"
    GLOBAL_CONFIG_NAME = "config.yml"

    @staticmethod
    def find_config(start_path: Path = None) -> Optional[Path]:
        """
        Find the configuration file to use

        Lookup order: $PHPSWITCHER_CONFIG, nearest .phpswitcher.yml walking up
        from start_path, then $PHPSWITCHER_HOME/config.yml.

        Args:
            start_path: Starting directory (default: current directory)

        Returns:
            Path to the config file or None if not found
        """
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()

        current = (start_path or Path.cwd()).resolve()

        # Walk up directory tree
        while True:
            config_file = current / ConfigManager.DEFAULT_CONFIG_NAME
            if config_file.is_file():
                return config_file
            if current == current.parent:
                break
            current = current.parent

        global_config = get_state_dir() / ConfigManager.GLOBAL_CONFIG_NAME
        if global_config.is_file():
            return global_config

        return None

    @staticmethod
    def load_config(config_path: Path = None) -> PhpSwitcherConfig:
        """
        Load configuration

        Args:
            config_path: Path to config file (default: search via find_config)

        Returns:
            PhpSwitcherConfig object
        """
        if config_path is None:
            config_path = ConfigManager.find_config()

        # Return default config if no file found
        if config_path is None or not config_path.exists():
            return PhpSwitcherConfig()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)
            return PhpSwitcherConfig()

        if data is None:
            return PhpSwitcherConfig()

        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: expected a mapping at top level", config_path)
            return PhpSwitcherConfig()

        logger.debug("Loaded config from %s", config_path)
        return PhpSwitcherConfig.from_dict(data)

    @staticmethod
    def save_config(config: PhpSwitcherConfig, config_path: Path) -> bool:
        """
        Save configuration as YAML

        Args:
            config: PhpSwitcherConfig object
            config_path: Path where to save

        Returns:
            True if successful
        """
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, 'w') as f:
                yaml.dump(
                    config.to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            return True

        except OSError as e:
            logger.error("Failed to save config to %s: %s", config_path, e)
            return False
