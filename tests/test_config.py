"""
Tests for configuration loading and the active version marker
"""
import logging
from pathlib import Path

import yaml

from phpswitcher.config import ConfigManager, PhpSwitcherConfig, get_state_dir
from phpswitcher.marker import ActiveVersionMarker


class TestPhpSwitcherConfig:
    """Test config dataclass conversion"""

    def test_defaults(self):
        config = PhpSwitcherConfig()
        assert config.package_prefix == 'php'
        assert config.binary_dir == '/usr/bin'
        assert config.use_sudo is True
        assert config.install_timeout == 3600

    def test_from_dict(self):
        config = PhpSwitcherConfig.from_dict({
            'binary_dir': '/opt/php/bin',
            'use_sudo': False,
            'timeouts': {'install': 600, 'command': 15},
        })
        assert config.binary_dir == '/opt/php/bin'
        assert config.use_sudo is False
        assert config.install_timeout == 600
        assert config.command_timeout == 15
        assert config.index_refresh_timeout == 300

    def test_invalid_timeout_keeps_default(self, caplog):
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            config = PhpSwitcherConfig.from_dict({'timeouts': {'install': 'forever'}})
        assert config.install_timeout == 3600
        assert 'install' in caplog.text

    def test_non_mapping_timeouts(self, caplog):
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            config = PhpSwitcherConfig.from_dict({'timeouts': 30})
        assert config.install_timeout == 3600
        assert config.command_timeout == 60
        assert 'timeouts' in caplog.text

    def test_string_booleans_are_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            config = PhpSwitcherConfig.from_dict({'use_sudo': 'false', 'verify_formula': 0})
        assert config.use_sudo is True
        assert config.verify_formula is True
        assert 'use_sudo' in caplog.text

    def test_unknown_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            PhpSwitcherConfig.from_dict({'colour': 'blue'})
        assert 'colour' in caplog.text

    def test_round_trip_through_yaml(self, isolated_home):
        config = PhpSwitcherConfig(alternatives_group='php-cli', verify_formula=False)
        data = yaml.safe_load(yaml.safe_dump(config.to_dict()))
        loaded = PhpSwitcherConfig.from_dict(data)
        assert loaded.alternatives_group == 'php-cli'
        assert loaded.verify_formula is False

    def test_marker_under_state_dir(self, isolated_home):
        assert get_state_dir() == isolated_home
        assert PhpSwitcherConfig().active_marker_path == isolated_home / 'active_version'


class TestConfigManager:
    """Test config file discovery and loading"""

    def test_no_config(self, tmp_path, isolated_home):
        assert ConfigManager.load_config(tmp_path / 'missing.yml') == PhpSwitcherConfig()

    def test_find_project_config_walking_up(self, tmp_path, isolated_home):
        (tmp_path / '.phpswitcher.yml').write_text('binary_dir: /opt/bin\n')
        nested = tmp_path / 'a' / 'b'
        nested.mkdir(parents=True)
        assert ConfigManager.find_config(nested) == (tmp_path / '.phpswitcher.yml').resolve()

    def test_env_var_wins(self, tmp_path, isolated_home, monkeypatch):
        explicit = tmp_path / 'explicit.yml'
        monkeypatch.setenv('PHPSWITCHER_CONFIG', str(explicit))
        (tmp_path / '.phpswitcher.yml').write_text('')
        assert ConfigManager.find_config(tmp_path) == explicit

    def test_global_config(self, tmp_path, isolated_home):
        isolated_home.mkdir()
        (isolated_home / 'config.yml').write_text('')
        start = tmp_path / 'project'
        start.mkdir()
        assert ConfigManager.find_config(start) == isolated_home / 'config.yml'

    def test_malformed_yaml_uses_defaults(self, tmp_path, caplog):
        path = tmp_path / 'bad.yml'
        path.write_text('timeouts: [install\n')
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            config = ConfigManager.load_config(path)
        assert config == PhpSwitcherConfig()
        assert 'Failed to load config' in caplog.text

    def test_undecodable_config_uses_defaults(self, tmp_path, caplog):
        path = tmp_path / 'latin1.yml'
        path.write_bytes(b'binary_dir: /opt/caf\xe9\n')
        with caplog.at_level(logging.WARNING, logger='phpswitcher.config'):
            assert ConfigManager.load_config(path) == PhpSwitcherConfig()
        assert 'Failed to load config' in caplog.text

    def test_non_mapping_uses_defaults(self, tmp_path):
        path = tmp_path / 'list.yml'
        path.write_text('- a\n- b\n')
        assert ConfigManager.load_config(path) == PhpSwitcherConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / 'nested' / 'config.yml'
        assert ConfigManager.save_config(PhpSwitcherConfig(package_prefix='php-zts'), path)
        assert ConfigManager.load_config(path).package_prefix == 'php-zts'


class TestActiveVersionMarker:
    """Test the active version marker file"""

    def test_absent(self, tmp_path):
        assert ActiveVersionMarker(tmp_path / 'active_version').read() is None

    def test_write_then_read(self, tmp_path):
        marker = ActiveVersionMarker(tmp_path / 'state' / 'active_version')
        assert marker.write('8.2')
        assert marker.read() == '8.2'
        assert (tmp_path / 'state' / 'active_version').read_text() == '8.2\n'

    def test_empty(self, tmp_path):
        path = tmp_path / 'active_version'
        path.write_text('  \n')
        assert ActiveVersionMarker(path).read() is None

    def test_unwritable(self, tmp_path, caplog):
        blocker = tmp_path / 'file'
        blocker.write_text('')
        marker = ActiveVersionMarker(Path(blocker) / 'active_version')
        with caplog.at_level(logging.WARNING, logger='phpswitcher.marker'):
            assert marker.write('8.1') is False
        assert 'Could not write' in caplog.text

    def test_undecodable(self, tmp_path):
        path = tmp_path / 'active_version'
        path.write_bytes(b'\xff\xfe')
        assert ActiveVersionMarker(path).read() is None
