#!/usr/bin/env -S python3 -B -u
"""
Configuration loader for the reachability tester.

Configuration file location precedence:
1. Explicit path (--config)
2. Environment variable REACHTEST_CONF (if set)
3. ~/reachtest.yaml (user's home directory)
4. ./reachtest.yaml (current directory)

Values from the first file found are deep-merged into DEFAULT_CONFIG,
then environment variable overrides are applied. Section shapes and
numeric values are checked; anything unusable raises ConfigurationError.
"""

import copy
import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class ReachTestConfig:
    """Configuration manager for reachtest."""

    DEFAULT_CONFIG = {
        'ssh': {
            'user': None,
            'key': None,
            'connect_timeout': 5,
            'options': {
                'BatchMode': 'yes',
                'StrictHostKeyChecking': 'no',
            },
        },
        'reachability': {
            'command': 'hostname',
            'timeout': 10,
        },
        'probe': {
            'tcp_timeout': 3,
            'dns_timeout': 2,
            'dns_default_record': 'www.google.com',
            'command_timeout': 30,
            'nc_command': 'nc',
            'dig_command': 'dig',
        },
        'traceroute': {
            'timeout': 90,
            'max_hops': 30,
            'traceroute_command': 'traceroute',
            'tcptraceroute_command': 'tcptraceroute',
        },
        'parallelization': {
            'jobs': 1,
        },
        'output': {
            'color': True,
        },
    }

    NUMERIC_KEYS = {
        ('ssh', 'connect_timeout'): int,
        ('reachability', 'timeout'): float,
        ('probe', 'tcp_timeout'): int,
        ('probe', 'dns_timeout'): int,
        ('probe', 'command_timeout'): float,
        ('traceroute', 'timeout'): float,
        ('traceroute', 'max_hops'): int,
        ('parallelization', 'jobs'): int,
    }

    def __init__(self, config_path: Optional[str] = None, load_files: bool = True):
        """
        Initialize configuration.

        Args:
            config_path: Optional path to configuration file. Unlike the
                standard locations, an explicit path must exist.
            load_files: When False, only defaults and environment
                overrides are used
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.config_path = config_path

        if load_files and config_path:
            if not Path(config_path).exists():
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    config_file=config_path
                )
            self._load_from_file(config_path)
        elif load_files:
            self._load_from_standard_locations()

        self._validate_sections()
        self._apply_env_overrides()
        self._validate_values()

        logger.debug(f"reachtest config loaded from {self.config_path or 'defaults'}: "
                     f"jobs={self.jobs}, connect_timeout={self.connect_timeout}")

    def _load_from_file(self, config_path: str):
        """Load configuration from specified file."""
        try:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, IOError) as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            raise ConfigurationError(
                f"Invalid configuration file: {e}",
                config_file=config_path,
                cause=e
            )

        if not isinstance(file_config, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_file=config_path
            )

        self._merge_config(file_config)
        logger.info(f"Loaded reachtest config from {config_path}")

    def _load_from_standard_locations(self):
        """Load configuration from the first existing standard location."""
        config_locations = []

        if 'REACHTEST_CONF' in os.environ:
            config_locations.append(os.environ['REACHTEST_CONF'])

        config_locations.append(str(Path.home() / 'reachtest.yaml'))
        config_locations.append('reachtest.yaml')

        for config_path in config_locations:
            if not Path(config_path).exists():
                continue
            self._load_from_file(config_path)
            self.config_path = config_path
            break

    def _merge_config(self, new_config: Dict[str, Any]):
        """Recursively merge new configuration into existing."""
        def merge_dict(base: dict, update: dict):
            for key, value in update.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    merge_dict(base[key], value)
                else:
                    base[key] = value

        merge_dict(self.config, new_config)

    def _validate_sections(self):
        """Every known section, and ssh.options, must still be a mapping."""
        for section in self.DEFAULT_CONFIG:
            if not isinstance(self.config.get(section), dict):
                raise ConfigurationError(
                    f"Section '{section}' must be a mapping, "
                    f"got {type(self.config.get(section)).__name__}",
                    config_file=self.config_path
                )

        options = self.config['ssh'].get('options')
        if options is None:
            self.config['ssh']['options'] = {}
        elif not isinstance(options, dict):
            raise ConfigurationError("ssh.options must be a mapping of ssh -o options",
                                     config_file=self.config_path)

    def _validate_values(self):
        """Convert numeric settings in place; reject values that are not numbers."""
        for (section, key), converter in self.NUMERIC_KEYS.items():
            value = self.config[section].get(key)
            try:
                # bool is an int subclass; "timeout: yes" is not a number
                if isinstance(value, bool):
                    raise TypeError(value)
                number = converter(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"{section}.{key} must be a number, got {value!r}",
                    config_file=self.config_path,
                    cause=e
                )
            if number <= 0 and (section, key) != ('parallelization', 'jobs'):
                raise ConfigurationError(
                    f"{section}.{key} must be greater than zero, got {value!r}",
                    config_file=self.config_path
                )
            self.config[section][key] = number

        color = self.config['output'].get('color')
        if isinstance(color, str):
            self.config['output']['color'] = self._parse_bool(color)

    def _apply_env_overrides(self):
        """Apply environment variable overrides."""
        env_mappings = {
            'REACHTEST_SSH_USER': ('ssh', 'user', str),
            'REACHTEST_SSH_KEY': ('ssh', 'key', str),
            'REACHTEST_CONNECT_TIMEOUT': ('ssh', 'connect_timeout', int),
            'REACHTEST_JOBS': ('parallelization', 'jobs', int),
            'REACHTEST_COLOR': ('output', 'color', self._parse_bool),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            if env_var in os.environ:
                try:
                    value = converter(os.environ[env_var])
                    self.config[section][key] = value
                    logger.debug(f"Applied env override: {env_var} -> {section}.{key}={value}")
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(f"Invalid env variable {env_var}: {e}")

    def _parse_bool(self, value: str) -> bool:
        """Parse boolean from string."""
        return value.lower() in ('true', '1', 'yes', 'on')

    def override(self, section: str, key: str, value: Any):
        """Set a single value, typically from a command-line option."""
        if value is not None:
            self.config[section][key] = value

    # Convenience properties
    @property
    def ssh_config(self) -> Dict[str, Any]:
        """Get ssh configuration."""
        return self.config['ssh']

    @property
    def connect_timeout(self) -> int:
        """Get ssh connect timeout in seconds."""
        return int(self.config['ssh']['connect_timeout'])

    @property
    def reachability_config(self) -> Dict[str, Any]:
        """Get reachability check configuration."""
        return self.config['reachability']

    @property
    def probe_config(self) -> Dict[str, Any]:
        """Get TCP/DNS probe configuration."""
        return self.config['probe']

    @property
    def traceroute_config(self) -> Dict[str, Any]:
        """Get traceroute escalation configuration."""
        return self.config['traceroute']

    @property
    def jobs(self) -> int:
        """Get number of parallel probe workers."""
        return max(1, int(self.config['parallelization']['jobs']))

    @property
    def color(self) -> bool:
        """Check if coloured output is enabled."""
        return bool(self.config['output']['color'])
