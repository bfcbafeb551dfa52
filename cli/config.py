"""
Configuration Management Module for DSS CLI

Handles hierarchical configuration loading, environment variable mapping,
profiles and validation.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path('.dss.yml'),
    Path('.dss.json'),
    Path('~/.dss/config.yml'),
    Path('~/.dss/config.json'),
]

# Environment variable prefix; DSS_<SECTION>_<KEY>
ENV_PREFIX = 'DSS_'

# Values kept verbatim instead of type-parsed
RAW_ENV_KEYS = {('admin', 'secret')}

DEFAULT_CONFIG = {
    'storage': {
        'data_dir': '~/.dss/data',
        'compressed': False,
        'backup_count': 5,
        'lock_timeout': 30.0,
    },

    'admin': {
        'secret': None,
    },

    'metadata': {
        'thumbnail_base_url': 'https://assets.dss-collection.example/tokens',
    },

    'events': {
        'audit_log': None,
    },

    'cli': {
        'output_format': 'table',
    },
}

PROFILES = {
    'production': {
        'storage': {'backup_count': 20, 'compressed': True},
    },
    'development': {
        'storage': {'data_dir': './.dss-data', 'backup_count': 0},
        'events': {'audit_log': './.dss-data/events.jsonl'},
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (production, development)
        """
        self.logger = logging.getLogger('dss-cli.config')
        self.config_file = config_file
        self.profile = profile
        self._config_cache: Optional[Dict[str, Any]] = None
        self._config_sources: List[str] = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        self._config_sources = []
        configs = [copy.deepcopy(DEFAULT_CONFIG)]
        self._config_sources.append("defaults")

        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown configuration profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")

        if self.config_file:
            path = Path(self.config_file).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {path}")
            configs.append(self._load_config_file(path))
            self._config_sources.append(f"file:{path}")
        else:
            for candidate in CONFIG_SEARCH_PATHS:
                path = candidate.expanduser()
                if path.exists():
                    configs.append(self._load_config_file(path))
                    self._config_sources.append(f"file:{path}")
                    self.logger.debug(f"Loaded config from {path}")
                    break  # First found file wins

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)
        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML or JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix in ('.yml', '.yaml'):
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unknown config file format: {path}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Map DSS_SECTION_KEY variables onto {'section': {'key': value}}."""
        env_config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            parts = key[len(ENV_PREFIX):].lower().split('_', 1)
            if len(parts) != 2 or not all(parts):
                continue
            section, option = parts
            if (section, option) not in RAW_ENV_KEYS:
                value = self._parse_env_value(value)
            env_config.setdefault(section, {})[option] = value

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool, None]:
        """Parse environment variable value to appropriate type."""
        lowered = value.lower()
        if lowered in ('true', 'yes'):
            return True
        if lowered in ('false', 'no'):
            return False
        if lowered in ('null', 'none'):
            return None

        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries; later ones win."""
        result: Dict[str, Any] = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = copy.deepcopy(value)

        return result

    def _expand_paths(self, config: Dict[str, Any]) -> None:
        """Expand ~ and environment variables in string values."""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('~' in value or '$' in value):
                config[key] = os.path.expanduser(os.path.expandvars(value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'storage.data_dir')
            default: Default value if key not found
        """
        current: Any = self.load()
        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value by dot-notation path (in memory only)."""
        config = self.load()
        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        current[keys[-1]] = value

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        storage = config.get('storage', {})
        if not storage.get('data_dir'):
            errors.append("storage.data_dir is required")
        backup_count = storage.get('backup_count')
        if not isinstance(backup_count, int) or isinstance(backup_count, bool) or backup_count < 0:
            errors.append("storage.backup_count must be a non-negative integer")
        lock_timeout = storage.get('lock_timeout')
        if not isinstance(lock_timeout, (int, float)) or isinstance(lock_timeout, bool) or lock_timeout <= 0:
            errors.append("storage.lock_timeout must be a positive number")

        output_format = config.get('cli', {}).get('output_format')
        if output_format not in ('table', 'json', 'yaml'):
            errors.append(f"Invalid output format: {output_format}")

        secret = config.get('admin', {}).get('secret')
        if secret is not None and not isinstance(secret, str):
            errors.append("admin.secret must be a string")

        return errors

    def get_sources(self) -> List[str]:
        """List of configuration sources that were loaded."""
        self.load()
        return list(self._config_sources)

    def reset(self) -> None:
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []
