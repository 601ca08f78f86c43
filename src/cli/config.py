"""YAML configuration loading and validation.

This module handles loading and saving repository settings from
.github-cms/config.yaml. Environment variables override file values so that
the CLI can also run without a configuration file.
"""

import os
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError, ConfigNotFoundError, FilesystemError
from .models import RepositoryConfig

DEFAULT_CONFIG_PATH = '.github-cms/config.yaml'


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        owner: "octo"
        repo: "site"
        branch: "main"
        api_url: "https://api.github.com"
        root_path: "content"
        placeholder_name: ".gitkeep"
        max_workers: 4
        timeout: 30

    Environment overrides: GITHUB_OWNER, GITHUB_REPO, GITHUB_BRANCH.
    """

    # Required config fields
    REQUIRED_FIELDS = ('owner', 'repo')

    # Environment variables overriding file values
    ENV_OVERRIDES = {
        'owner': 'GITHUB_OWNER',
        'repo': 'GITHUB_REPO',
        'branch': 'GITHUB_BRANCH',
    }

    # Default values for optional fields
    DEFAULTS = {
        'branch': None,
        'api_url': 'https://api.github.com',
        'root_path': '',
        'placeholder_name': '.placeholder',
        'max_workers': 1,
        'timeout': 30,
    }

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> RepositoryConfig:
        """Load configuration from a YAML file and the environment.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            RepositoryConfig with parsed configuration

        Raises:
            ConfigNotFoundError: If the file is missing and the environment
                does not provide owner and repo
            FilesystemError: If the file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        config_dict = cls._read_file(config_path)
        if config_dict is None:
            if not all(os.environ.get(cls.ENV_OVERRIDES[name]) for name in cls.REQUIRED_FIELDS):
                raise ConfigNotFoundError(config_path)
            config_dict = {}

        for name, env_var in cls.ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                config_dict[name] = value

        return cls._parse_config(config_dict)

    @classmethod
    def _read_file(cls, config_path: str) -> Optional[Dict[str, Any]]:
        """Read and parse the YAML file (None if it does not exist)."""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            return {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return config_dict

    @classmethod
    def save(cls, config_path: str, config: RepositoryConfig) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            config: RepositoryConfig to save

        Raises:
            FilesystemError: If file cannot be written
        """
        config_dict = {
            'owner': config.owner,
            'repo': config.repo,
        }
        # Only include optional fields if they have non-default values
        for name, default in cls.DEFAULTS.items():
            value = getattr(config, name)
            if value != default:
                config_dict[name] = value

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    config_dir,
                    'create_directory',
                    str(e)
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(
                config_path,
                'write',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'write',
                str(e)
            )

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> RepositoryConfig:
        """Validate a configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        missing_fields = [name for name in cls.REQUIRED_FIELDS if not config_dict.get(name)]
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(missing_fields)}"
            )

        values = dict(cls.DEFAULTS)
        values.update({k: v for k, v in config_dict.items() if v is not None})

        unknown = set(values) - set(cls.DEFAULTS) - set(cls.REQUIRED_FIELDS)
        if unknown:
            raise ConfigError(
                f"Unknown fields: {', '.join(sorted(unknown))}"
            )

        for name in ('owner', 'repo', 'api_url', 'root_path', 'placeholder_name'):
            if not isinstance(values[name], str):
                raise ConfigError(
                    f"Field '{name}' must be a string, got {type(values[name]).__name__}",
                    name
                )
        if values['branch'] is not None and not isinstance(values['branch'], str):
            raise ConfigError(
                f"Field 'branch' must be a string, got {type(values['branch']).__name__}",
                'branch'
            )

        if isinstance(values['max_workers'], bool) or not isinstance(values['max_workers'], int):
            raise ConfigError("Field 'max_workers' must be an integer", 'max_workers')
        if values['max_workers'] < 1:
            raise ConfigError(
                f"Field 'max_workers' must be at least 1, got {values['max_workers']}",
                'max_workers'
            )

        try:
            timeout = float(values['timeout'])
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Field 'timeout' must be a number: {str(e)}", 'timeout')
        if timeout <= 0:
            raise ConfigError(f"Field 'timeout' must be positive, got {timeout}", 'timeout')

        if not values['placeholder_name'].strip() or '/' in values['placeholder_name']:
            raise ConfigError(
                "Field 'placeholder_name' must be a plain file name",
                'placeholder_name'
            )

        return RepositoryConfig(
            owner=values['owner'],
            repo=values['repo'],
            branch=values['branch'],
            api_url=values['api_url'],
            root_path=values['root_path'].strip('/'),
            placeholder_name=values['placeholder_name'],
            max_workers=values['max_workers'],
            timeout=timeout,
        )
