"""Migration configuration loading and validation.

Settings come from three layers, later ones winning:

    1. an optional YAML file
    2. environment variables (a .env file is loaded with python-dotenv)
    3. command-line overrides

Configuration file structure:
    export_path: ./export
    destination_page_id: "0123456789abcdef0123456789abcdef"
    export_origin_domain: wiki.example.com
    asset_dirs: [uploads, public]
    page_limit: 500
    max_table_width: 50
    scheduler:
      max_concurrent: 3
      max_starts_per_window: 10
      window_ms: 10000
    assets:
      mode: upload
      bucket: wiki-assets
      region: eu-west-1
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from src.asset_store.s3_uploader import ASSET_MODES, DEFAULT_PUBLIC_URL_TEMPLATE
from src.content_transformer.attachments import DEFAULT_ASSET_DIRS
from src.content_transformer.tables import DEFAULT_MAX_TABLE_WIDTH
from src.tree_walker.walker import DEFAULT_PAGE_LIMIT
from .errors import ConfigError, ConfigNotFoundError
from .models import AssetConfig, MigrationConfig, SchedulerConfig


class ConfigLoader:
    """Builds a validated MigrationConfig from YAML, environment and overrides."""

    # Environment variable -> flat setting name
    ENVIRONMENT = {
        'MIGRATION_ROOT': 'export_path',
        'NOTION_DESTINATION_PAGE_ID': 'destination_page_id',
        'EXPORT_ORIGIN_DOMAIN': 'export_origin_domain',
        'AWS_S3_BUCKET': 'assets.bucket',
        'AWS_REGION': 'assets.region',
        'AWS_ENDPOINT': 'assets.endpoint_url',
        'ASSET_MODE': 'assets.mode',
    }

    REQUIRED_FIELDS = ('export_path', 'destination_page_id')

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> MigrationConfig:
        """Load the configuration.

        Args:
            config_path: YAML file to read, None to rely on the environment
            overrides: Flat settings from the command line ("scheduler.max_concurrent"
                style keys for nested values); None values are ignored

        Returns:
            Validated MigrationConfig

        Raises:
            ConfigNotFoundError: If ``config_path`` does not exist
            ConfigError: If the configuration is invalid
        """
        load_dotenv()

        settings: Dict[str, Any] = {}
        if config_path:
            settings = cls._read_yaml(config_path)

        for variable, name in cls.ENVIRONMENT.items():
            value = os.getenv(variable, '').strip()
            if value:
                cls._set(settings, name, value)

        for name, value in (overrides or {}).items():
            if value is not None:
                cls._set(settings, name, value)

        return cls._parse_config(settings)

    @classmethod
    def _read_yaml(cls, config_path: str) -> Dict[str, Any]:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )
        return config_dict

    @staticmethod
    def _set(settings: Dict[str, Any], name: str, value: Any) -> None:
        section, _, key = name.rpartition('.')
        target = settings
        if section:
            if settings.get(section) is None:
                settings[section] = {}
            target = settings[section]
            if not isinstance(target, dict):
                raise ConfigError("Section must be a dictionary", section)
        target[key] = value

    @classmethod
    def _parse_config(cls, settings: Dict[str, Any]) -> MigrationConfig:
        """Validate raw settings and build the MigrationConfig.

        Raises:
            ConfigError: If a field is missing or invalid
        """
        for name in cls.REQUIRED_FIELDS:
            if not str(settings.get(name) or '').strip():
                raise ConfigError("Required setting is missing", name)

        export_path = str(settings['export_path']).strip()
        if not Path(export_path).is_dir():
            raise ConfigError(f"Export directory does not exist: {export_path}", 'export_path')

        origin_domain = settings.get('export_origin_domain')
        origin_domain = str(origin_domain).strip() if origin_domain else None

        config = MigrationConfig(
            export_path=export_path,
            destination_page_id=str(settings['destination_page_id']).strip(),
            export_origin_domain=origin_domain or None,
            asset_dirs=cls._parse_asset_dirs(settings.get('asset_dirs')),
            page_limit=cls._positive_int(settings, 'page_limit', DEFAULT_PAGE_LIMIT),
            max_table_width=cls._positive_int(settings, 'max_table_width', DEFAULT_MAX_TABLE_WIDTH),
            scheduler=cls._parse_scheduler(settings.get('scheduler') or {}),
            assets=cls._parse_assets(settings.get('assets') or {}),
        )
        return config

    @classmethod
    def _parse_asset_dirs(cls, raw: Any) -> List[str]:
        if raw is None:
            return list(DEFAULT_ASSET_DIRS)
        if isinstance(raw, str):
            raw = [part.strip() for part in raw.split(',')]
        if not isinstance(raw, list):
            raise ConfigError("Must be a list of directory names", 'asset_dirs')
        return [str(name) for name in raw if str(name).strip()]

    @classmethod
    def _parse_scheduler(cls, raw: Dict[str, Any]) -> SchedulerConfig:
        if not isinstance(raw, dict):
            raise ConfigError("Must be a dictionary", 'scheduler')

        defaults = SchedulerConfig()
        window_cap = raw.get('max_starts_per_window', defaults.max_starts_per_window)
        if window_cap is not None:
            window_cap = cls._int(window_cap, 'scheduler.max_starts_per_window')
            if window_cap < 0:
                raise ConfigError(
                    f"Must be at least 0, got {window_cap}", 'scheduler.max_starts_per_window'
                )

        return SchedulerConfig(
            max_concurrent=cls._positive_int(raw, 'max_concurrent', defaults.max_concurrent, 'scheduler'),
            max_starts_per_window=window_cap or None,
            window_ms=cls._positive_int(raw, 'window_ms', defaults.window_ms, 'scheduler'),
        )

    @classmethod
    def _parse_assets(cls, raw: Dict[str, Any]) -> AssetConfig:
        if not isinstance(raw, dict):
            raise ConfigError("Must be a dictionary", 'assets')

        mode = str(raw.get('mode') or 'upload').strip()
        if mode not in ASSET_MODES:
            raise ConfigError(
                f"Unknown asset mode '{mode}', expected one of {', '.join(ASSET_MODES)}",
                'assets.mode'
            )

        def optional(key: str) -> Optional[str]:
            value = raw.get(key)
            if value is None:
                return None
            return str(value).strip() or None

        assets = AssetConfig(
            mode=mode,
            bucket=optional('bucket'),
            region=optional('region'),
            endpoint_url=optional('endpoint_url'),
            original_bucket=optional('original_bucket'),
            public_url_template=optional('public_url_template') or DEFAULT_PUBLIC_URL_TEMPLATE,
        )
        if assets.enabled and not assets.region and not assets.endpoint_url:
            raise ConfigError("A region or endpoint is required with a bucket", 'assets.region')
        return assets

    @classmethod
    def _positive_int(
        cls,
        raw: Dict[str, Any],
        key: str,
        default: int,
        section: Optional[str] = None,
    ) -> int:
        field_name = f"{section}.{key}" if section else key
        value = cls._int(raw.get(key, default), field_name)
        if value < 1:
            raise ConfigError(f"Must be at least 1, got {value}", field_name)
        return value

    @staticmethod
    def _int(value: Any, field_name: str) -> int:
        try:
            return int(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Must be an integer, got {value!r}", field_name)
