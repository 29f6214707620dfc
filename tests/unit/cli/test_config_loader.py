"""Unit tests for cli.config module."""

import pytest
from unittest.mock import patch

from src.cli.config import ConfigLoader
from src.cli.errors import ConfigError, ConfigNotFoundError
from src.notion_api.errors import FatalConfigError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from the caller's environment and .env file."""
    for variable in ConfigLoader.ENVIRONMENT:
        monkeypatch.delenv(variable, raising=False)
    with patch('src.cli.config.load_dotenv'):
        yield


@pytest.fixture
def export_dir(tmp_path):
    export = tmp_path / "export"
    export.mkdir()
    return export


def write_config(tmp_path, content):
    config_file = tmp_path / "migration.yaml"
    config_file.write_text(content)
    return str(config_file)


class TestLoad:
    """Test cases for ConfigLoader.load."""

    def test_yaml_file(self, tmp_path, export_dir):
        """A complete YAML file should populate every setting."""
        path = write_config(tmp_path, f"""
export_path: {export_dir}
destination_page_id: "abc123"
export_origin_domain: wiki.example.com
asset_dirs: [uploads]
page_limit: 20
max_table_width: 10
scheduler:
  max_concurrent: 5
  max_starts_per_window: 0
  window_ms: 2000
assets:
  mode: existing
  bucket: wiki-assets
  region: eu-west-1
  original_bucket: outline-data
""")

        config = ConfigLoader.load(path)

        assert config.export_path == str(export_dir)
        assert config.destination_page_id == "abc123"
        assert config.export_origin_domain == "wiki.example.com"
        assert config.asset_dirs == ["uploads"]
        assert config.page_limit == 20
        assert config.max_table_width == 10
        assert config.scheduler.max_concurrent == 5
        assert config.scheduler.max_starts_per_window is None
        assert config.scheduler.window_ms == 2000
        assert config.assets.mode == "existing"
        assert config.assets.enabled
        assert config.assets.original_bucket == "outline-data"

    def test_environment_only(self, monkeypatch, export_dir):
        """Environment variables should be enough without a file."""
        monkeypatch.setenv('MIGRATION_ROOT', str(export_dir))
        monkeypatch.setenv('NOTION_DESTINATION_PAGE_ID', 'page-1')
        monkeypatch.setenv('AWS_S3_BUCKET', 'bucket')
        monkeypatch.setenv('AWS_REGION', 'us-east-1')

        config = ConfigLoader.load()

        assert config.destination_page_id == "page-1"
        assert config.assets.bucket == "bucket"
        assert config.assets.region == "us-east-1"
        assert config.asset_dirs == ["uploads", "public"]
        assert config.page_limit == 500
        assert config.scheduler.max_concurrent == 3
        assert config.scheduler.max_starts_per_window == 10

    def test_precedence(self, tmp_path, monkeypatch, export_dir):
        """Overrides should beat the environment, which beats the file."""
        path = write_config(tmp_path, f"""
export_path: {export_dir}
destination_page_id: from-file
export_origin_domain: file.example.com
scheduler:
  max_concurrent: 2
""")
        monkeypatch.setenv('NOTION_DESTINATION_PAGE_ID', 'from-env')
        monkeypatch.setenv('EXPORT_ORIGIN_DOMAIN', 'env.example.com')

        config = ConfigLoader.load(path, {
            'destination_page_id': 'from-cli',
            'export_origin_domain': None,
            'scheduler.max_concurrent': 7,
        })

        assert config.destination_page_id == "from-cli"
        assert config.export_origin_domain == "env.example.com"
        assert config.scheduler.max_concurrent == 7

    def test_asset_dirs_from_comma_string(self, export_dir):
        """Asset directories may be given as a comma-separated string."""
        config = ConfigLoader.load(overrides={
            'export_path': str(export_dir),
            'destination_page_id': 'p',
            'asset_dirs': 'uploads, files',
        })
        assert config.asset_dirs == ["uploads", "files"]


class TestErrors:
    """Test cases for invalid configuration."""

    def test_missing_file(self, tmp_path):
        """A missing config file should raise ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError):
            ConfigLoader.load(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML should raise ConfigError."""
        path = write_config(tmp_path, "export_path: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigLoader.load(path)

    def test_non_dictionary_yaml(self, tmp_path):
        """A YAML list should be rejected."""
        path = write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="YAML dictionary"):
            ConfigLoader.load(path)

    def test_missing_destination(self, export_dir):
        """A missing destination page id should be reported by field."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(overrides={'export_path': str(export_dir)})
        assert exc_info.value.config_field == "destination_page_id"

    def test_missing_export_directory(self, tmp_path):
        """A non-existent export path should be rejected."""
        with pytest.raises(ConfigError, match="does not exist"):
            ConfigLoader.load(overrides={
                'export_path': str(tmp_path / "missing"),
                'destination_page_id': 'p',
            })

    @pytest.mark.parametrize("name,value", [
        ('page_limit', 0),
        ('scheduler.max_concurrent', 'many'),
        ('scheduler.window_ms', -5),
        ('scheduler.max_starts_per_window', -1),
        ('assets.mode', 'copy'),
    ])
    def test_invalid_values(self, export_dir, name, value):
        """Invalid numbers and modes should raise ConfigError."""
        with pytest.raises(ConfigError):
            ConfigLoader.load(overrides={
                'export_path': str(export_dir),
                'destination_page_id': 'p',
                name: value,
            })

    def test_bucket_requires_region_or_endpoint(self, export_dir):
        """A bucket without a region or endpoint should be rejected."""
        with pytest.raises(ConfigError, match="region or endpoint"):
            ConfigLoader.load(overrides={
                'export_path': str(export_dir),
                'destination_page_id': 'p',
                'assets.bucket': 'b',
            })

    def test_config_errors_are_fatal(self):
        """ConfigError should be a FatalConfigError."""
        assert issubclass(ConfigError, FatalConfigError)
