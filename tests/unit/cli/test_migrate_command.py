"""Unit tests for cli.migrate_command module."""

import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from src.cli.config import ConfigLoader
from src.cli.migrate_command import MigrateCommand
from src.cli.models import AssetConfig, ExitCode, MigrationConfig
from src.notion_api.errors import InvalidCredentialsError
from src.tree_walker.models import MigrationSummary


class FakeAPIResponseError(Exception):
    """Stands in for notion-client's APIResponseError."""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for variable in ConfigLoader.ENVIRONMENT:
        monkeypatch.delenv(variable, raising=False)
    with patch('src.cli.config.load_dotenv'):
        yield


@pytest.fixture
def overrides(tmp_path):
    export = tmp_path / "export"
    export.mkdir()
    (export / "a.md").write_text("Hello")
    return {'export_path': str(export), 'destination_page_id': 'root'}


def create_command(client=None, token="secret"):
    """Create a MigrateCommand with mocked output, credentials and client."""
    authenticator = Mock()
    authenticator.get_token.return_value = token
    client = client or create_client()
    command = MigrateCommand(
        output_handler=MagicMock(),
        authenticator=authenticator,
        client_factory=Mock(return_value=client),
    )
    return command, client


def create_client():
    client = Mock()
    client.verify_access = AsyncMock(return_value={"object": "user"})
    client.aclose = AsyncMock()
    client.rate_limiter.throughput.return_value = 0.0
    return client


class TestRun:
    """Test cases for MigrateCommand.run."""

    def test_success_runs_walker_and_prints_summary(self, overrides):
        """A successful run should print the summary and exit with SUCCESS."""
        command, client = create_command()
        summary = MigrationSummary(documents_total=1)

        with patch('src.cli.migrate_command.TreeWalker') as mock_walker:
            mock_walker.return_value.run = AsyncMock(return_value=summary)
            exit_code = command.run(overrides=overrides)

        assert exit_code == ExitCode.SUCCESS
        command.output_handler.print_summary.assert_called_once_with(summary)
        kwargs = mock_walker.call_args.kwargs
        assert kwargs["destination_id"] == "root"
        assert kwargs["page_limit"] == 500
        client.aclose.assert_awaited_once()

    def test_rate_limiter_uses_scheduler_settings(self, overrides):
        """The client factory should receive a limiter built from the config."""
        command, _ = create_command()
        overrides['scheduler.max_concurrent'] = 5

        with patch('src.cli.migrate_command.TreeWalker') as mock_walker:
            mock_walker.return_value.run = AsyncMock(return_value=MigrationSummary())
            command.run(overrides=overrides)

        token, limiter = command.client_factory.call_args.args
        assert token == "secret"
        assert limiter._max_concurrent == 5

    def test_config_error_returns_config_error(self):
        """Invalid configuration should exit with CONFIG_ERROR."""
        command, _ = create_command()

        assert command.run(overrides={'destination_page_id': 'root'}) == ExitCode.CONFIG_ERROR
        command.client_factory.assert_not_called()

    def test_missing_token_returns_auth_error(self, overrides):
        """A missing token should exit with AUTH_ERROR."""
        command, _ = create_command()
        command.authenticator.get_token.side_effect = InvalidCredentialsError("missing")

        assert command.run(overrides=overrides) == ExitCode.AUTH_ERROR

    def test_rejected_token_returns_auth_error(self, overrides):
        """A token rejected by Notion should exit with AUTH_ERROR and close the client."""
        client = create_client()
        client.verify_access.side_effect = FakeAPIResponseError("API token is invalid.")
        command, _ = create_command(client=client)

        with patch('src.cli.migrate_command.APIResponseError', FakeAPIResponseError):
            exit_code = command.run(overrides=overrides)

        assert exit_code == ExitCode.AUTH_ERROR
        client.aclose.assert_awaited_once()

    def test_unexpected_error_returns_general_error(self, overrides):
        """Unexpected exceptions should exit with GENERAL_ERROR."""
        command, client = create_command()

        with patch('src.cli.migrate_command.TreeWalker') as mock_walker:
            mock_walker.return_value.run = AsyncMock(side_effect=RuntimeError("boom"))
            exit_code = command.run(overrides=overrides)

        assert exit_code == ExitCode.GENERAL_ERROR
        command.output_handler.error.assert_called_with("Unexpected error: boom")
        client.aclose.assert_awaited_once()


class TestBuildTransformer:
    """Test cases for transformer assembly."""

    def test_no_bucket_disables_rehoming(self, tmp_path):
        """Without a bucket, attachments are left alone with a warning."""
        command, _ = create_command()
        config = MigrationConfig(export_path=str(tmp_path), destination_page_id="root")

        transformer = command._build_transformer(config)

        assert transformer._rehomer is None
        command.output_handler.warning.assert_called_once()

    @patch('src.cli.migrate_command.S3AssetStore')
    def test_bucket_enables_rehoming(self, mock_store, tmp_path):
        """A configured bucket should build the S3 asset store."""
        command, _ = create_command()
        config = MigrationConfig(
            export_path=str(tmp_path),
            destination_page_id="root",
            export_origin_domain="wiki.example.com",
            assets=AssetConfig(bucket="wiki-assets", region="eu-west-1", mode="existing"),
        )

        transformer = command._build_transformer(config)

        assert transformer._rehomer is not None
        kwargs = mock_store.call_args.kwargs
        assert kwargs["bucket"] == "wiki-assets"
        assert kwargs["mode"] == "existing"
        assert transformer._link_resolver.is_internal("https://wiki.example.com/doc/a")
