"""Fixtures for CLI unit tests."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner():
    """Provide Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture(autouse=True)
def auto_mock_repo_root(tmp_path: Path):
    """Point repo detection and user config at a temporary directory.

    Keeps the developer's own ``.cimatrix.yaml`` and
    ``~/.config/cimatrix/config.yaml`` out of CLI unit tests.
    """
    with (
        patch("cimatrix_cli.cli.detect_repo_root", return_value=tmp_path),
        patch(
            "cimatrix_common.config.project.get_user_config_path",
            return_value=tmp_path / "user-config.yaml",
        ),
        patch(
            "cimatrix_cli.commands.matrix.detect_host_facts",
            return_value={"os": "Linux", "arch": "X64"},
        ),
    ):
        yield tmp_path


@pytest.fixture(autouse=True)
def restore_test_logging():
    """Undo logger configuration done by -v / --log-level invocations."""
    yield
    from tests._conftest.environment import configure_test_logging

    configure_test_logging()
