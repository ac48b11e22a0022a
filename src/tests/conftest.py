"""Root pytest configuration and shared fixtures for the cimatrix test suite.

Pytest hooks must remain here for discovery; setup helpers live in the
_conftest package.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Imports intentionally after path setup
from tests._conftest.environment import configure_test_logging  # noqa: E402

configure_test_logging()

ASSETS_DIR = Path(__file__).parent / "_assets"


@pytest.fixture(autouse=True)
def isolated_logging_env(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Keep log files out of the user's home directory and unset CI host facts."""
    monkeypatch.setenv("CIMATRIX_LOG_DIR", str(tmp_path_factory.getbasetemp() / "log"))
    monkeypatch.setenv("CIMATRIX_FILE_LOGGING", "0")
    for name in ("CIMATRIX_LOG_LEVEL", "CIMATRIX_CONSOLE_LOGGING", "RUNNER_OS", "RUNNER_ARCH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def assets_dir() -> Path:
    """Directory holding matrix documents and workflows used by tests."""
    return ASSETS_DIR


@pytest.fixture
def burn_workflow_path(assets_dir: Path) -> Path:
    return assets_dir / "burn_test_workflow.yml"


@pytest.fixture
def example_matrix_path(assets_dir: Path) -> Path:
    return assets_dir / "matrix.yaml"
