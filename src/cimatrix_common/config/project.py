"""Project/user YAML configuration loading for cimatrix.

This module locates, loads and deep-merges configuration from the user
(~/.config/cimatrix/config.yaml) and project (.cimatrix.yaml) files on top of
the built-in defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from cimatrix_common.io import safe_read_yaml
from cimatrix_common.io.files import FileOperationError
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries in place and return ``base``.

    Values from ``override`` take precedence. Nested dicts are merged
    recursively; other values are replaced.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def default_config() -> dict[str, Any]:
    """Return the shared default configuration structure."""
    return {
        "defaults": {
            "log_level": "INFO",
            "format": "table",
        },
        "matrix": {
            "file": ".github/matrix.yaml",
            "workflow_job": None,
        },
        "host": {
            "detect": True,
            "facts": {},
        },
    }


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a config file, returning an empty dict when missing or unreadable."""
    try:
        if not path.exists():
            return {}
        return safe_read_yaml(path)
    except FileOperationError as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def get_user_config_path() -> Path:
    """Get path to user-level cimatrix configuration file."""
    return Path.home() / ".config" / "cimatrix" / "config.yaml"


def get_project_config_path(repo_root: Path) -> Path:
    """Get path to project-level cimatrix configuration file."""
    return repo_root / ".cimatrix.yaml"


def load_merged_config(repo_root: Path) -> dict[str, Any]:
    """Load default + user + project YAML config into a single dict."""
    cfg = default_config()

    user_cfg = load_yaml(get_user_config_path())
    if user_cfg:
        deep_merge(cfg, user_cfg)

    project_cfg = load_yaml(get_project_config_path(repo_root))
    if project_cfg:
        deep_merge(cfg, project_cfg)

    return cfg
