"""Shared configuration utilities for cimatrix (cimatrix_common.config).

This package provides:
- project: YAML-based project/user configuration loader
"""

from .project import deep_merge, default_config, load_merged_config

__all__ = [
    "deep_merge",
    "default_config",
    "load_merged_config",
]
