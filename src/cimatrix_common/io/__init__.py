"""File IO helpers."""

from cimatrix_common.io.files import (
    FileOperationError,
    atomic_write,
    ensure_dir,
    safe_read_yaml,
)

__all__ = [
    "FileOperationError",
    "atomic_write",
    "ensure_dir",
    "safe_read_yaml",
]
