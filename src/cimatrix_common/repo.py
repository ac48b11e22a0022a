"""Repository root detection."""

from pathlib import Path

REPO_MARKERS = (".cimatrix.yaml", ".git")


def detect_repo_root(start: Path | None = None) -> Path:
    """Return the nearest ancestor of ``start`` containing a repo marker.

    Falls back to ``start`` (default: the current directory) when no marker
    is found.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in REPO_MARKERS):
            return candidate
    return origin
