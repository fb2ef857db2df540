"""Ident.Agency CLI -- login, fragments, and local unlock credentials."""

from importlib.metadata import PackageNotFoundError as _PackageNotFoundError
from importlib.metadata import version as _dist_version
from pathlib import Path as _Path

def _read_version() -> str:
    """Read version from the repo-level VERSION file, else the installed metadata."""
    for parent in _Path(__file__).resolve().parents:
        candidate = parent / "VERSION"
        if candidate.is_file():
            return candidate.read_text().strip()
    try:
        return _dist_version("identa-cli")
    except _PackageNotFoundError:
        return "0.0.0"

__version__ = _read_version()
