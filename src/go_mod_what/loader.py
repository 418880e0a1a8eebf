"""
Manifest loading: read a go.mod file and parse it.
"""

from typing import List

from . import modfile
from .dependency import ModFile, Requirement
from .error_handling import ManifestParseError, ManifestReadError
from .structured_logging import log_manifest_loaded


def read_manifest(path: str) -> bytes:
    """Read the raw manifest bytes, releasing the handle on every path."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ManifestReadError("failed to read manifest file", e) from e


def load_manifest(path: str) -> ModFile:
    """
    Read and parse a go.mod file.

    Args:
        path: Path to the go.mod file

    Returns:
        ModFile: Parsed manifest; versions are in the canonical form the parser records

    Raises:
        ManifestReadError: If the file cannot be read
        ManifestParseError: If the file is not valid go.mod syntax
    """
    data = read_manifest(path)

    try:
        parsed = modfile.parse(path, data)
    except modfile.ModfileSyntaxError as e:
        raise ManifestParseError("failed to parse manifest file", e) from e

    log_manifest_loaded(path, len(parsed.requires), parsed.module)
    return parsed


def load_requirements(path: str) -> List[Requirement]:
    """Return the requirements of a go.mod file in declaration order."""
    return load_manifest(path).requires
