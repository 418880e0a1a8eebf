"""
Command-line option resolution.

Turns raw flag values into a validated QueryOptions, resolving the manifest
path the same way regardless of how the flags were parsed.
"""

import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .cli_config import CONVENTIONAL_FILENAME, ComprehensiveConfig, get_config
from .error_handling import ManifestPathError, UsageError


@dataclass
class QueryOptions:
    """Everything a single lookup needs."""

    modfile: str
    patterns: List[str] = field(default_factory=list)
    only_version: bool = False
    show_help: bool = False
    show_version: bool = False
    output_format: str = "text"
    separator: str = " "
    fail_on_missing: bool = True


def resolve_modfile_path(modfile: str) -> str:
    """
    Resolve a -modfile value to the go.mod file it designates.

    Values ending in the conventional filename are returned untouched so
    that read errors surface from the loader. Anything else must be an
    existing directory, which gets the conventional filename appended.

    Raises:
        ManifestPathError: If the path cannot be stat'ed or is not a directory
    """
    if modfile.endswith(CONVENTIONAL_FILENAME):
        return modfile

    path = Path(modfile)
    try:
        mode = path.stat().st_mode
    except OSError as e:
        raise ManifestPathError("could not stat manifest path", e) from e

    if not stat.S_ISDIR(mode):
        raise ManifestPathError(f"invalid manifest path: {modfile}")

    return str(path / CONVENTIONAL_FILENAME)


def build_options(
    modfile: Optional[str],
    patterns: Sequence[str],
    only_version: bool = False,
    show_help: bool = False,
    show_version: bool = False,
    output_format: Optional[str] = None,
    config: Optional[ComprehensiveConfig] = None,
) -> QueryOptions:
    """
    Validate raw flag values and build QueryOptions.

    Help and version requests short-circuit every other check.

    Raises:
        UsageError: If no pattern is given or the manifest path is empty
        ManifestPathError: If the manifest path cannot be resolved
    """
    config = config or get_config()
    options = QueryOptions(
        modfile=config.query.default_modfile if modfile is None else modfile,
        patterns=list(patterns),
        only_version=only_version,
        show_help=show_help,
        show_version=show_version,
        output_format=(output_format or config.query.output_format).lower(),
        separator=config.query.separator,
        fail_on_missing=config.query.fail_on_missing,
    )

    if show_help or show_version:
        return options

    if not options.patterns:
        raise UsageError("no package provided")

    if options.modfile == "":
        raise UsageError("manifest path not provided")

    options.modfile = resolve_modfile_path(options.modfile)
    return options
