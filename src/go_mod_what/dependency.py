# In src/go_mod_what/dependency.py
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Requirement:
    """A single `require` entry from a go.mod manifest."""

    path: str
    version: str
    indirect: bool = False


@dataclass
class ModFile:
    """Parsed contents of a go.mod manifest."""

    module: Optional[str] = None
    go_version: Optional[str] = None
    requires: List[Requirement] = field(default_factory=list)
