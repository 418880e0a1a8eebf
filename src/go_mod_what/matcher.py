"""
Pattern matching of query patterns against requirement module paths.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

from .dependency import Requirement

WILDCARD = "*"


class MatchType(Enum):
    """Types of pattern matching."""

    EXACT = "exact"
    PREFIX = "prefix"


def classify_pattern(pattern: str) -> MatchType:
    """A single trailing wildcard makes a prefix pattern; any other `*` is literal."""
    if pattern.endswith(WILDCARD) and not pattern.endswith(WILDCARD * 2):
        return MatchType.PREFIX
    return MatchType.EXACT


def match_pattern(pattern: str, path: str) -> bool:
    """Check whether a query pattern selects the given module path."""
    if pattern == path:
        return True
    if classify_pattern(pattern) == MatchType.PREFIX:
        return path.startswith(pattern[: -len(WILDCARD)])
    return False


@dataclass(frozen=True)
class Match:
    """A requirement selected by a pattern."""

    pattern: str
    requirement: Requirement
    match_type: MatchType


@dataclass
class MatchResult:
    """Outcome of matching a pattern list against a manifest."""

    patterns: List[str]
    matches: List[Match] = field(default_factory=list)
    found: List[bool] = field(default_factory=list)

    def __post_init__(self):
        if not self.found:
            self.found = [False] * len(self.patterns)

    @property
    def missing(self) -> List[str]:
        """Patterns that matched nothing, in caller order."""
        return [p for p, f in zip(self.patterns, self.found) if not f]

    @property
    def requirements(self) -> List[Requirement]:
        """Matched requirements in output order."""
        return [m.requirement for m in self.matches]


def find_requirements(
    requirements: Iterable[Requirement], patterns: Iterable[str]
) -> MatchResult:
    """
    Match every requirement against every pattern.

    Matches are ordered by manifest position first and pattern position
    second. A requirement selected by two patterns appears once per pattern.
    """
    result = MatchResult(patterns=list(patterns))

    for requirement in requirements:
        for i, pattern in enumerate(result.patterns):
            if not match_pattern(pattern, requirement.path):
                continue

            result.found[i] = True
            result.matches.append(
                Match(pattern, requirement, classify_pattern(pattern))
            )

    return result
