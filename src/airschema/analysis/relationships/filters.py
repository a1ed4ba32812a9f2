"""Column-name filters for derived (non-relational) fields.

Imported tables carry lookup, rollup and formula columns that hold
identifier-shaped values copied from linked records. They are excluded
from candidate generation by name.

Pattern syntax:
- a bare word matches when it appears anywhere in the name ("rollup")
- a pattern with glob characters must match the whole name ("*_lookup")

Matching is case-insensitive. Names on the allowlist are never excluded.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase

DEFAULT_DERIVED_FIELD_PATTERNS: tuple[str, ...] = (
    "lookup",
    "*_lookup",
    "lookup_*",
    "rollup",
    "formula",
    "calculated",
    "computed",
    "derived",
)

_GLOB_CHARS = frozenset("*?[")


class DerivedFieldFilter:
    """Predicate telling whether a column name denotes a derived field."""

    def __init__(
        self,
        patterns: Iterable[str] = DEFAULT_DERIVED_FIELD_PATTERNS,
        allowlist: Iterable[str] = (),
    ):
        self.patterns = tuple(p.lower() for p in patterns)
        self.allowlist = frozenset(name.lower() for name in allowlist)

    def is_derived(self, column_name: str) -> bool:
        name = column_name.lower()
        if name in self.allowlist:
            return False
        for pattern in self.patterns:
            if _GLOB_CHARS & set(pattern):
                if fnmatchcase(name, pattern):
                    return True
            elif pattern in name:
                return True
        return False

    def __call__(self, column_name: str) -> bool:
        return self.is_derived(column_name)

    def __repr__(self) -> str:
        return f"DerivedFieldFilter(patterns={list(self.patterns)}, allowlist={sorted(self.allowlist)})"
