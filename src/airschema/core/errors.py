"""Exceptions that propagate to callers.

Only fatal conditions are raised. Per-item failures (scoring, cardinality,
constraint creation) are returned as data.
"""

from __future__ import annotations


class IntrospectionError(Exception):
    """Tables or columns of the target database could not be enumerated."""

    def __init__(self, message: str, table: str | None = None):
        self.message = message
        self.table = table
        prefix = f"{table}: " if table else ""
        super().__init__(f"Schema introspection failed: {prefix}{message}")


class PhaseSequenceError(Exception):
    """A phase operation was invoked while the session is in the wrong phase."""

    def __init__(self, session_id: str, actual: str, expected: str):
        self.session_id = session_id
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Session {session_id} is at phase '{actual}', expected '{expected}'"
        )


class SessionNotFoundError(KeyError):
    """No analysis session is stored under the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(session_id)

    def __str__(self) -> str:
        return f"Analysis session not found: {self.session_id}"
