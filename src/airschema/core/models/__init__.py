"""Shared data structures."""

from airschema.core.models.base import Result

__all__ = ["Result"]
