"""Mutable catalog used while reading the statements of one test case."""

from __future__ import annotations

import logging
from typing import Optional

from ksqltopics.sql.types import SqlType

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Functions available to statements, shared by every metastore of a run."""


class MetaStore:
    """Registered custom types for a single batch of statements.

    A new instance is created for every test case so that types registered by
    one test case never leak into another.
    """

    def __init__(self, function_registry: FunctionRegistry) -> None:
        self.function_registry = function_registry
        self._types: dict[str, SqlType] = {}

    def register_type(self, name: str, sql_type: SqlType) -> None:
        """Bind a type name to its definition, replacing any previous binding."""
        if name in self._types:
            logger.debug(f"Replacing registered type '{name}'")
        self._types[name] = sql_type

    def resolve_type(self, name: str) -> Optional[SqlType]:
        return self._types.get(name)
