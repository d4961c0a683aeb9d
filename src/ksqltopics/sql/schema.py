"""Logical schema of a stream or table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ksqltopics.sql.types import SqlType


class Namespace(str, Enum):
    """Part of a record a column is stored in."""

    KEY = "key"
    VALUE = "value"
    HEADERS = "headers"


@dataclass(frozen=True)
class Column:
    name: str
    type: SqlType
    namespace: Namespace = Namespace.VALUE


@dataclass(frozen=True)
class LogicalSchema:
    """Ordered columns of a source, across key, value and headers."""

    columns: tuple[Column, ...] = ()

    def key(self) -> list[Column]:
        return [c for c in self.columns if c.namespace == Namespace.KEY]

    def value(self) -> list[Column]:
        return [c for c in self.columns if c.namespace == Namespace.VALUE]

    def headers(self) -> list[Column]:
        return [c for c in self.columns if c.namespace == Namespace.HEADERS]
