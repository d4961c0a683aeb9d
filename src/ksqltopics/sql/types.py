"""SQL types understood by ksqlDB column definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union


class BaseType(str, Enum):
    """Primitive ksqlDB types."""

    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    BYTES = "BYTES"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"


# Type names as they may appear in statements
PRIMITIVE_ALIASES = {
    "BOOLEAN": BaseType.BOOLEAN,
    "INT": BaseType.INTEGER,
    "INTEGER": BaseType.INTEGER,
    "BIGINT": BaseType.BIGINT,
    "DOUBLE": BaseType.DOUBLE,
    "STRING": BaseType.STRING,
    "VARCHAR": BaseType.STRING,
    "BYTES": BaseType.BYTES,
    "DATE": BaseType.DATE,
    "TIME": BaseType.TIME,
    "TIMESTAMP": BaseType.TIMESTAMP,
}


@dataclass(frozen=True)
class SqlPrimitive:
    base: BaseType

    def __str__(self) -> str:
        return self.base.value


@dataclass(frozen=True)
class SqlDecimal:
    precision: int
    scale: int

    def __str__(self) -> str:
        return f"DECIMAL({self.precision}, {self.scale})"


@dataclass(frozen=True)
class SqlArray:
    item: "SqlType"

    def __str__(self) -> str:
        return f"ARRAY<{self.item}>"


@dataclass(frozen=True)
class SqlMap:
    key: "SqlType"
    value: "SqlType"

    def __str__(self) -> str:
        return f"MAP<{self.key}, {self.value}>"


@dataclass(frozen=True)
class SqlStructField:
    name: str
    type: "SqlType"


@dataclass(frozen=True)
class SqlStruct:
    fields: tuple[SqlStructField, ...]

    def __str__(self) -> str:
        inner = ", ".join(f"`{f.name}` {f.type}" for f in self.fields)
        return f"STRUCT<{inner}>"


@dataclass(frozen=True)
class SqlTypeReference:
    """A custom type name, replaced by its definition during preparation."""

    name: str

    def __str__(self) -> str:
        return self.name


SqlType = Union[SqlPrimitive, SqlDecimal, SqlArray, SqlMap, SqlStruct, SqlTypeReference]


def resolve_type(
    sql_type: SqlType, lookup: Callable[[str], Optional[SqlType]]
) -> SqlType:
    """Replace every custom type reference in ``sql_type``.

    Args:
        sql_type: Type possibly containing references
        lookup: Returns the registered type for a name, or None

    Raises:
        KeyError: If a referenced type is not registered
    """
    if isinstance(sql_type, SqlTypeReference):
        resolved = lookup(sql_type.name)
        if resolved is None:
            raise KeyError(sql_type.name)
        return resolved
    if isinstance(sql_type, SqlArray):
        return SqlArray(resolve_type(sql_type.item, lookup))
    if isinstance(sql_type, SqlMap):
        return SqlMap(resolve_type(sql_type.key, lookup), resolve_type(sql_type.value, lookup))
    if isinstance(sql_type, SqlStruct):
        return SqlStruct(
            tuple(SqlStructField(f.name, resolve_type(f.type, lookup)) for f in sql_type.fields)
        )
    return sql_type
