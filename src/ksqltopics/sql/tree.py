"""Syntax tree for the ksqlDB statements topic inference reads."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from ksqltopics.errors import PropertyError
from ksqltopics.sql.schema import Column, LogicalSchema, Namespace
from ksqltopics.sql.types import SqlType


class StatementKind(str, Enum):
    """Syntactic kind of a parsed statement."""

    REGISTER_TYPE = "register_type"
    CREATE_STREAM = "create_stream"
    CREATE_TABLE = "create_table"
    OTHER = "other"


CREATE_SOURCE_KINDS = {StatementKind.CREATE_STREAM, StatementKind.CREATE_TABLE}


class ColumnConstraint(str, Enum):
    """Constraint attached to a column definition."""

    NONE = "none"
    KEY = "key"
    PRIMARY_KEY = "primary_key"
    HEADERS = "headers"
    HEADER = "header"


@dataclass(frozen=True)
class TableElement:
    """A column definition in CREATE STREAM / CREATE TABLE."""

    name: str
    type: SqlType
    constraint: ColumnConstraint = ColumnConstraint.NONE
    header_key: Optional[str] = None

    @property
    def namespace(self) -> Namespace:
        if self.constraint in (ColumnConstraint.KEY, ColumnConstraint.PRIMARY_KEY):
            return Namespace.KEY
        if self.constraint in (ColumnConstraint.HEADERS, ColumnConstraint.HEADER):
            return Namespace.HEADERS
        return Namespace.VALUE


def to_logical_schema(elements: tuple[TableElement, ...]) -> LogicalSchema:
    """Build the logical schema of a source from its column definitions."""
    return LogicalSchema(
        tuple(Column(e.name, e.type, e.namespace) for e in elements)
    )


# ============================================================================
# WITH clause properties
# ============================================================================

KAFKA_TOPIC = "KAFKA_TOPIC"
KEY_FORMAT = "KEY_FORMAT"
VALUE_FORMAT = "VALUE_FORMAT"
FORMAT = "FORMAT"
PARTITIONS = "PARTITIONS"
REPLICAS = "REPLICAS"
WRAP_SINGLE_VALUE = "WRAP_SINGLE_VALUE"
VALUE_AVRO_SCHEMA_FULL_NAME = "VALUE_AVRO_SCHEMA_FULL_NAME"
VALUE_DELIMITER = "VALUE_DELIMITER"

SOURCE_PROPERTIES = {
    KAFKA_TOPIC,
    KEY_FORMAT,
    VALUE_FORMAT,
    FORMAT,
    PARTITIONS,
    REPLICAS,
    WRAP_SINGLE_VALUE,
    VALUE_AVRO_SCHEMA_FULL_NAME,
    VALUE_DELIMITER,
    "TIMESTAMP",
    "TIMESTAMP_FORMAT",
    "KEY_SCHEMA_ID",
    "VALUE_SCHEMA_ID",
    "KEY_DELIMITER",
    "WINDOW_TYPE",
    "WINDOW_SIZE",
}


@dataclass(frozen=True)
class CreateSourceProperties:
    """Validated WITH clause of a CREATE STREAM / CREATE TABLE statement."""

    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_literals(cls, literals: dict[str, Any]) -> "CreateSourceProperties":
        """Validate raw property literals.

        Raises:
            PropertyError: On unknown, missing or conflicting properties
        """
        values = {name.upper(): value for name, value in literals.items()}

        unknown = sorted(set(values) - SOURCE_PROPERTIES)
        if unknown:
            raise PropertyError(f"Invalid config variable(s) in the WITH clause: {','.join(unknown)}")

        if not isinstance(values.get(KAFKA_TOPIC), str):
            raise PropertyError(
                f'Missing required property "{KAFKA_TOPIC}" which has no default value.'
            )

        if FORMAT in values and (KEY_FORMAT in values or VALUE_FORMAT in values):
            raise PropertyError(
                f"Cannot supply both '{FORMAT}' and '{KEY_FORMAT}' or '{VALUE_FORMAT}' properties"
            )

        for name in (FORMAT, KEY_FORMAT, VALUE_FORMAT):
            if name in values and not isinstance(values[name], str):
                raise PropertyError(f"Property '{name}' must be a string: {values[name]}")

        for name in (PARTITIONS, REPLICAS):
            if name in values:
                values[name] = _to_int(name, values[name])

        if WRAP_SINGLE_VALUE in values:
            values[WRAP_SINGLE_VALUE] = _to_bool(WRAP_SINGLE_VALUE, values[WRAP_SINGLE_VALUE])

        return cls(values)

    @property
    def kafka_topic(self) -> str:
        return self.values[KAFKA_TOPIC]

    @property
    def key_format(self) -> Optional[str]:
        name = self.values.get(KEY_FORMAT) or self.values.get(FORMAT)
        return name.upper() if name else None

    @property
    def value_format(self) -> Optional[str]:
        name = self.values.get(VALUE_FORMAT) or self.values.get(FORMAT)
        return name.upper() if name else None

    @property
    def partitions(self) -> Optional[int]:
        return self.values.get(PARTITIONS)

    @property
    def replicas(self) -> Optional[int]:
        return self.values.get(REPLICAS)

    @property
    def wrap_single_values(self) -> Optional[bool]:
        return self.values.get(WRAP_SINGLE_VALUE)

    def value_format_properties(self) -> dict[str, str]:
        """Format-specific properties for the value format."""
        props = {}
        if VALUE_AVRO_SCHEMA_FULL_NAME in self.values:
            props["fullSchemaName"] = str(self.values[VALUE_AVRO_SCHEMA_FULL_NAME])
        if VALUE_DELIMITER in self.values:
            props["delimiter"] = str(self.values[VALUE_DELIMITER])
        return props

    def with_formats(self, key_format: str, value_format: str) -> "CreateSourceProperties":
        """Return a copy with explicit key and value formats."""
        values = {k: v for k, v in self.values.items() if k != FORMAT}
        values[KEY_FORMAT] = key_format
        values[VALUE_FORMAT] = value_format
        return CreateSourceProperties(values)


def _to_int(name: str, value: Any) -> int:
    """Convert a PARTITIONS / REPLICAS literal to a positive integer."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise PropertyError(f"Invalid value for {name}: {value}")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise PropertyError(f"Invalid value for {name}: {value}")
    if number < 1:
        raise PropertyError(f"Invalid value for {name}: {value}, must be positive")
    return number


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise PropertyError(f"Property '{name}' is not a boolean value: {value}")


# ============================================================================
# Statements
# ============================================================================


@dataclass(frozen=True)
class RegisterType:
    """REGISTER TYPE [IF NOT EXISTS] name AS type."""

    name: str
    type: SqlType
    if_not_exists: bool = False


@dataclass(frozen=True)
class CreateSource:
    """CREATE [OR REPLACE] [SOURCE] STREAM|TABLE [IF NOT EXISTS] name (...) WITH (...)."""

    kind: StatementKind
    name: str
    elements: tuple[TableElement, ...]
    properties: CreateSourceProperties
    or_replace: bool = False
    if_not_exists: bool = False
    is_source: bool = False

    def copy_with(self, **changes: Any) -> "CreateSource":
        return replace(self, **changes)


Statement = Union[RegisterType, CreateSource]


@dataclass(frozen=True)
class ParsedStatement:
    """One statement after syntax analysis.

    ``statement`` is None for statements of kind OTHER, which are only
    tokenized.
    """

    text: str
    kind: StatementKind
    statement: Optional[Statement] = None


@dataclass(frozen=True)
class PreparedStatement:
    """A parsed statement with all custom types resolved."""

    text: str
    kind: StatementKind
    statement: Statement
