"""Translation of persistence schemas into native Schema Registry schemas.

Every ksqlDB column is nullable, so every generated field is optional:
- AVRO: ``["null", <type>]`` unions with a null default
- JSON_SR: ``{"oneOf": [{"type": "null"}, <type>]}``
- PROTOBUF: proto3 fields, which are optional by definition
"""

from __future__ import annotations

import json
from typing import Any

from ksqltopics.errors import FormatError
from ksqltopics.serde.options import PersistenceSchema
from ksqltopics.sql.types import (
    BaseType,
    SqlArray,
    SqlDecimal,
    SqlMap,
    SqlPrimitive,
    SqlStruct,
    SqlType,
)

DEFAULT_AVRO_SCHEMA_FULL_NAME = "io.confluent.ksql.avro_schemas.KsqlDataSourceSchema"

# ============================================================================
# AVRO
# ============================================================================

AVRO_PRIMITIVES: dict[BaseType, Any] = {
    BaseType.BOOLEAN: "boolean",
    BaseType.INTEGER: "int",
    BaseType.BIGINT: "long",
    BaseType.DOUBLE: "double",
    BaseType.STRING: "string",
    BaseType.BYTES: "bytes",
    BaseType.DATE: {"type": "int", "logicalType": "date"},
    BaseType.TIME: {"type": "int", "logicalType": "time-millis"},
    BaseType.TIMESTAMP: {"type": "long", "logicalType": "timestamp-millis"},
}


def to_avro_schema(schema: PersistenceSchema, full_name: str) -> str:
    """Build an Avro schema string for a value schema."""
    if schema.is_unwrapped:
        column = schema.columns[0]
        return json.dumps(_avro_optional(column.type, f"{full_name}_{column.name}"))

    return json.dumps(
        _avro_record(full_name, [(c.name, c.type) for c in schema.columns])
    )


def _avro_record(full_name: str, fields: list[tuple[str, SqlType]]) -> dict[str, Any]:
    namespace, _, name = full_name.rpartition(".")
    record: dict[str, Any] = {"type": "record", "name": name}
    if namespace:
        record["namespace"] = namespace
    record["fields"] = [
        {"name": field_name, "type": _avro_optional(field_type, f"{full_name}_{field_name}"), "default": None}
        for field_name, field_type in fields
    ]
    return record


def _avro_optional(sql_type: SqlType, full_name: str) -> list[Any]:
    return ["null", _avro_type(sql_type, full_name)]


def _avro_type(sql_type: SqlType, full_name: str) -> Any:
    if isinstance(sql_type, SqlPrimitive):
        return AVRO_PRIMITIVES[sql_type.base]
    if isinstance(sql_type, SqlDecimal):
        return {
            "type": "bytes",
            "logicalType": "decimal",
            "precision": sql_type.precision,
            "scale": sql_type.scale,
        }
    if isinstance(sql_type, SqlArray):
        return {"type": "array", "items": _avro_optional(sql_type.item, full_name)}
    if isinstance(sql_type, SqlMap):
        if sql_type.key == SqlPrimitive(BaseType.STRING):
            return {"type": "map", "values": _avro_optional(sql_type.value, full_name)}
        # Avro maps only support string keys: use an array of entries instead
        entry = _avro_record(
            f"{full_name}_MapEntry", [("key", sql_type.key), ("value", sql_type.value)]
        )
        return {"type": "array", "items": entry}
    if isinstance(sql_type, SqlStruct):
        return _avro_record(full_name, [(f.name, f.type) for f in sql_type.fields])
    raise FormatError(f"Cannot convert type to AVRO: {sql_type}")


# ============================================================================
# JSON_SR
# ============================================================================

JSON_PRIMITIVES: dict[BaseType, dict[str, Any]] = {
    BaseType.BOOLEAN: {"type": "boolean"},
    BaseType.INTEGER: {"type": "integer", "connect.type": "int32"},
    BaseType.BIGINT: {"type": "integer", "connect.type": "int64"},
    BaseType.DOUBLE: {"type": "number", "connect.type": "float64"},
    BaseType.STRING: {"type": "string"},
    BaseType.BYTES: {"type": "string", "connect.type": "bytes"},
    BaseType.DATE: {
        "type": "integer",
        "connect.type": "int32",
        "title": "org.apache.kafka.connect.data.Date",
    },
    BaseType.TIME: {
        "type": "integer",
        "connect.type": "int32",
        "title": "org.apache.kafka.connect.data.Time",
    },
    BaseType.TIMESTAMP: {
        "type": "integer",
        "connect.type": "int64",
        "title": "org.apache.kafka.connect.data.Timestamp",
    },
}


def to_json_schema(schema: PersistenceSchema) -> str:
    """Build a JSON schema string for a value schema."""
    if schema.is_unwrapped:
        return json.dumps(_json_optional(schema.columns[0].type))
    return json.dumps(_json_object([(c.name, c.type) for c in schema.columns]))


def _json_object(fields: list[tuple[str, SqlType]]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            name: {**_json_optional(field_type), "connect.index": index}
            for index, (name, field_type) in enumerate(fields)
        },
    }


def _json_optional(sql_type: SqlType) -> dict[str, Any]:
    return {"oneOf": [{"type": "null"}, _json_type(sql_type)]}


def _json_type(sql_type: SqlType) -> dict[str, Any]:
    if isinstance(sql_type, SqlPrimitive):
        return dict(JSON_PRIMITIVES[sql_type.base])
    if isinstance(sql_type, SqlDecimal):
        return {
            "type": "number",
            "title": "org.apache.kafka.connect.data.Decimal",
            "connect.type": "bytes",
            "connect.parameters": {
                "scale": str(sql_type.scale),
                "connect.decimal.precision": str(sql_type.precision),
            },
        }
    if isinstance(sql_type, SqlArray):
        return {"type": "array", "items": _json_optional(sql_type.item)}
    if isinstance(sql_type, SqlMap):
        if sql_type.key != SqlPrimitive(BaseType.STRING):
            raise FormatError(f"JSON_SR only supports MAP types with STRING keys: {sql_type}")
        return {
            "type": "object",
            "connect.type": "map",
            "additionalProperties": _json_optional(sql_type.value),
        }
    if isinstance(sql_type, SqlStruct):
        return _json_object([(f.name, f.type) for f in sql_type.fields])
    raise FormatError(f"Cannot convert type to JSON_SR: {sql_type}")


# ============================================================================
# PROTOBUF
# ============================================================================

PROTOBUF_PRIMITIVES: dict[BaseType, str] = {
    BaseType.BOOLEAN: "bool",
    BaseType.INTEGER: "int32",
    BaseType.BIGINT: "int64",
    BaseType.DOUBLE: "double",
    BaseType.STRING: "string",
    BaseType.BYTES: "bytes",
    BaseType.DATE: "google.type.Date",
    BaseType.TIME: "google.type.TimeOfDay",
    BaseType.TIMESTAMP: "google.protobuf.Timestamp",
}

PROTOBUF_IMPORTS: dict[str, str] = {
    "google.type.Date": "google/type/date.proto",
    "google.type.TimeOfDay": "google/type/timeofday.proto",
    "google.protobuf.Timestamp": "google/protobuf/timestamp.proto",
    "confluent.type.Decimal": "confluent/type/decimal.proto",
}

PROTOBUF_MAP_KEYS = {"string", "int32", "int64", "bool"}


class _ProtobufWriter:
    """Render nested messages, numbering them ConnectDefault1, ConnectDefault2, ..."""

    def __init__(self) -> None:
        self.counter = 0
        self.imports: set[str] = set()

    def message(self, fields: list[tuple[str, SqlType]], indent: int) -> list[str]:
        self.counter += 1
        name = f"ConnectDefault{self.counter}"
        pad = "  " * indent
        lines = [f"{pad}message {name} {{"]
        nested: list[str] = []
        for number, (field_name, field_type) in enumerate(fields, start=1):
            rendered = self.field_type(field_type, indent + 1, nested)
            lines.append(f"{pad}  {rendered} {field_name} = {number};")
        if nested:
            lines.append("")
            lines.extend(nested)
        lines.append(f"{pad}}}")
        return lines

    def field_type(self, sql_type: SqlType, indent: int, nested: list[str]) -> str:
        if isinstance(sql_type, SqlArray):
            if isinstance(sql_type.item, (SqlArray, SqlMap)):
                raise FormatError(f"PROTOBUF does not support nested collections: {sql_type}")
            return f"repeated {self.field_type(sql_type.item, indent, nested)}"
        if isinstance(sql_type, SqlMap):
            key = self.field_type(sql_type.key, indent, nested)
            if key not in PROTOBUF_MAP_KEYS:
                raise FormatError(f"PROTOBUF does not support MAP keys of type {sql_type.key}")
            if isinstance(sql_type.value, (SqlArray, SqlMap)):
                raise FormatError(f"PROTOBUF does not support nested collections: {sql_type}")
            return f"map<{key}, {self.field_type(sql_type.value, indent, nested)}>"
        if isinstance(sql_type, SqlStruct):
            lines = self.message([(f.name, f.type) for f in sql_type.fields], indent)
            nested.extend(lines)
            return lines[0].strip().split()[1]
        if isinstance(sql_type, SqlDecimal):
            type_name = "confluent.type.Decimal"
        elif isinstance(sql_type, SqlPrimitive):
            type_name = PROTOBUF_PRIMITIVES[sql_type.base]
        else:
            raise FormatError(f"Cannot convert type to PROTOBUF: {sql_type}")
        if type_name in PROTOBUF_IMPORTS:
            self.imports.add(PROTOBUF_IMPORTS[type_name])
        return type_name


def to_protobuf_schema(schema: PersistenceSchema) -> str:
    """Build a proto3 schema string for a value schema."""
    if schema.is_unwrapped:
        raise FormatError("PROTOBUF does not support unwrapped single values")

    writer = _ProtobufWriter()
    body = writer.message([(c.name, c.type) for c in schema.columns], 0)

    lines = ['syntax = "proto3";', ""]
    if writer.imports:
        lines.extend(f'import "{path}";' for path in sorted(writer.imports))
        lines.append("")
    lines.extend(body)
    return "\n".join(lines) + "\n"
