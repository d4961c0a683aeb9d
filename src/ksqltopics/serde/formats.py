"""Serialization formats supported for keys and values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from confluent_kafka.schema_registry import Schema

from ksqltopics.errors import FormatError
from ksqltopics.serde.options import PersistenceSchema
from ksqltopics.serde.schemas import (
    DEFAULT_AVRO_SCHEMA_FULL_NAME,
    to_avro_schema,
    to_json_schema,
    to_protobuf_schema,
)


@dataclass(frozen=True)
class FormatInfo:
    """A format name with its format-specific properties."""

    format: str
    properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def of(cls, format: str, properties: Optional[dict[str, str]] = None) -> "FormatInfo":
        return cls(format.upper(), dict(properties or {}))


class Format:
    """Base serialization format."""

    name: str = ""
    # Schema Registry schema type, for formats that support schema inference
    schema_type: Optional[str] = None
    supports_wrapping: bool = False
    supports_unwrapping: bool = False

    @property
    def supports_schema_inference(self) -> bool:
        return self.schema_type is not None

    def to_parsed_schema(self, schema: PersistenceSchema, info: FormatInfo) -> Schema:
        """Convert a persistence schema into this format's native schema.

        Raises:
            FormatError: If the format does not support schema inference, or
                the schema contains types the format cannot represent
        """
        raise FormatError(f"Format does not support schema inference: {self.name}")

    def __repr__(self) -> str:
        return f"Format({self.name})"


class KafkaFormat(Format):
    name = "KAFKA"


class NoneFormat(Format):
    name = "NONE"


class DelimitedFormat(Format):
    name = "DELIMITED"


class JsonFormat(Format):
    name = "JSON"
    supports_wrapping = True
    supports_unwrapping = True


class JsonSchemaFormat(Format):
    name = "JSON_SR"
    schema_type = "JSON"
    supports_wrapping = True
    supports_unwrapping = True

    def to_parsed_schema(self, schema: PersistenceSchema, info: FormatInfo) -> Schema:
        return Schema(schema_str=to_json_schema(schema), schema_type=self.schema_type)


class AvroFormat(Format):
    name = "AVRO"
    schema_type = "AVRO"
    supports_wrapping = True
    supports_unwrapping = True

    def to_parsed_schema(self, schema: PersistenceSchema, info: FormatInfo) -> Schema:
        full_name = info.properties.get("fullSchemaName", DEFAULT_AVRO_SCHEMA_FULL_NAME)
        return Schema(schema_str=to_avro_schema(schema, full_name), schema_type=self.schema_type)


class ProtobufFormat(Format):
    name = "PROTOBUF"
    schema_type = "PROTOBUF"
    supports_wrapping = True

    def to_parsed_schema(self, schema: PersistenceSchema, info: FormatInfo) -> Schema:
        return Schema(schema_str=to_protobuf_schema(schema), schema_type=self.schema_type)


class FormatFactory:
    """Registry of known formats."""

    FORMATS: dict[str, Format] = {
        f.name: f
        for f in (
            KafkaFormat(),
            NoneFormat(),
            DelimitedFormat(),
            JsonFormat(),
            JsonSchemaFormat(),
            AvroFormat(),
            ProtobufFormat(),
        )
    }

    @classmethod
    def of(cls, info: FormatInfo) -> Format:
        """Resolve a format by name.

        Raises:
            FormatError: If the format is unknown
        """
        format = cls.FORMATS.get(info.format.upper())
        if format is None:
            raise FormatError(f"Unknown format: {info.format}")
        return format

    @classmethod
    def from_name(cls, name: str) -> Format:
        return cls.of(FormatInfo.of(name))
