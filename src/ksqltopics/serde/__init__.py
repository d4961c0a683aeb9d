"""Serialization formats, serde options and schema inference."""

from ksqltopics.serde.formats import Format, FormatFactory, FormatInfo
from ksqltopics.serde.injector import ConfiguredStatement, DefaultFormatInjector
from ksqltopics.serde.options import (
    PersistenceSchema,
    SerdeFeature,
    SerdeFeatures,
    SerdeOptions,
    SerdeOptionsFactory,
)

__all__ = [
    "Format",
    "FormatFactory",
    "FormatInfo",
    "ConfiguredStatement",
    "DefaultFormatInjector",
    "PersistenceSchema",
    "SerdeFeature",
    "SerdeFeatures",
    "SerdeOptions",
    "SerdeOptionsFactory",
]
