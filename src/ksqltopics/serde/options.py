"""Serde options: how a value schema is physically serialized."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ksqltopics.errors import SerdeConfigurationError
from ksqltopics.sql.schema import Column, LogicalSchema

if TYPE_CHECKING:
    from ksqltopics.core.models import EngineConfig
    from ksqltopics.serde.formats import Format


class SerdeFeature(str, Enum):
    """Serialization features of a key or value."""

    WRAP_SINGLE_VALUES = "WRAP_SINGLE_VALUES"
    UNWRAP_SINGLE_VALUES = "UNWRAP_SINGLE_VALUES"


@dataclass(frozen=True)
class SerdeFeatures:
    features: frozenset[SerdeFeature] = frozenset()

    @classmethod
    def of(cls, *features: SerdeFeature) -> "SerdeFeatures":
        return cls(frozenset(features))

    def enabled(self, feature: SerdeFeature) -> bool:
        return feature in self.features

    def __bool__(self) -> bool:
        return bool(self.features)


@dataclass(frozen=True)
class SerdeOptions:
    """Key and value serde features of a source."""

    key_features: SerdeFeatures = SerdeFeatures()
    value_features: SerdeFeatures = SerdeFeatures()

    @classmethod
    def of(cls) -> "SerdeOptions":
        """Empty options."""
        return cls()


@dataclass(frozen=True)
class PersistenceSchema:
    """Columns as persisted in one part of a record, with their serde features."""

    columns: tuple[Column, ...]
    features: SerdeFeatures = SerdeFeatures()

    @classmethod
    def from_columns(cls, columns: list[Column], features: SerdeFeatures) -> "PersistenceSchema":
        return cls(tuple(columns), features)

    @property
    def is_unwrapped(self) -> bool:
        return len(self.columns) == 1 and self.features.enabled(SerdeFeature.UNWRAP_SINGLE_VALUES)


class SerdeOptionsFactory:
    """Build serde options for CREATE STREAM / CREATE TABLE statements."""

    @staticmethod
    def build_for_create_statement(
        schema: LogicalSchema,
        key_format: "Format",
        value_format: "Format",
        wrap_single_values: Optional[bool],
        config: "EngineConfig",
    ) -> SerdeOptions:
        """Compute serde options from the statement and engine config.

        Args:
            schema: Logical schema of the source
            key_format: Resolved key format
            value_format: Resolved value format
            wrap_single_values: Explicit WRAP_SINGLE_VALUE property, if set
            config: Engine configuration

        Raises:
            SerdeConfigurationError: If WRAP_SINGLE_VALUE cannot be applied
        """
        key_features = SerdeOptionsFactory._key_features(schema, key_format)
        value_features = SerdeOptionsFactory._value_features(
            schema, value_format, wrap_single_values, config
        )
        return SerdeOptions(key_features=key_features, value_features=value_features)

    @staticmethod
    def _key_features(schema: LogicalSchema, key_format: "Format") -> SerdeFeatures:
        # Single key columns are never wrapped unless the format requires it
        if len(schema.key()) == 1 and key_format.supports_unwrapping and key_format.supports_wrapping:
            return SerdeFeatures.of(SerdeFeature.UNWRAP_SINGLE_VALUES)
        return SerdeFeatures()

    @staticmethod
    def _value_features(
        schema: LogicalSchema,
        value_format: "Format",
        wrap_single_values: Optional[bool],
        config: "EngineConfig",
    ) -> SerdeFeatures:
        single_field = len(schema.value()) == 1

        if wrap_single_values is not None:
            if not single_field:
                raise SerdeConfigurationError(
                    "'WRAP_SINGLE_VALUE' is only valid for single-field value schemas"
                )
            if not value_format.supports_wrapping:
                raise SerdeConfigurationError(
                    f"Format '{value_format.name}' does not support 'WRAP_SINGLE_VALUE' set to "
                    f"'{str(wrap_single_values).lower()}'."
                )
            if wrap_single_values:
                return SerdeFeatures.of(SerdeFeature.WRAP_SINGLE_VALUES)
            if not value_format.supports_unwrapping:
                raise SerdeConfigurationError(
                    f"Format '{value_format.name}' does not support unwrapping single values"
                )
            return SerdeFeatures.of(SerdeFeature.UNWRAP_SINGLE_VALUES)

        if not single_field or not value_format.supports_wrapping:
            return SerdeFeatures()

        if config.wrap_single_values is False and value_format.supports_unwrapping:
            return SerdeFeatures.of(SerdeFeature.UNWRAP_SINGLE_VALUES)

        return SerdeFeatures()
