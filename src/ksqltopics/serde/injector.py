"""Fill in formats a CREATE statement leaves unset."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ksqltopics.core.models import EngineConfig
from ksqltopics.errors import FormatError
from ksqltopics.sql.tree import CreateSource, PreparedStatement


@dataclass(frozen=True)
class ConfiguredStatement:
    """A prepared statement together with the engine config it runs under."""

    prepared: PreparedStatement
    config: EngineConfig

    @property
    def statement(self):
        return self.prepared.statement


class DefaultFormatInjector:
    """Inject the default key and value formats into CREATE statements."""

    def inject(self, configured: ConfiguredStatement) -> ConfiguredStatement:
        """Return the statement with explicit KEY_FORMAT and VALUE_FORMAT.

        Raises:
            FormatError: If no value format is given and no default is configured
        """
        statement = configured.statement
        if not isinstance(statement, CreateSource):
            return configured

        properties = statement.properties
        key_format = properties.key_format or configured.config.default_key_format
        value_format = properties.value_format or configured.config.default_value_format

        if not key_format:
            raise FormatError(
                "Statement is missing the 'KEY_FORMAT' property from the WITH clause. "
                "Either provide one or set a default via the "
                "'ksql.persistence.default.format.key' config."
            )
        if not value_format:
            raise FormatError(
                "Statement is missing the 'VALUE_FORMAT' property from the WITH clause. "
                "Either provide one or set a default via the "
                "'ksql.persistence.default.format.value' config."
            )

        injected = statement.copy_with(
            properties=properties.with_formats(key_format.upper(), value_format.upper())
        )
        return replace(configured, prepared=replace(configured.prepared, statement=injected))
