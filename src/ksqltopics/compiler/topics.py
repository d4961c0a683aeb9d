"""Infer the topics a ksqlDB test case needs.

Topics come from three places, in order of precedence:
1. Topics declared explicitly by the test case
2. CREATE STREAM / CREATE TABLE statements, with the value schema inferred
   from the declared columns when the value format supports it
3. The topic names of the sample input and output records

Statements that cannot be read contribute no topic: test cases deliberately
contain invalid statements, and their failure is asserted later, when the
statements are run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import chain
from typing import Iterable, Optional

from confluent_kafka.schema_registry import Schema

from ksqltopics.core.models import EngineConfig, RecordNode
from ksqltopics.errors import SerdeConfigurationError, StatementError
from ksqltopics.serde.formats import FormatFactory, FormatInfo
from ksqltopics.serde.injector import ConfiguredStatement, DefaultFormatInjector
from ksqltopics.serde.options import PersistenceSchema, SerdeOptions, SerdeOptionsFactory
from ksqltopics.sql.metastore import FunctionRegistry, MetaStore
from ksqltopics.sql.parser import KsqlParser, is_create_source, is_type_registration
from ksqltopics.sql.tree import ParsedStatement, PreparedStatement, RegisterType, to_logical_schema

logger = logging.getLogger(__name__)

DEFAULT_PARTITIONS = 1
DEFAULT_RF = 1


@dataclass(frozen=True)
class Topic:
    """A topic a test case reads from or writes to."""

    name: str
    partitions: int = DEFAULT_PARTITIONS
    replication_factor: int = DEFAULT_RF
    value_schema: Optional[Schema] = None


@dataclass(frozen=True)
class TopicResult:
    """Outcome of reading one statement: a topic, or none.

    ``error`` is set when the statement could not be read; this is not a
    failure of inference.
    """

    topic: Optional[Topic] = None
    error: Optional[StatementError] = None

    @property
    def found(self) -> bool:
        return self.topic is not None


def register_type(prepared: PreparedStatement, metastore: MetaStore) -> None:
    """Bind a REGISTER TYPE statement into the metastore; no-op otherwise."""
    statement = prepared.statement
    if isinstance(statement, RegisterType):
        metastore.register_type(statement.name, statement.type)


class TopicExtractor:
    """Extract the topic implied by a single statement."""

    def __init__(self, config: EngineConfig, parser: Optional[KsqlParser] = None) -> None:
        self.config = config
        self.parser = parser or KsqlParser()
        self.injector = DefaultFormatInjector()

    def extract(self, sql: str, metastore: MetaStore) -> TopicResult:
        """Read one statement, registering types into ``metastore``.

        Raises:
            ValueError: If ``sql`` contains more than one statement
        """
        try:
            parsed = self.parser.parse(sql)
        except StatementError as e:
            return self._no_topic(sql, e)

        if len(parsed) > 1:
            raise ValueError(f"SQL contains more than one statement: {sql}")

        try:
            topics = []
            for statement in parsed:
                # Later statements may use types registered by earlier ones
                if is_type_registration(statement):
                    register_type(self.parser.prepare(statement, metastore), metastore)
                elif is_create_source(statement):
                    topics.append(self._topic_from_statement(statement, metastore))
        except StatementError as e:
            return self._no_topic(sql, e)

        return TopicResult(topic=topics[0] if topics else None)

    def _no_topic(self, sql: str, error: StatementError) -> TopicResult:
        logger.info(f"Error parsing statement (which may be expected): {sql}: {error}")
        return TopicResult(error=error)

    def _topic_from_statement(self, parsed: ParsedStatement, metastore: MetaStore) -> Topic:
        prepared = self.parser.prepare(parsed, metastore)
        configured = self.injector.inject(ConfiguredStatement(prepared, self.config))

        statement = configured.statement
        props = statement.properties

        key_format = FormatFactory.from_name(props.key_format)
        value_format_info = FormatInfo.of(props.value_format, props.value_format_properties())
        value_format = FormatFactory.of(value_format_info)

        value_schema = None
        if value_format.supports_schema_inference:
            logical_schema = to_logical_schema(statement.elements)

            try:
                serde_options = SerdeOptionsFactory.build_for_create_statement(
                    logical_schema,
                    key_format,
                    value_format,
                    props.wrap_single_values,
                    self.config,
                )
            except SerdeConfigurationError as e:
                # Let negative tests fail in the correct place, later
                logger.debug(f"Ignoring invalid serde options for '{statement.name}': {e}")
                serde_options = SerdeOptions.of()

            if logical_schema.value():
                value_schema = value_format.to_parsed_schema(
                    PersistenceSchema.from_columns(
                        logical_schema.value(), serde_options.value_features
                    ),
                    value_format_info,
                )

        partitions = props.partitions if props.partitions is not None else DEFAULT_PARTITIONS
        replicas = props.replicas if props.replicas is not None else DEFAULT_RF

        return Topic(props.kafka_topic, partitions, replicas, value_schema)


def get_all_topics(
    statements: Iterable[str],
    topics: Iterable[Topic],
    outputs: Iterable[RecordNode],
    inputs: Iterable[RecordNode],
    function_registry: FunctionRegistry,
    config: EngineConfig,
) -> list[Topic]:
    """Collect every topic a test case needs, unique by name.

    Explicit topics take precedence over topics inferred from statements,
    which take precedence over topics implied by records.

    Raises:
        ValueError: If any entry of ``statements`` holds more than one statement
    """
    all_topics: dict[str, Topic] = {}

    for topic in topics:
        all_topics[topic.name] = topic

    # One metastore for the whole batch so registered types are visible to
    # later statements
    metastore = MetaStore(function_registry)
    extractor = TopicExtractor(config)
    for sql in statements:
        result = extractor.extract(sql, metastore)
        if result.found:
            all_topics.setdefault(result.topic.name, result.topic)

    for record in chain(inputs, outputs):
        all_topics.setdefault(record.topic, Topic(record.topic))

    return list(all_topics.values())
