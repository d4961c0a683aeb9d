"""Tests for topic inference."""

import json
import logging

import pytest
from confluent_kafka.schema_registry import Schema

from ksqltopics.compiler.topics import (
    DEFAULT_PARTITIONS,
    DEFAULT_RF,
    Topic,
    TopicExtractor,
    get_all_topics,
)
from ksqltopics.core.models import EngineConfig, RecordNode
from ksqltopics.errors import FormatError, KsqlSyntaxError, ResolutionError
from ksqltopics.sql import FunctionRegistry, MetaStore

REGISTER_ADDRESS = "REGISTER TYPE ADDRESS AS STRUCT<NUMBER INTEGER, STREET VARCHAR>;"
CREATE_PEOPLE = (
    "CREATE STREAM PEOPLE (ID BIGINT KEY, NAME STRING, HOME ADDRESS) "
    "WITH (kafka_topic='people', value_format='AVRO');"
)


@pytest.fixture
def extractor():
    return TopicExtractor(EngineConfig())


@pytest.fixture
def metastore():
    return MetaStore(FunctionRegistry())


def topics_by_name(topics):
    return {t.name: t for t in topics}


def all_topics(statements=(), topics=(), outputs=(), inputs=(), config=None):
    return topics_by_name(
        get_all_topics(
            statements,
            topics,
            outputs,
            inputs,
            FunctionRegistry(),
            config or EngineConfig(),
        )
    )


class TestTopicExtractor:
    """Tests for extracting the topic of a single statement."""

    def test_create_stream(self, extractor, metastore):
        """CREATE STREAM implies its KAFKA_TOPIC with defaults."""
        result = extractor.extract(
            "CREATE STREAM S (ID INT KEY, V STRING) WITH (kafka_topic='s_topic', value_format='JSON');",
            metastore,
        )

        assert result.found
        assert result.error is None
        assert result.topic == Topic("s_topic", DEFAULT_PARTITIONS, DEFAULT_RF, None)

    def test_defaults_are_one(self):
        """Default partitions and replication factor are 1."""
        assert DEFAULT_PARTITIONS == 1
        assert DEFAULT_RF == 1

    def test_partitions_and_replicas(self, extractor, metastore):
        """Declared partitions and replicas are used."""
        result = extractor.extract(
            "CREATE TABLE T (ID INT PRIMARY KEY, V STRING) "
            "WITH (kafka_topic='t', value_format='JSON', partitions=4, replicas=3);",
            metastore,
        )

        assert result.topic.partitions == 4
        assert result.topic.replication_factor == 3

    def test_avro_value_schema(self, extractor, metastore):
        """Schema-inferring formats attach the value schema."""
        result = extractor.extract(
            "CREATE STREAM S (ID INT KEY, V STRING) WITH (kafka_topic='s', value_format='AVRO');",
            metastore,
        )
        schema = result.topic.value_schema

        assert schema.schema_type == "AVRO"
        assert json.loads(schema.schema_str)["fields"] == [
            {"name": "V", "type": ["null", "string"], "default": None}
        ]

    def test_key_columns_not_in_value_schema(self, extractor, metastore):
        """Only value columns are part of the value schema."""
        result = extractor.extract(
            "CREATE STREAM S (ID INT KEY, A STRING, B BIGINT) WITH (kafka_topic='s', value_format='JSON_SR');",
            metastore,
        )
        assert list(json.loads(result.topic.value_schema.schema_str)["properties"]) == ["A", "B"]

    def test_table_without_columns_has_no_schema(self, extractor, metastore):
        """An empty value schema yields no schema rather than an empty one."""
        result = extractor.extract(
            "CREATE TABLE T WITH (kafka_topic='t', value_format='AVRO');", metastore
        )

        assert result.topic == Topic("t")
        assert result.topic.value_schema is None

    def test_key_only_columns_have_no_schema(self, extractor, metastore):
        """A source with only key columns has no value schema."""
        result = extractor.extract(
            "CREATE TABLE T (ID INT PRIMARY KEY) WITH (kafka_topic='t', value_format='AVRO');",
            metastore,
        )
        assert result.topic.value_schema is None

    def test_format_injection_from_config(self, metastore):
        """Missing formats are filled from the configured defaults."""
        config = EngineConfig.from_properties(
            {"ksql.persistence.default.format.value": "avro"}
        )
        result = TopicExtractor(config).extract(
            "CREATE STREAM S (ID INT KEY, V STRING) WITH (kafka_topic='s');", metastore
        )

        assert result.topic.value_schema.schema_type == "AVRO"

    def test_missing_value_format(self, extractor, metastore):
        """Without a value format or default there is no topic."""
        result = extractor.extract(
            "CREATE STREAM S (ID INT KEY, V STRING) WITH (kafka_topic='s');", metastore
        )

        assert not result.found
        assert isinstance(result.error, FormatError)

    def test_unknown_format(self, extractor, metastore):
        """Unknown formats yield no topic."""
        result = extractor.extract(
            "CREATE STREAM S (V STRING) WITH (kafka_topic='s', value_format='XML');", metastore
        )
        assert not result.found
        assert isinstance(result.error, FormatError)

    def test_unwrapped_single_value(self, metastore):
        """Single values are unwrapped when configured."""
        config = EngineConfig.from_properties({"ksql.persistence.wrap.single.values": False})
        result = TopicExtractor(config).extract(
            "CREATE STREAM S (ID INT KEY, V STRING) WITH (kafka_topic='s', value_format='AVRO');",
            metastore,
        )

        assert json.loads(result.topic.value_schema.schema_str) == ["null", "string"]

    def test_invalid_serde_options_fall_back(self, extractor, metastore):
        """Invalid WRAP_SINGLE_VALUE still yields a topic, with default options."""
        result = extractor.extract(
            "CREATE STREAM S (ID INT KEY, A STRING, B STRING) "
            "WITH (kafka_topic='s', value_format='AVRO', wrap_single_value=false);",
            metastore,
        )

        assert result.found
        assert json.loads(result.topic.value_schema.schema_str)["type"] == "record"

    def test_syntax_error(self, extractor, metastore, caplog):
        """Syntax errors yield no topic and are logged."""
        sql = "CREATE STREAM S (ID INT KEY WITH (kafka_topic='s', value_format='JSON');"

        with caplog.at_level(logging.INFO, logger="ksqltopics.compiler.topics"):
            result = extractor.extract(sql, metastore)

        assert not result.found
        assert isinstance(result.error, KsqlSyntaxError)
        assert "which may be expected" in caplog.text

    def test_unknown_type(self, extractor, metastore):
        """Unresolvable types yield no topic."""
        result = extractor.extract(CREATE_PEOPLE, metastore)

        assert not result.found
        assert isinstance(result.error, ResolutionError)

    def test_register_type(self, extractor, metastore):
        """REGISTER TYPE binds the type and implies no topic."""
        result = extractor.extract(REGISTER_ADDRESS, metastore)

        assert not result.found
        assert result.error is None
        assert metastore.resolve_type("ADDRESS") is not None

    def test_other_statements(self, extractor, metastore):
        """Queries and other statements imply no topic."""
        for sql in (
            "CREATE STREAM OUTPUT AS SELECT * FROM INPUT;",
            "INSERT INTO OUTPUT SELECT * FROM INPUT;",
            "DROP STREAM INPUT;",
        ):
            result = extractor.extract(sql, metastore)
            assert not result.found
            assert result.error is None

    def test_multiple_statements_rejected(self, extractor, metastore):
        """More than one statement is a caller error."""
        with pytest.raises(ValueError, match="more than one statement"):
            extractor.extract(REGISTER_ADDRESS + CREATE_PEOPLE, metastore)


class TestGetAllTopics:
    """Tests for aggregating all topics of a test case."""

    def test_union_of_sources(self):
        """Disjoint names from all sources are all present."""
        topics = all_topics(
            statements=["CREATE STREAM S (V STRING) WITH (kafka_topic='from_stmt', value_format='JSON');"],
            topics=[Topic("explicit", 2, 1)],
            inputs=[RecordNode(topic="from_input")],
            outputs=[RecordNode(topic="from_output")],
        )

        assert set(topics) == {"explicit", "from_stmt", "from_input", "from_output"}
        assert topics["from_input"] == Topic("from_input")

    def test_explicit_topic_wins(self):
        """Explicit topics take precedence over inferred ones."""
        explicit = Topic("s", 6, 3, Schema(schema_str='"string"', schema_type="AVRO"))
        topics = all_topics(
            statements=[
                "CREATE STREAM S (V STRING) WITH (kafka_topic='s', value_format='AVRO', partitions=2);"
            ],
            topics=[explicit],
        )

        assert topics["s"].partitions == 6
        assert topics["s"].replication_factor == 3
        assert topics["s"].value_schema.schema_str == '"string"'

    def test_statement_topic_wins_over_records(self):
        """Inferred topics take precedence over record topics."""
        topics = all_topics(
            statements=[
                "CREATE STREAM S (V STRING) WITH (kafka_topic='s', value_format='AVRO', partitions=2);"
            ],
            inputs=[RecordNode(topic="s", value={"V": "a"})],
        )

        assert topics["s"].partitions == 2
        assert topics["s"].value_schema is not None

    def test_first_statement_wins(self):
        """The first statement for a topic name wins."""
        topics = all_topics(
            statements=[
                "CREATE STREAM A (V STRING) WITH (kafka_topic='shared', value_format='JSON', partitions=2);",
                "CREATE STREAM B (V STRING) WITH (kafka_topic='shared', value_format='JSON', partitions=5);",
            ]
        )
        assert topics["shared"].partitions == 2

    def test_types_shared_across_statements(self):
        """Types registered earlier are visible to later statements."""
        topics = all_topics(statements=[REGISTER_ADDRESS, CREATE_PEOPLE])
        schema = json.loads(topics["people"].value_schema.schema_str)

        home = next(f for f in schema["fields"] if f["name"] == "HOME")
        assert [f["name"] for f in home["type"][1]["fields"]] == ["NUMBER", "STREET"]

    def test_types_not_shared_across_calls(self):
        """Each aggregation starts with an empty metastore."""
        all_topics(statements=[REGISTER_ADDRESS])
        topics = all_topics(statements=[CREATE_PEOPLE])
        assert "people" not in topics

    def test_invalid_statement_does_not_abort(self):
        """A broken statement contributes nothing; others still do."""
        topics = all_topics(
            statements=[
                "CREATE STREAM A (V STRING) WITH (kafka_topic='a', value_format='JSON');",
                "CREATE STREAM B (V STRING WITH (kafka_topic='b', value_format='JSON');",
                "CREATE STREAM C (V STRING) WITH (kafka_topic='c', value_format='JSON');",
            ]
        )
        assert set(topics) == {"a", "c"}

    def test_records_deduplicated(self):
        """Records sharing a topic yield one topic."""
        topics = get_all_topics(
            [],
            [],
            [RecordNode(topic="t"), RecordNode(topic="t")],
            [RecordNode(topic="t")],
            FunctionRegistry(),
            EngineConfig(),
        )
        assert topics == [Topic("t")]

    @pytest.mark.parametrize(
        "properties",
        [
            "partitions=1e5x",
            "partitions=1.0e999",
            "partitions=1.5",
            "partitions=0",
            "replicas=-2",
            "value_format=1",
        ],
    )
    def test_malformed_literals_do_not_abort(self, properties):
        """Statements with malformed property values are skipped like any other error."""
        topics = all_topics(
            statements=[
                "CREATE STREAM A (V STRING) WITH (kafka_topic='a', value_format='JSON');",
                f"CREATE STREAM B (V STRING) WITH (kafka_topic='b', value_format='JSON', {properties});",
            ]
        )
        assert set(topics) == {"a"}

    def test_non_string_format_does_not_abort(self):
        """A boolean FORMAT contributes no topic."""
        topics = all_topics(
            statements=[
                "CREATE STREAM A (V STRING) WITH (kafka_topic='a', value_format='JSON');",
                "CREATE STREAM B (V STRING) WITH (kafka_topic='b', format=true);",
            ]
        )
        assert set(topics) == {"a"}

    def test_scientific_notation_partitions(self):
        """Integral numbers in scientific notation are accepted."""
        topics = all_topics(
            statements=[
                "CREATE STREAM A (V STRING) WITH (kafka_topic='a', value_format='JSON', partitions=1e1);"
            ]
        )
        assert topics["a"].partitions == 10
