"""Build runnable test cases from test-case files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from confluent_kafka.schema_registry import Schema
from pydantic import ValidationError

from ksqltopics.compiler.topics import DEFAULT_PARTITIONS, DEFAULT_RF, Topic, get_all_topics
from ksqltopics.core.models import EngineConfig, RecordNode, TestCaseNode, TopicNode
from ksqltopics.core.naming import build_statements, build_test_name
from ksqltopics.core.parser import ParseError, TestFileParser
from ksqltopics.errors import FormatError
from ksqltopics.serde.formats import FormatFactory
from ksqltopics.sql.metastore import FunctionRegistry

logger = logging.getLogger(__name__)

# Format assumed for an explicit topic schema with no valueFormat
DEFAULT_SCHEMA_FORMAT = "AVRO"


@dataclass
class TestCase:
    """A test case expanded for one format, with all of its topics."""

    __test__ = False

    name: str
    statements: list[str]
    topics: list[Topic]
    inputs: list[RecordNode] = field(default_factory=list)
    outputs: list[RecordNode] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)
    format: Optional[str] = None
    expected_exception: Optional[dict[str, Any]] = None

    def get_topic(self, name: str) -> Optional[Topic]:
        """Get a topic by name."""
        for topic in self.topics:
            if topic.name == name:
                return topic
        return None


class TestCaseBuilder:
    """Expand the test cases of a file, one per format."""

    __test__ = False

    def __init__(self, function_registry: Optional[FunctionRegistry] = None) -> None:
        self.function_registry = function_registry or FunctionRegistry()

    def build(self, path: Path) -> list[TestCase]:
        """Parse a test file and build all of its enabled test cases."""
        test_file = TestFileParser(path).parse()

        cases = []
        for node in test_file.tests:
            if not node.enabled:
                logger.info(f"Skipping disabled test '{node.name}' in {path}")
                continue
            for explicit_format in node.formats or [None]:
                cases.append(self._build_case(path, node, explicit_format))
        return cases

    def _build_case(
        self, path: Path, node: TestCaseNode, explicit_format: Optional[str]
    ) -> TestCase:
        name = build_test_name(path, node.name, explicit_format)
        statements = build_statements(node.statements, explicit_format)

        try:
            config = EngineConfig.from_properties(node.properties)
        except ValidationError as e:
            raise ParseError(f"Invalid properties in test '{name}': {e}")

        explicit_topics = [self._topic_from_node(name, topic) for topic in node.topics]

        topics = get_all_topics(
            statements,
            explicit_topics,
            node.outputs,
            node.inputs,
            self.function_registry,
            config,
        )
        logger.debug(f"Test '{name}' uses topics: {', '.join(t.name for t in topics)}")

        return TestCase(
            name=name,
            statements=statements,
            topics=topics,
            inputs=list(node.inputs),
            outputs=list(node.outputs),
            properties=dict(node.properties),
            format=explicit_format,
            expected_exception=node.expected_exception,
        )

    def _topic_from_node(self, test_name: str, node: TopicNode) -> Topic:
        """Convert an explicitly declared topic."""
        value_schema = None
        if node.value_schema is not None:
            format_name = node.value_format or DEFAULT_SCHEMA_FORMAT
            try:
                value_format = FormatFactory.from_name(format_name)
            except FormatError as e:
                raise ParseError(f"Topic '{node.name}' in test '{test_name}': {e}")
            if not value_format.supports_schema_inference:
                raise ParseError(
                    f"Topic '{node.name}' in test '{test_name}': "
                    f"format {value_format.name} does not support a value schema"
                )
            schema_str = (
                node.value_schema
                if isinstance(node.value_schema, str)
                else json.dumps(node.value_schema)
            )
            value_schema = Schema(schema_str=schema_str, schema_type=value_format.schema_type)

        return Topic(
            name=node.name,
            partitions=node.partitions or DEFAULT_PARTITIONS,
            replication_factor=node.replicas or DEFAULT_RF,
            value_schema=value_schema,
        )
