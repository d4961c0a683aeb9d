"""Topic inference for ksqlDB test cases."""

from ksqltopics.compiler.builder import TestCase, TestCaseBuilder
from ksqltopics.compiler.topics import (
    DEFAULT_PARTITIONS,
    DEFAULT_RF,
    Topic,
    TopicExtractor,
    TopicResult,
    get_all_topics,
    register_type,
)

__all__ = [
    "DEFAULT_PARTITIONS",
    "DEFAULT_RF",
    "Topic",
    "TopicExtractor",
    "TopicResult",
    "TestCase",
    "TestCaseBuilder",
    "get_all_topics",
    "register_type",
]
