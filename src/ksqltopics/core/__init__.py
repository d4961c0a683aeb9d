"""Core models and utilities for ksqltopics."""

from ksqltopics.core.models import (
    EngineConfig,
    RecordNode,
    TestCaseNode,
    TestFile,
    TopicNode,
)
from ksqltopics.core.naming import build_statements, build_test_name, extract_simple_test_name
from ksqltopics.core.parser import ParseError, TestFileParser

__all__ = [
    "EngineConfig",
    "RecordNode",
    "TopicNode",
    "TestCaseNode",
    "TestFile",
    "TestFileParser",
    "ParseError",
    "build_test_name",
    "extract_simple_test_name",
    "build_statements",
]
