"""Parser for ksqlDB test-case files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ksqltopics.core.models import TestFile


class ParseError(Exception):
    """Error during parsing."""

    pass


class TestFileParser:
    """Parser for test-case files (JSON or YAML)."""

    __test__ = False

    JSON_SUFFIXES = {".json"}
    YAML_SUFFIXES = {".yml", ".yaml"}

    def __init__(self, path: Path) -> None:
        """Initialize parser with the test file path."""
        self.path = Path(path).resolve()

    def parse(self) -> TestFile:
        """Parse the test file."""
        if not self.path.exists():
            raise ParseError(f"Test file not found: {self.path}")

        data = self._load()
        if not isinstance(data, dict):
            raise ParseError(f"Test file '{self.path}' must contain an object with a 'tests' list")

        try:
            return TestFile(**data)
        except ValidationError as e:
            raise ParseError(f"Invalid test file '{self.path}': {e}")

    def _load(self) -> Any:
        """Load the file according to its extension."""
        suffix = self.path.suffix.lower()
        with open(self.path) as f:
            content = f.read()

        if suffix in self.YAML_SUFFIXES:
            try:
                return yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ParseError(f"YAML parse error in '{self.path}': {e}")

        if suffix in self.JSON_SUFFIXES:
            try:
                return json.loads(content)
            except json.JSONDecodeError as e:
                raise ParseError(f"JSON parse error in '{self.path}': {e}")

        raise ParseError(f"Unsupported test file type '{suffix}': {self.path}")
