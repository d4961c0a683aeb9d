"""Pydantic models for ksqlDB test-case files and engine configuration."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Engine Configuration
# ============================================================================


class EngineConfig(BaseModel):
    """ksqlDB engine properties that affect topic inference.

    Properties are accepted under their ksqlDB names, e.g.
    ``ksql.persistence.wrap.single.values``. Unknown properties are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    wrap_single_values: Optional[bool] = Field(
        default=None, alias="ksql.persistence.wrap.single.values"
    )
    default_key_format: str = Field(default="KAFKA", alias="ksql.persistence.default.format.key")
    default_value_format: Optional[str] = Field(
        default=None, alias="ksql.persistence.default.format.value"
    )

    @classmethod
    def from_properties(cls, properties: Optional[dict[str, Any]] = None) -> "EngineConfig":
        """Build a config from a test case's ``properties`` map."""
        return cls.model_validate(properties or {})


# ============================================================================
# Test Files
# ============================================================================


class RecordNode(BaseModel):
    """A sample input or output record."""

    model_config = ConfigDict(populate_by_name=True)

    topic: str
    key: Any = None
    value: Any = None
    timestamp: Optional[int] = None
    headers: list[dict[str, Any]] = Field(default_factory=list)


class TopicNode(BaseModel):
    """A topic declared explicitly by a test case."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    partitions: Optional[int] = None
    replicas: Optional[int] = None
    key_format: Optional[str] = Field(default=None, alias="keyFormat")
    value_format: Optional[str] = Field(default=None, alias="valueFormat")
    value_schema: Any = Field(default=None, alias="valueSchema")

    @field_validator("partitions", "replicas")
    @classmethod
    def positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("must be at least 1")
        return v


class TestCaseNode(BaseModel):
    """One test case of a test file, before expansion per format."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    name: str
    formats: list[str] = Field(default_factory=list, alias="format")
    statements: list[str]
    topics: list[TopicNode] = Field(default_factory=list)
    inputs: list[RecordNode] = Field(default_factory=list)
    outputs: list[RecordNode] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)
    expected_exception: Optional[dict[str, Any]] = Field(default=None, alias="expectedException")
    enabled: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("test name must not be blank")
        return v

    @field_validator("statements")
    @classmethod
    def statements_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("test case must contain at least one statement")
        return v


class TestFile(BaseModel):
    """Contents of a test-case file."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    tests: list[TestCaseNode]
    comments: list[str] = Field(default_factory=list)
