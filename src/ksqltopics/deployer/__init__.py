"""Provisioning of test-case topics and schemas."""

from ksqltopics.deployer.kafka import KafkaProvisioner
from ksqltopics.deployer.schema_registry import SchemaRegistryProvisioner

__all__ = [
    "KafkaProvisioner",
    "SchemaRegistryProvisioner",
]
