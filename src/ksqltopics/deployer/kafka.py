"""Create and remove the topics of a test case on a Kafka cluster."""

from __future__ import annotations

import logging
from typing import Iterable

from confluent_kafka.admin import AdminClient, NewTopic

from ksqltopics.compiler.topics import Topic

logger = logging.getLogger(__name__)

# Default timeouts (in seconds)
DEFAULT_TIMEOUT = 10


class KafkaProvisioner:
    """Provision test-case topics on a Kafka cluster.

    Supports context manager protocol for proper resource cleanup:

        with KafkaProvisioner(bootstrap_servers) as provisioner:
            provisioner.provision(topics)
    """

    def __init__(self, bootstrap_servers: str, **kafka_config: str) -> None:
        """Initialize Kafka provisioner."""
        config = {"bootstrap.servers": bootstrap_servers}
        config.update(kafka_config)
        self.admin = AdminClient(config)
        self._closed = False

    def __enter__(self) -> "KafkaProvisioner":
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager, cleaning up resources."""
        self.close()

    def close(self) -> None:
        """Mark the provisioner closed.

        confluent_kafka AdminClient has no close method; dropping the reference
        lets it be garbage collected.
        """
        self._closed = True
        self.admin = None

    def list_topics(self) -> list[str]:
        """List all non-internal topics in the cluster."""
        metadata = self.admin.list_topics(timeout=DEFAULT_TIMEOUT)
        return [topic for topic in metadata.topics.keys() if not topic.startswith("_")]

    def create_topics(self, topics: Iterable[Topic]) -> None:
        """Create topics with their partitions and replication factor."""
        new_topics = [
            NewTopic(
                topic.name,
                num_partitions=topic.partitions,
                replication_factor=topic.replication_factor,
            )
            for topic in topics
        ]
        if not new_topics:
            return

        futures = self.admin.create_topics(new_topics)

        for name, future in futures.items():
            try:
                future.result(timeout=DEFAULT_TIMEOUT)
            except Exception as e:
                raise RuntimeError(f"Failed to create topic '{name}': {e}")

    def provision(self, topics: Iterable[Topic]) -> dict[str, str]:
        """Create the topics that do not exist yet. Returns action per topic."""
        existing = set(self.list_topics())
        actions = {}
        missing = []
        for topic in topics:
            if topic.name in existing:
                logger.info(f"Topic '{topic.name}' already exists")
                actions[topic.name] = "unchanged"
            else:
                missing.append(topic)
                actions[topic.name] = "created"

        self.create_topics(missing)
        return actions
