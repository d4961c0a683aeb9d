"""Tests for topic and schema provisioning."""

from unittest.mock import MagicMock, patch

import pytest
from confluent_kafka.schema_registry import Schema

from ksqltopics.compiler.topics import Topic
from ksqltopics.deployer import KafkaProvisioner, SchemaRegistryProvisioner
from ksqltopics.deployer.schema_registry import value_subject

AVRO_SCHEMA = Schema(schema_str='"string"', schema_type="AVRO")


def completed_future():
    future = MagicMock()
    future.result.return_value = None
    return future


class TestKafkaProvisioner:
    """Tests for KafkaProvisioner."""

    @pytest.fixture
    def admin(self):
        with patch("ksqltopics.deployer.kafka.AdminClient") as admin_cls:
            admin = admin_cls.return_value
            admin.list_topics.return_value.topics = {
                "existing": MagicMock(),
                "_schemas": MagicMock(),
            }
            admin.create_topics.side_effect = lambda new_topics: {
                t.topic: completed_future() for t in new_topics
            }
            yield admin

    def test_config(self):
        """Bootstrap servers and extra settings reach the admin client."""
        with patch("ksqltopics.deployer.kafka.AdminClient") as admin_cls:
            KafkaProvisioner("broker:9092", **{"security.protocol": "SSL"})

        admin_cls.assert_called_once_with(
            {"bootstrap.servers": "broker:9092", "security.protocol": "SSL"}
        )

    def test_list_topics_skips_internal(self, admin):
        """Internal topics are not listed."""
        assert KafkaProvisioner("localhost:9092").list_topics() == ["existing"]

    def test_provision(self, admin):
        """Only missing topics are created."""
        with KafkaProvisioner("localhost:9092") as provisioner:
            actions = provisioner.provision([Topic("existing"), Topic("orders", 3, 1)])

        assert actions == {"existing": "unchanged", "orders": "created"}
        [new_topics] = admin.create_topics.call_args[0]
        assert [t.topic for t in new_topics] == ["orders"]
        assert new_topics[0].num_partitions == 3
        assert new_topics[0].replication_factor == 1

    def test_provision_nothing_missing(self, admin):
        """No create call when every topic exists."""
        KafkaProvisioner("localhost:9092").provision([Topic("existing")])
        admin.create_topics.assert_not_called()

    def test_create_failure(self, admin):
        """Failed creations raise RuntimeError."""
        failed = MagicMock()
        failed.result.side_effect = Exception("TOPIC_ALREADY_EXISTS")
        admin.create_topics.side_effect = None
        admin.create_topics.return_value = {"orders": failed}

        with pytest.raises(RuntimeError, match="Failed to create topic 'orders'"):
            KafkaProvisioner("localhost:9092").create_topics([Topic("orders")])

    def test_close(self, admin):
        """Leaving the context closes the provisioner."""
        with KafkaProvisioner("localhost:9092") as provisioner:
            pass
        assert provisioner.admin is None


class TestSchemaRegistryProvisioner:
    """Tests for SchemaRegistryProvisioner."""

    def test_value_subject(self):
        """Subjects follow the topic name strategy."""
        assert value_subject("orders") == "orders-value"

    def test_register(self):
        """The value schema is posted under the value subject."""
        with patch("ksqltopics.deployer.schema_registry.requests.request") as request:
            request.return_value.json.return_value = {"id": 7}

            registry = SchemaRegistryProvisioner("http://registry:8081/")
            schema_id = registry.register(Topic("orders", value_schema=AVRO_SCHEMA))

        assert schema_id == 7
        method, url = request.call_args[0]
        assert method == "POST"
        assert url == "http://registry:8081/subjects/orders-value/versions"
        assert request.call_args[1]["json"] == {"schema": '"string"', "schemaType": "AVRO"}
        assert "auth" not in request.call_args[1]

    def test_register_with_auth(self):
        """Credentials are sent as basic auth."""
        with patch("ksqltopics.deployer.schema_registry.requests.request") as request:
            request.return_value.json.return_value = {"id": 1}

            SchemaRegistryProvisioner("http://registry:8081", "user", "secret").register(
                Topic("orders", value_schema=AVRO_SCHEMA)
            )

        assert request.call_args[1]["auth"] == ("user", "secret")

    def test_register_without_schema(self):
        """Topics without a value schema are skipped."""
        with patch("ksqltopics.deployer.schema_registry.requests.request") as request:
            assert SchemaRegistryProvisioner("http://registry:8081").register(Topic("t")) is None

        request.assert_not_called()

    def test_provision(self):
        """Only topics with schemas are registered."""
        with patch("ksqltopics.deployer.schema_registry.requests.request") as request:
            request.return_value.json.return_value = {"id": 3}

            registered = SchemaRegistryProvisioner("http://registry:8081").provision(
                [Topic("plain"), Topic("orders", value_schema=AVRO_SCHEMA)]
            )

        assert registered == {"orders-value": 3}
