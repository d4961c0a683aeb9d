"""Register inferred value schemas in Schema Registry."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import requests

from ksqltopics.compiler.topics import Topic

logger = logging.getLogger(__name__)


def value_subject(topic_name: str) -> str:
    """Subject of a topic's value schema (TopicNameStrategy)."""
    return f"{topic_name}-value"


class SchemaRegistryProvisioner:
    """Provision test-case value schemas in Schema Registry."""

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """Initialize Schema Registry provisioner."""
        self.url = url.rstrip("/")
        self.auth = (username, password) if username and password else None
        self.headers = {"Content-Type": "application/vnd.schemaregistry.v1+json"}

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> requests.Response:
        """Make a request to Schema Registry."""
        url = f"{self.url}{path}"
        kwargs.setdefault("headers", self.headers)
        if self.auth:
            kwargs["auth"] = self.auth
        kwargs.setdefault("timeout", 30)
        return requests.request(method, url, **kwargs)

    def register(self, topic: Topic) -> Optional[int]:
        """Register a topic's value schema and return the schema ID.

        Topics without a value schema are skipped and return None.
        """
        if topic.value_schema is None:
            return None

        payload = {
            "schema": topic.value_schema.schema_str,
            "schemaType": topic.value_schema.schema_type,
        }
        response = self._request(
            "POST",
            f"/subjects/{value_subject(topic.name)}/versions",
            json=payload,
        )
        response.raise_for_status()
        schema_id = response.json()["id"]
        logger.info(f"Registered schema {schema_id} for subject '{value_subject(topic.name)}'")
        return schema_id

    def provision(self, topics: Iterable[Topic]) -> dict[str, int]:
        """Register every value schema. Returns schema ID per subject."""
        registered = {}
        for topic in topics:
            schema_id = self.register(topic)
            if schema_id is not None:
                registered[value_subject(topic.name)] = schema_id
        return registered
