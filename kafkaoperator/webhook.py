"""Admission webhook validating KafkaTopic resources."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

log = logging.getLogger(__name__)

KAFKA_TOPIC_KIND = "KafkaTopic"
_API_FAILURE = "API failure while validating topic, please try again"


class NotFoundError(Exception):
    """A looked-up resource does not exist."""


@dataclass(frozen=True)
class ExistingTopic:
    """A topic as it already exists on a Kafka cluster."""

    num_partitions: int
    replication_factor: int


class TopicAdmin(Protocol):
    """What the webhook needs from a Kafka admin connection."""

    def get_topic(self, name: str) -> ExistingTopic | None: ...


def not_allowed(msg: str) -> dict[str, Any]:
    """An admission response rejecting the request with ``msg``."""
    return {"allowed": False, "status": {"metadata": {}, "message": msg}}


def allowed() -> dict[str, Any]:
    """An admission response letting the request through."""
    return {"allowed": True}


def _marked_for_deletion(obj: Mapping[str, Any]) -> bool:
    return bool(obj.get("metadata", {}).get("deletionTimestamp"))


def _http_error(status: int, message: str) -> tuple[int, bytes]:
    return status, f"{message}\n".encode()


class WebhookServer:
    """Validates admission reviews.

    ``cluster_lookup(name, namespace)`` and ``topic_lookup(name, namespace)``
    return resources as mappings and raise :class:`NotFoundError` when they
    are missing; ``admin_factory(cluster)`` connects to the cluster.
    """

    def __init__(
        self,
        cluster_lookup: Callable[[str, str], Mapping[str, Any]],
        topic_lookup: Callable[[str, str], Mapping[str, Any]],
        admin_factory: Callable[[Mapping[str, Any]], TopicAdmin],
    ) -> None:
        self.cluster_lookup = cluster_lookup
        self.topic_lookup = topic_lookup
        self.admin_factory = admin_factory

    def validate(self, review: Mapping[str, Any]) -> dict[str, Any]:
        """Validate the request of an admission review."""
        request = review["request"]
        kind = request.get("kind", {}).get("kind", "")
        log.info(
            "AdmissionReview for Kind=%s, Namespace=%s Name=%s UID=%s patchOperation=%s",
            kind,
            request.get("namespace", ""),
            request.get("name", ""),
            request.get("uid", ""),
            request.get("operation", ""),
        )
        if kind == KAFKA_TOPIC_KIND:
            topic = request.get("object")
            if not isinstance(topic, Mapping):
                log.error("Could not unmarshal raw object")
                return not_allowed("object is not a KafkaTopic")
            return self.validate_kafka_topic(topic)
        return not_allowed(f"Unexpected resource kind: {kind}")

    def serve(
        self, body: bytes, content_type: str, method: str = "POST", path: str = "/validate"
    ) -> tuple[int, bytes]:
        """Handle one HTTP request, returning its status and body."""
        if not body:
            log.error("empty body")
            return _http_error(400, "empty body")
        if content_type != "application/json":
            log.error("invalid content type: Content-Type=%s, expect application/json", content_type)
            return _http_error(415, "invalid Content-Type, expect `application/json`")

        request: Mapping[str, Any] | None = None
        try:
            review = json.loads(body)
            if not isinstance(review, dict) or not isinstance(review.get("request"), dict):
                raise ValueError("admission review has no request")
        except ValueError as err:
            log.error("Can't decode body: %s", err)
            response = not_allowed(str(err))
        else:
            request = review["request"]
            log.info("%s %s", method, path)
            response = self.validate(review)

        response = dict(response)
        if request is not None:
            response = {"uid": request.get("uid", ""), **response}
        log.info("Ready to write response ...")
        return 200, json.dumps({"response": response}).encode()

    def validate_kafka_topic(self, topic: Mapping[str, Any]) -> dict[str, Any]:
        """Check that a KafkaTopic may be created or changed."""
        topic = copy.deepcopy(dict(topic))
        metadata = topic.get("metadata", {})
        spec = topic.setdefault("spec", {})
        cluster_ref = spec.setdefault("clusterRef", {})
        log.info("Doing pre-admission validation of kafka topic %s", spec.get("name", ""))

        if not cluster_ref.get("namespace"):
            cluster_ref["namespace"] = metadata.get("namespace", "")
        cluster_name = cluster_ref.get("name", "")

        try:
            cluster = self.cluster_lookup(cluster_name, cluster_ref["namespace"])
        except NotFoundError:
            if _marked_for_deletion(topic):
                log.info("Deleted as a result of a cluster deletion")
                return allowed()
            log.error("Referenced kafka cluster does not exist")
            return not_allowed(
                f"KafkaCluster '{cluster_name}' in the namespace "
                f"'{cluster_ref['namespace']}' does not exist"
            )
        except Exception:
            log.exception("API failure while running topic validation")
            return not_allowed(_API_FAILURE)

        if _marked_for_deletion(cluster):
            log.info("Cluster is going down for deletion, assuming a delete topic request")
            return allowed()

        try:
            admin = self.admin_factory(cluster)
        except Exception:
            log.exception("Failed to connect to kafka cluster")
            return not_allowed(f"Failed to connect to kafka cluster: {cluster_name}")

        try:
            existing = admin.get_topic(spec.get("name", ""))
        except Exception:
            log.exception("Failed to list topics")
            return not_allowed(f"Failed to list topics for kafka cluster: {cluster_name}")

        if existing is not None:
            try:
                self.topic_lookup(metadata.get("name", ""), metadata.get("namespace", ""))
            except NotFoundError:
                log.info(
                    "User attempted to create topic with name that already exists "
                    "in the kafka cluster"
                )
                return not_allowed(
                    f"Topic '{spec.get('name', '')}' already exists on kafka cluster "
                    f"'{cluster_name}'"
                )
            except Exception:
                log.exception("API failure while running topic validation")
                return not_allowed(_API_FAILURE)

            partitions = spec.get("partitions", 0)
            if existing.num_partitions > partitions:
                log.info(
                    "Spec is requesting partition decrease from %s to %s, rejecting",
                    existing.num_partitions,
                    partitions,
                )
                return not_allowed(
                    "Kafka does not support decreasing partition count on an existing topic"
                )

            replication = spec.get("replicationFactor", 0)
            if existing.replication_factor != replication:
                log.info(
                    "Spec is requesting replication factor change from %s to %s, rejecting",
                    existing.replication_factor,
                    replication,
                )
                return not_allowed(
                    "Kafka does not support changing the replication factor on an existing topic"
                )

        return allowed()