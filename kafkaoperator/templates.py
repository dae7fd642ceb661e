"""Object metadata shared by every resource owned by a Kafka cluster."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kafkaoperator.model import KafkaCluster


def owner_reference(cluster: KafkaCluster) -> dict[str, Any]:
    """Return the controlling owner reference pointing at ``cluster``."""
    return {
        "apiVersion": cluster.api_version,
        "kind": cluster.kind,
        "name": cluster.name,
        "uid": cluster.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def object_meta(name: str, labels: Mapping[str, str], cluster: KafkaCluster) -> dict[str, Any]:
    """Metadata with a name, the cluster's namespace, labels and owner."""
    return {
        "name": name,
        "namespace": cluster.namespace,
        "labels": dict(labels),
        "ownerReferences": [owner_reference(cluster)],
    }


def object_meta_with_generated_name(
    name_prefix: str, labels: Mapping[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """Metadata whose name is generated from ``name_prefix``."""
    return {
        "generateName": name_prefix,
        "namespace": cluster.namespace,
        "labels": dict(labels),
        "ownerReferences": [owner_reference(cluster)],
    }


def object_meta_with_annotations(
    name: str,
    labels: Mapping[str, str],
    annotations: Mapping[str, str],
    cluster: KafkaCluster,
) -> dict[str, Any]:
    """Like :func:`object_meta`, with annotations."""
    meta = object_meta(name, labels, cluster)
    meta["annotations"] = dict(annotations)
    return meta


def object_meta_with_generated_name_and_annotations(
    name_prefix: str,
    labels: Mapping[str, str],
    annotations: Mapping[str, str],
    cluster: KafkaCluster,
) -> dict[str, Any]:
    """Like :func:`object_meta_with_generated_name`, with annotations."""
    meta = object_meta_with_generated_name(name_prefix, labels, cluster)
    meta["annotations"] = dict(annotations)
    return meta


def object_meta_cluster_scope(
    name: str, labels: Mapping[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """Metadata for a cluster-scoped object: no namespace."""
    return {
        "name": name,
        "labels": dict(labels),
        "ownerReferences": [owner_reference(cluster)],
    }