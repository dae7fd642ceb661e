import pytest

from kafkaoperator.model import KafkaCluster
from kafkaoperator.templates import (
    object_meta,
    object_meta_cluster_scope,
    object_meta_with_annotations,
    object_meta_with_generated_name,
    object_meta_with_generated_name_and_annotations,
    owner_reference,
)


@pytest.fixture
def cluster():
    return KafkaCluster(
        name="kafka",
        namespace="kafka-ns",
        uid="uid-1",
        api_version="example.com/v1alpha1",
    )


def test_owner_reference_points_at_cluster(cluster):
    ref = owner_reference(cluster)
    assert ref["name"] == cluster.name
    assert ref["uid"] == cluster.uid
    assert ref["apiVersion"] == cluster.api_version
    assert ref["kind"] == cluster.kind
    assert ref["controller"] is True
    assert ref["blockOwnerDeletion"] is True


def test_object_meta(cluster):
    labels = {"app": "kafka"}
    meta = object_meta("kafka-0", labels, cluster)
    assert meta["name"] == "kafka-0"
    assert meta["namespace"] == cluster.namespace
    assert meta["labels"] == labels
    assert meta["ownerReferences"] == [owner_reference(cluster)]
    assert "generateName" not in meta
    assert "annotations" not in meta


def test_object_meta_copies_labels(cluster):
    labels = {"app": "kafka"}
    meta = object_meta("kafka-0", labels, cluster)
    labels["changed"] = "yes"
    assert meta["labels"] == {"app": "kafka"}


def test_generated_name(cluster):
    meta = object_meta_with_generated_name("kafka-storage-", {}, cluster)
    assert meta["generateName"] == "kafka-storage-"
    assert "name" not in meta
    assert meta["namespace"] == cluster.namespace


def test_annotations_variants(cluster):
    annotations = {"mountPath": "/kafka-logs"}
    named = object_meta_with_annotations("n", {}, annotations, cluster)
    generated = object_meta_with_generated_name_and_annotations("p-", {}, annotations, cluster)
    assert named["annotations"] == annotations
    assert generated["annotations"] == annotations
    assert named["name"] == "n"
    assert generated["generateName"] == "p-"


def test_cluster_scope_has_no_namespace(cluster):
    meta = object_meta_cluster_scope("kafka-role", {"app": "kafka"}, cluster)
    assert "namespace" not in meta
    assert meta["name"] == "kafka-role"
    assert meta["ownerReferences"][0]["name"] == cluster.name