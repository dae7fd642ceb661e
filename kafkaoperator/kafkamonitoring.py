"""JMX exporter configuration for the Kafka brokers."""

from __future__ import annotations

from typing import Any

from kafkaoperator.model import KafkaCluster
from kafkaoperator.templates import object_meta

BROKER_JMX_TEMPLATE = "%s-kafka-jmx-exporter"
COMPONENT_NAME = "kafka_monitoring"


def labels_for_jmx(name: str) -> dict[str, str]:
    """Labels of the broker JMX exporter resources of cluster ``name``."""
    return {"app": "kafka-jmx", "kafka_cr": name}


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """A config map holding the broker JMX exporter configuration."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(
            BROKER_JMX_TEMPLATE % cluster.name, labels_for_jmx(cluster.name), cluster
        ),
        "data": {"config.yaml": cluster.monitoring_config.kafka_jmx_exporter_config},
    }