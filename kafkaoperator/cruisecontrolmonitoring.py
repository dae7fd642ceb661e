"""JMX exporter configuration for cruise control."""

from __future__ import annotations

from typing import Any

from kafkaoperator.model import KafkaCluster
from kafkaoperator.templates import object_meta

CRUISE_CONTROL_JMX_TEMPLATE = "%s-cc-jmx-exporter"
COMPONENT_NAME = "cruisecontrol_monitoring"


def labels_for_jmx(name: str) -> dict[str, str]:
    """Labels of the cruise control JMX exporter resources of cluster ``name``."""
    return {"app": "cruisecontrol-jmx", "kafka_cr": name}


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """A config map holding the cruise control JMX exporter configuration."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(
            CRUISE_CONTROL_JMX_TEMPLATE % cluster.name, labels_for_jmx(cluster.name), cluster
        ),
        "data": {"config.yaml": cluster.monitoring_config.cc_jmx_exporter_config},
    }