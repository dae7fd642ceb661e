from kafkaoperator.cruisecontrolmonitoring import (
    CRUISE_CONTROL_JMX_TEMPLATE,
    config_map,
    labels_for_jmx,
)
from kafkaoperator.model import KafkaCluster, MonitoringConfig


def _cluster():
    return KafkaCluster(
        name="kafka",
        namespace="kafka-ns",
        uid="uid-1",
        monitoring_config=MonitoringConfig(
            kafka_jmx_exporter_config="kafka: 1", cc_jmx_exporter_config="cc: 1"
        ),
    )


def test_labels_for_jmx():
    assert labels_for_jmx("kafka") == {"app": "cruisecontrol-jmx", "kafka_cr": "kafka"}


def test_config_map_uses_cc_exporter_config():
    cm = config_map(_cluster())
    assert cm["data"] == {"config.yaml": "cc: 1"}


def test_config_map_metadata():
    cm = config_map(_cluster())
    meta = cm["metadata"]
    assert meta["name"] == CRUISE_CONTROL_JMX_TEMPLATE % "kafka"
    assert meta["namespace"] == "kafka-ns"
    assert meta["labels"] == labels_for_jmx("kafka")
    assert meta["ownerReferences"][0]["uid"] == "uid-1"