from kafkaoperator import kafkamonitoring
from kafkaoperator.model import KafkaCluster, MonitoringConfig


def _cluster():
    return KafkaCluster(
        name="kafka",
        namespace="ns",
        uid="uid-7",
        monitoring_config=MonitoringConfig(
            kafka_jmx_exporter_config="lowercaseOutputName: true",
            cc_jmx_exporter_config="other",
        ),
    )


def test_labels_for_jmx():
    assert kafkamonitoring.labels_for_jmx("demo") == {"app": "kafka-jmx", "kafka_cr": "demo"}


def test_config_map_name_and_labels():
    config_map = kafkamonitoring.config_map(_cluster())
    meta = config_map["metadata"]
    assert meta["name"] == kafkamonitoring.BROKER_JMX_TEMPLATE % "kafka"
    assert meta["name"].endswith("-kafka-jmx-exporter")
    assert meta["namespace"] == "ns"
    assert meta["labels"] == kafkamonitoring.labels_for_jmx("kafka")


def test_config_map_data_uses_kafka_exporter_config():
    config_map = kafkamonitoring.config_map(_cluster())
    assert config_map["data"] == {"config.yaml": "lowercaseOutputName: true"}
    assert config_map["kind"] == "ConfigMap"


def test_config_map_owned_by_cluster():
    config_map = kafkamonitoring.config_map(_cluster())
    owners = config_map["metadata"]["ownerReferences"]
    assert len(owners) == 1
    assert owners[0]["uid"] == "uid-7"
    assert owners[0]["controller"] is True