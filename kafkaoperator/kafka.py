"""Kubernetes resources describing the Kafka brokers themselves."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from kafkaoperator.model import (
    BrokerConfig,
    InternalListenerConfig,
    KafkaCluster,
    ListenersConfig,
    StorageConfig,
)
from kafkaoperator.templates import (
    object_meta,
    object_meta_with_generated_name_and_annotations,
)
from kafkaoperator.util import merge_labels

log = logging.getLogger(__name__)

HEADLESS_SERVICE_TEMPLATE = "%s-headless"
ALL_BROKER_SERVICE_TEMPLATE = "%s-all-broker"
BROKER_CONFIG_TEMPLATE = "%s-config"
BROKER_STORAGE_TEMPLATE = "%s-storage"
METRICS_PORT = 9020

_KEYSTORE_DIR = "/var/run/secrets/java.io/keystores"


def labels_for_kafka(name: str) -> dict[str, str]:
    """Labels selecting every broker pod of the cluster ``name``."""
    return {"app": "kafka", "kafka_cr": name}


def _broker_labels(cluster: KafkaCluster, broker: BrokerConfig) -> dict[str, str]:
    return merge_labels(labels_for_kafka(cluster.name), {"brokerId": str(broker.id)})


def _service_port(name: str, port: int) -> dict[str, Any]:
    return {"name": name, "port": port, "targetPort": port, "protocol": "TCP"}


def _internal_ports(cluster: KafkaCluster) -> list[dict[str, Any]]:
    return [
        _service_port(listener.name.replace("_", ""), listener.container_port)
        for listener in cluster.listeners_config.internal_listeners
    ]


def _cluster_ip_service(
    metadata: dict[str, Any], selector: dict[str, str], ports: list[dict[str, Any]]
) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": metadata,
        "spec": {
            "type": "ClusterIP",
            "sessionAffinity": "None",
            "selector": selector,
            "ports": ports,
        },
    }


def all_broker_service(cluster: KafkaCluster) -> dict[str, Any]:
    """A service reaching every broker through the internal listeners."""
    labels = labels_for_kafka(cluster.name)
    return _cluster_ip_service(
        object_meta(ALL_BROKER_SERVICE_TEMPLATE % cluster.name, labels, cluster),
        labels_for_kafka(cluster.name),
        _internal_ports(cluster),
    )


def headless_service(cluster: KafkaCluster) -> dict[str, Any]:
    """A headless service giving each broker its own DNS name."""
    labels = labels_for_kafka(cluster.name)
    service = _cluster_ip_service(
        object_meta(HEADLESS_SERVICE_TEMPLATE % cluster.name, labels, cluster),
        labels_for_kafka(cluster.name),
        _internal_ports(cluster),
    )
    service["spec"]["clusterIP"] = "None"
    return service


def broker_service(cluster: KafkaCluster, broker: BrokerConfig) -> dict[str, Any]:
    """A service for a single broker, with its metrics port."""
    ports = _internal_ports(cluster)
    ports.append(_service_port("metrics", METRICS_PORT))
    return _cluster_ip_service(
        object_meta(f"{cluster.name}-{broker.id}", _broker_labels(cluster, broker), cluster),
        _broker_labels(cluster, broker),
        ports,
    )


def pvc(cluster: KafkaCluster, broker: BrokerConfig, storage: StorageConfig) -> dict[str, Any]:
    """A persistent volume claim for one storage of one broker."""
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": object_meta_with_generated_name_and_annotations(
            BROKER_STORAGE_TEMPLATE % cluster.name,
            _broker_labels(cluster, broker),
            {"mountPath": storage.mount_path},
            cluster,
        ),
        "spec": dict(storage.pvc_spec),
    }


def generate_super_users(users: Iterable[str]) -> list[str]:
    """Turn user names into Kafka principals."""
    return [f"User:{user}" for user in users]


def _internal_address(
    listener: InternalListenerConfig,
    broker: BrokerConfig,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> str:
    if headless_service_enabled:
        host = f"{cr_name}-{broker.id}.{cr_name}-headless.{namespace}.svc.cluster.local"
    else:
        host = f"{cr_name}-{broker.id}.{namespace}.svc.cluster.local"
    return f"{listener.name.upper()}://{host}:{listener.container_port}"


def generate_advertised_listener_config(
    broker: BrokerConfig,
    listeners: ListenersConfig,
    load_balancer_ip: str,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> str:
    """The ``advertised.listeners`` line for ``broker``."""
    advertised = [
        f"{listener.name.upper()}://{load_balancer_ip}:"
        f"{listener.external_starting_port + broker.id}"
        for listener in listeners.external_listeners or ()
    ]
    advertised.extend(
        _internal_address(listener, broker, namespace, cr_name, headless_service_enabled)
        for listener in listeners.internal_listeners
    )
    return f"advertised.listeners={','.join(advertised)}\n"


def generate_storage_config(storages: Iterable[StorageConfig]) -> str:
    """The ``log.dirs`` line listing a kafka directory on every storage."""
    mount_paths = [f"{storage.mount_path}/kafka" for storage in storages]
    return f"log.dirs={','.join(mount_paths)}\n"


def generate_listener_specific_config(listeners: ListenersConfig) -> str:
    """Protocol map, inter-broker protocol and listener lines."""
    inter_broker_type = ""
    protocol_map: list[str] = []
    listener_config: list[str] = []

    for listener in listeners.internal_listeners:
        if listener.used_for_inner_broker_communication:
            if not inter_broker_type:
                inter_broker_type = listener.type.upper()
            else:
                log.error("config error: inter broker listener name already set")
        protocol_map.append(f"{listener.name.upper()}:{listener.type.upper()}")
        listener_config.append(f"{listener.name.upper()}://:{listener.container_port}")

    for listener in listeners.external_listeners or ():
        protocol_map.append(f"{listener.name.upper()}:{listener.type.upper()}")
        listener_config.append(f"{listener.name.upper()}://:{listener.container_port}")

    return (
        f"listener.security.protocol.map={','.join(protocol_map)}\n"
        f"security.inter.broker.protocol={inter_broker_type}\n"
        f"listeners={','.join(listener_config)}\n"
    )


def get_internal_listeners(
    internal_listeners: Sequence[InternalListenerConfig],
    broker: BrokerConfig,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> list[str]:
    """Addresses of ``broker`` on each internal listener."""
    return [
        _internal_address(listener, broker, namespace, cr_name, headless_service_enabled)
        for listener in internal_listeners
    ]


def _ssl_section(cluster: KafkaCluster) -> str:
    if cluster.listeners_config.ssl_secrets is None:
        return ""
    reporter = ""
    if cluster.internal_ssl_enabled():
        reporter = (
            "\n\n"
            "cruise.control.metrics.reporter.security.protocol=SSL\n"
            "cruise.control.metrics.reporter.ssl.truststore.location="
            f"{_KEYSTORE_DIR}/client.truststore.jks\n"
            "cruise.control.metrics.reporter.ssl.keystore.location="
            f"{_KEYSTORE_DIR}/client.keystore.jks\n"
            "\n"
        )
    return (
        "\n\n"
        f"ssl.keystore.location={_KEYSTORE_DIR}/kafka.server.keystore.jks\n"
        f"ssl.truststore.location={_KEYSTORE_DIR}/kafka.server.truststore.jks\n"
        "ssl.client.auth=required\n"
        "\n"
        f"{reporter}\n"
    )


def broker_config(
    cluster: KafkaCluster,
    broker: BrokerConfig,
    load_balancer_ip: str,
    super_users: Iterable[str],
) -> str:
    """Render the server properties of ``broker``."""
    listeners = cluster.listeners_config
    bootstrap_servers = ",".join(
        get_internal_listeners(
            listeners.internal_listeners,
            broker,
            cluster.namespace,
            cluster.name,
            cluster.headless_service_enabled,
        )
    )
    advertised = generate_advertised_listener_config(
        broker,
        listeners,
        load_balancer_ip,
        cluster.namespace,
        cluster.name,
        cluster.headless_service_enabled,
    )
    return (
        "\n"
        f"{generate_listener_specific_config(listeners)}\n"
        "\n"
        f"zookeeper.connect={','.join(cluster.zk_addresses)}\n"
        "\n"
        f"{_ssl_section(cluster)}\n"
        "\n"
        "metric.reporters=com.linkedin.kafka.cruisecontrol.metricsreporter."
        "CruiseControlMetricsReporter\n"
        f"cruise.control.metrics.reporter.bootstrap.servers={bootstrap_servers}\n"
        f"broker.id={broker.id}\n"
        "\n"
        f"{generate_storage_config(broker.storage_configs)}\n"
        "\n"
        f"{advertised}\n"
        "\n"
        f"{broker.config}\n"
        f"super.users={';'.join(generate_super_users(super_users))}\n"
    )


def broker_config_map(
    cluster: KafkaCluster,
    broker: BrokerConfig,
    load_balancer_ip: str,
    super_users: Iterable[str],
) -> dict[str, Any]:
    """A config map holding the rendered configuration of ``broker``."""
    name = f"{BROKER_CONFIG_TEMPLATE % cluster.name}-{broker.id}"
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(name, labels_for_kafka(cluster.name), cluster),
        "data": {
            "broker-config": broker_config(cluster, broker, load_balancer_ip, super_users)
        },
    }