"""Kubernetes resources for the cruise control instance of a Kafka cluster."""

from __future__ import annotations

from typing import Any

from kafkaoperator.kafka import ALL_BROKER_SERVICE_TEMPLATE, HEADLESS_SERVICE_TEMPLATE
from kafkaoperator.model import KafkaCluster, ListenersConfig
from kafkaoperator.templates import object_meta
from kafkaoperator.util import is_ssl_enabled_for_internal_communication

COMPONENT_NAME_TEMPLATE = "%s-cruisecontrol"
SERVICE_NAME_TEMPLATE = "%s-cruisecontrol-svc"
CONFIG_AND_VOLUME_NAME_TEMPLATE = "%s-cruisecontrol-config"
DEPLOYMENT_NAME_TEMPLATE = "%s-cruisecontrol"
KEYSTORE_VOLUME_PATH = "/var/run/secrets/java.io/keystores"
CRUISE_CONTROL_PORT = 8090
METRICS_PORT = 9020

LABEL_SELECTOR = {"app": "cruisecontrol"}

_LOG4J_PROPERTIES = """
log4j.rootLogger = INFO, FILE
    log4j.appender.FILE=org.apache.log4j.FileAppender
    log4j.appender.FILE.File=/dev/stdout
    log4j.appender.FILE.layout=org.apache.log4j.PatternLayout
    log4j.appender.FILE.layout.conversionPattern=%-6r [%15.15t] %-5p %30.30c %x - %m%n
"""

_LOG4J2_XML = """
<?xml version="1.0" encoding="UTF-8"?>
    <Configuration status="INFO">
        <Appenders>
            <File name="Console" fileName="/dev/stdout">
                <PatternLayout pattern="%d{yyy-MM-dd HH:mm:ss.SSS} [%t] %-5level %logger{36} - %msg%n"/>
            </File>
        </Appenders>
        <Loggers>
            <Root level="info">
                <AppenderRef ref="Console" />
            </Root>
        </Loggers>
    </Configuration>
"""


def generate_ssl_config(listeners: ListenersConfig) -> str:
    """Client SSL properties, present only when internal traffic uses SSL."""
    if listeners.ssl_secrets is not None and is_ssl_enabled_for_internal_communication(
        listeners.internal_listeners
    ):
        return (
            "\n"
            "security.protocol=SSL\n"
            f"ssl.truststore.location={KEYSTORE_VOLUME_PATH}/client.truststore.jks\n"
            f"ssl.keystore.location={KEYSTORE_VOLUME_PATH}/client.keystore.jks\n"
        )
    return ""


def generate_bootstrap_server(headless_enabled: bool, cluster_name: str) -> str:
    """Host name of the service cruise control bootstraps from."""
    if headless_enabled:
        return HEADLESS_SERVICE_TEMPLATE % cluster_name
    return ALL_BROKER_SERVICE_TEMPLATE % cluster_name


def _properties(cluster: KafkaCluster) -> str:
    listeners = cluster.listeners_config
    bootstrap = generate_bootstrap_server(cluster.headless_service_enabled, cluster.name)
    port = listeners.internal_listeners[0].container_port
    return (
        cluster.cruise_control_config.config
        + "\n"
        "    # The Kafka cluster to control.\n"
        f"    bootstrap.servers={bootstrap}:{port}\n"
        "    # The zookeeper connect of the Kafka cluster\n"
        f"    zookeeper.connect={','.join(cluster.zk_addresses)}/\n"
        + generate_ssl_config(listeners)
    )


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The config map holding every cruise control configuration file."""
    cc_config = cluster.cruise_control_config
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(
            CONFIG_AND_VOLUME_NAME_TEMPLATE % cluster.name, LABEL_SELECTOR, cluster
        ),
        "data": {
            "cruisecontrol.properties": _properties(cluster),
            "capacity.json": cc_config.capacity_config,
            "clusterConfigs.json": cc_config.cluster_configs,
            "log4j.properties": _LOG4J_PROPERTIES,
            "log4j2.xml": _LOG4J2_XML,
        },
    }


def service(cluster: KafkaCluster) -> dict[str, Any]:
    """The service exposing the cruise control API and its metrics."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": object_meta(SERVICE_NAME_TEMPLATE % cluster.name, LABEL_SELECTOR, cluster),
        "spec": {
            "selector": dict(LABEL_SELECTOR),
            "ports": [
                {
                    "name": "cc",
                    "port": CRUISE_CONTROL_PORT,
                    "targetPort": CRUISE_CONTROL_PORT,
                    "protocol": "TCP",
                },
                {
                    "name": "metrics",
                    "port": METRICS_PORT,
                    "targetPort": METRICS_PORT,
                    "protocol": "TCP",
                },
            ],
        },
    }