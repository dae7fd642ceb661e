"""The envoy load balancer exposing brokers outside the cluster."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import yaml

from kafkaoperator.model import BrokerConfig, ExternalListenerConfig, KafkaCluster
from kafkaoperator.templates import object_meta

COMPONENT_NAME = "envoy"
ENVOY_SERVICE_NAME = "envoy-loadbalancer"
ENVOY_VOLUME_AND_CONFIG_NAME = "envoy-config"
ENVOY_DEPLOYMENT_NAME = "envoy"
ADMIN_PORT = 9901
TCP_PROXY_FILTER = "envoy.tcp_proxy"
CONNECT_TIMEOUT = "0.250s"

LABEL_SELECTOR = {"app": "envoy"}


def _socket_address(address: str, port: int) -> dict[str, Any]:
    return {"socketAddress": {"address": address, "portValue": port}}


def _listener(broker: BrokerConfig, external: ExternalListenerConfig) -> dict[str, Any]:
    return {
        "address": _socket_address("0.0.0.0", external.external_starting_port + broker.id),
        "filterChains": [
            {
                "filters": [
                    {
                        "name": TCP_PROXY_FILTER,
                        "config": {
                            "stat_prefix": f"broker_tcp-{broker.id}",
                            "cluster": f"broker-{broker.id}",
                        },
                    }
                ]
            }
        ],
    }


def _cluster(
    cluster: KafkaCluster, broker: BrokerConfig, external: ExternalListenerConfig
) -> dict[str, Any]:
    host = (
        f"{cluster.name}-{broker.id}.{cluster.name}-headless."
        f"{cluster.namespace}.svc.cluster.local"
    )
    # Round robin is the default load balancing policy and is left out.
    return {
        "name": f"broker-{broker.id}",
        "connectTimeout": CONNECT_TIMEOUT,
        "type": "STRICT_DNS",
        "http2ProtocolOptions": {},
        "hosts": [_socket_address(host, external.container_port)],
    }


def generate_envoy_config(cluster: KafkaCluster) -> str:
    """Render the envoy bootstrap configuration as YAML.

    Only the first external listener is served.
    """
    static_resources: dict[str, Any] = {}
    brokers = cluster.broker_configs
    if brokers:
        external = (cluster.listeners_config.external_listeners or [])[0]
        static_resources["listeners"] = [_listener(broker, external) for broker in brokers]
        static_resources["clusters"] = [_cluster(cluster, broker, external) for broker in brokers]

    config = {
        "admin": {
            "accessLogPath": "/tmp/admin_access.log",
            "address": _socket_address("0.0.0.0", ADMIN_PORT),
        },
        "staticResources": static_resources,
    }
    return yaml.safe_dump(config, default_flow_style=False, sort_keys=True)


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The config map holding the envoy configuration."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(ENVOY_VOLUME_AND_CONFIG_NAME, LABEL_SELECTOR, cluster),
        "data": {"envoy.yaml": generate_envoy_config(cluster)},
    }


def get_exposed_container_ports(
    external_listeners: Iterable[ExternalListenerConfig] | None,
    brokers: Sequence[BrokerConfig],
) -> list[dict[str, Any]]:
    """One container port per broker for every external listener."""
    return [
        {
            "name": f"broker-{broker.id}",
            "containerPort": listener.external_starting_port + broker.id,
            "protocol": "TCP",
        }
        for listener in external_listeners or ()
        for broker in brokers
    ]


def deployment(cluster: KafkaCluster) -> dict[str, Any]:
    """The envoy deployment, mounting its configuration."""
    ports = get_exposed_container_ports(
        cluster.listeners_config.external_listeners, cluster.broker_configs
    )
    ports.append({"name": "envoy-admin", "containerPort": ADMIN_PORT, "protocol": "TCP"})
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": object_meta(ENVOY_DEPLOYMENT_NAME, LABEL_SELECTOR, cluster),
        "spec": {
            "selector": {"matchLabels": dict(LABEL_SELECTOR)},
            "template": {
                "metadata": {"labels": dict(LABEL_SELECTOR)},
                "spec": {
                    "serviceAccountName": cluster.service_account,
                    "imagePullSecrets": [
                        {"name": secret} for secret in cluster.image_pull_secrets
                    ],
                    "containers": [
                        {
                            "name": "envoy",
                            "image": cluster.envoy_config.image,
                            "ports": ports,
                            "volumeMounts": [
                                {
                                    "name": ENVOY_VOLUME_AND_CONFIG_NAME,
                                    "mountPath": "/etc/envoy",
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": ENVOY_VOLUME_AND_CONFIG_NAME,
                            "configMap": {
                                "name": ENVOY_VOLUME_AND_CONFIG_NAME,
                                "defaultMode": 0o644,
                            },
                        }
                    ],
                },
            },
        },
    }


def get_exposed_service_ports(
    external_listeners: Iterable[ExternalListenerConfig] | None,
    brokers: Sequence[BrokerConfig],
) -> list[dict[str, Any]]:
    """One service port per broker for every external listener."""
    ports = []
    for listener in external_listeners or ():
        for broker in brokers:
            port = listener.external_starting_port + broker.id
            ports.append(
                {
                    "name": f"broker-{broker.id}",
                    "port": port,
                    "targetPort": port,
                    "protocol": "TCP",
                }
            )
    return ports


def load_balancer(cluster: KafkaCluster) -> dict[str, Any]:
    """The load balancer service in front of envoy."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": object_meta(ENVOY_SERVICE_NAME, {}, cluster),
        "spec": {
            "selector": {"app": "envoy"},
            "type": "LoadBalancer",
            "ports": get_exposed_service_ports(
                cluster.listeners_config.external_listeners, cluster.broker_configs
            ),
        },
    }