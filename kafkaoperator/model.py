"""Description of a Kafka cluster as the resource builders read it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kafkaoperator.util import is_ssl_enabled_for_internal_communication


@dataclass
class StorageConfig:
    """A volume mounted into a broker, with the claim spec backing it."""

    mount_path: str
    pvc_spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class BrokerConfig:
    """One broker: its id, extra properties and storages."""

    id: int
    config: str = ""
    storage_configs: list[StorageConfig] = field(default_factory=list)


@dataclass
class InternalListenerConfig:
    """A listener used inside the Kubernetes cluster."""

    type: str
    name: str
    container_port: int
    used_for_inner_broker_communication: bool = False


@dataclass
class ExternalListenerConfig:
    """A listener exposed outside the cluster through the load balancer."""

    type: str
    name: str
    external_starting_port: int
    container_port: int


@dataclass
class SSLSecrets:
    """Where the TLS material comes from and whether it is created."""

    tls_secret_name: str = ""
    create: bool = False


@dataclass
class ListenersConfig:
    """All listeners of the cluster and its SSL settings."""

    internal_listeners: list[InternalListenerConfig] = field(default_factory=list)
    external_listeners: list[ExternalListenerConfig] | None = None
    ssl_secrets: SSLSecrets | None = None


@dataclass
class CruiseControlConfig:
    """Cruise control settings; an endpoint means an external instance."""

    cruise_control_endpoint: str = ""
    config: str = ""
    capacity_config: str = ""
    cluster_configs: str = ""


@dataclass
class MonitoringConfig:
    """JMX exporter configurations."""

    kafka_jmx_exporter_config: str = ""
    cc_jmx_exporter_config: str = ""


@dataclass
class EnvoyConfig:
    """Settings for the envoy load balancer."""

    image: str = ""


@dataclass
class KafkaCluster:
    """A Kafka cluster resource: metadata, spec and status together."""

    name: str
    namespace: str
    uid: str = ""
    api_version: str = ""
    kind: str = "KafkaCluster"
    headless_service_enabled: bool = False
    zk_addresses: list[str] = field(default_factory=list)
    broker_configs: list[BrokerConfig] = field(default_factory=list)
    listeners_config: ListenersConfig = field(default_factory=ListenersConfig)
    cruise_control_config: CruiseControlConfig = field(default_factory=CruiseControlConfig)
    monitoring_config: MonitoringConfig = field(default_factory=MonitoringConfig)
    envoy_config: EnvoyConfig = field(default_factory=EnvoyConfig)
    service_account: str = ""
    image_pull_secrets: list[str] = field(default_factory=list)
    cruise_control_topic_status: str = ""

    def internal_ssl_enabled(self) -> bool:
        """SSL secrets are set and some internal listener speaks ssl."""
        listeners = self.listeners_config
        return listeners.ssl_secrets is not None and is_ssl_enabled_for_internal_communication(
            listeners.internal_listeners
        )