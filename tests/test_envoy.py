import pytest
import yaml

from kafkaoperator.envoy import (
    ADMIN_PORT,
    ENVOY_SERVICE_NAME,
    ENVOY_VOLUME_AND_CONFIG_NAME,
    config_map,
    deployment,
    generate_envoy_config,
    get_exposed_container_ports,
    get_exposed_service_ports,
    load_balancer,
)
from kafkaoperator.model import (
    BrokerConfig,
    EnvoyConfig,
    ExternalListenerConfig,
    KafkaCluster,
    ListenersConfig,
)


def _cluster(brokers=(0, 1, 2), externals=True):
    external = [
        ExternalListenerConfig(
            type="plaintext", name="external", external_starting_port=19090, container_port=9094
        )
    ]
    return KafkaCluster(
        name="kafka",
        namespace="kafka-ns",
        uid="uid-1",
        broker_configs=[BrokerConfig(id=i) for i in brokers],
        listeners_config=ListenersConfig(external_listeners=external if externals else None),
        envoy_config=EnvoyConfig(image="envoy:test"),
        service_account="svc-account",
        image_pull_secrets=["pull"],
    )


def test_envoy_config_round_trips_through_yaml():
    cluster = _cluster()
    config = yaml.safe_load(generate_envoy_config(cluster))
    assert config["admin"]["address"]["socketAddress"]["portValue"] == ADMIN_PORT
    assert config["admin"]["accessLogPath"] == "/tmp/admin_access.log"
    listeners = config["staticResources"]["listeners"]
    clusters = config["staticResources"]["clusters"]
    assert len(listeners) == len(clusters) == len(cluster.broker_configs)
    ext = cluster.listeners_config.external_listeners[0]
    for broker, listener, envoy_cluster in zip(cluster.broker_configs, listeners, clusters):
        port = listener["address"]["socketAddress"]["portValue"]
        assert port == ext.external_starting_port + broker.id
        proxy = listener["filterChains"][0]["filters"][0]
        assert proxy["name"] == "envoy.tcp_proxy"
        assert proxy["config"]["cluster"] == envoy_cluster["name"]
        host = envoy_cluster["hosts"][0]["socketAddress"]
        assert host["portValue"] == ext.container_port
        assert host["address"].endswith(".kafka-headless.kafka-ns.svc.cluster.local")
        assert envoy_cluster["type"] == "STRICT_DNS"
        assert envoy_cluster["connectTimeout"] == "0.250s"


def test_envoy_config_without_brokers_has_no_resources():
    config = yaml.safe_load(generate_envoy_config(_cluster(brokers=())))
    assert config["staticResources"] == {}


def test_envoy_config_requires_external_listener():
    with pytest.raises(IndexError):
        generate_envoy_config(_cluster(externals=False))


def test_config_map_holds_generated_config():
    cluster = _cluster()
    cm = config_map(cluster)
    assert cm["metadata"]["name"] == ENVOY_VOLUME_AND_CONFIG_NAME
    assert cm["data"]["envoy.yaml"] == generate_envoy_config(cluster)


def test_exposed_ports_match_between_container_and_service():
    cluster = _cluster()
    ext = cluster.listeners_config.external_listeners
    container = get_exposed_container_ports(ext, cluster.broker_configs)
    svc = get_exposed_service_ports(ext, cluster.broker_configs)
    assert [p["containerPort"] for p in container] == [p["port"] for p in svc]
    assert [p["name"] for p in container] == [p["name"] for p in svc]
    assert all(p["port"] == p["targetPort"] for p in svc)


def test_no_external_listeners_means_no_ports():
    assert get_exposed_container_ports(None, [BrokerConfig(id=0)]) == []
    assert get_exposed_service_ports([], [BrokerConfig(id=0)]) == []


def test_deployment_adds_admin_port_and_config_volume():
    cluster = _cluster()
    dep = deployment(cluster)
    pod = dep["spec"]["template"]["spec"]
    container = pod["containers"][0]
    assert container["image"] == "envoy:test"
    assert container["ports"][-1] == {
        "name": "envoy-admin",
        "containerPort": ADMIN_PORT,
        "protocol": "TCP",
    }
    assert len(container["ports"]) == len(cluster.broker_configs) + 1
    assert pod["volumes"][0]["configMap"]["defaultMode"] == 0o644
    assert container["volumeMounts"][0]["mountPath"] == "/etc/envoy"
    assert pod["serviceAccountName"] == "svc-account"
    assert pod["imagePullSecrets"] == [{"name": "pull"}]
    assert dep["spec"]["selector"]["matchLabels"] == dep["spec"]["template"]["metadata"]["labels"]


def test_load_balancer_service():
    cluster = _cluster()
    svc = load_balancer(cluster)
    assert svc["metadata"]["name"] == ENVOY_SERVICE_NAME
    assert svc["metadata"]["labels"] == {}
    assert svc["spec"]["type"] == "LoadBalancer"
    assert svc["spec"]["selector"] == {"app": "envoy"}
    assert svc["spec"]["ports"] == get_exposed_service_ports(
        cluster.listeners_config.external_listeners, cluster.broker_configs
    )