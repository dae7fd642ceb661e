# kafkaoperator

Building blocks for running Kafka clusters on Kubernetes. You describe a
cluster with dataclasses. The package turns that description into Kubernetes
manifests, drives Cruise Control to scale and rebalance the cluster, and
decides on `KafkaTopic` admission reviews.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Modules

- `kafkaoperator.model` holds the dataclasses that describe a cluster:
  `KafkaCluster`, `BrokerConfig`, `StorageConfig`, `InternalListenerConfig`,
  `ExternalListenerConfig`, `ListenersConfig`, `SSLSecrets`,
  `CruiseControlConfig`, `MonitoringConfig` and `EnvoyConfig`.
  `KafkaCluster.internal_ssl_enabled()` returns true when SSL secrets are
  set and at least one internal listener has type `ssl`.
- `kafkaoperator.templates` builds object metadata that carries a
  controlling owner reference to the cluster. It provides `owner_reference`,
  `object_meta`, `object_meta_with_generated_name`,
  `object_meta_with_annotations`,
  `object_meta_with_generated_name_and_annotations` and
  `object_meta_cluster_scope`.
- `kafkaoperator.kafka` builds the broker resources:
  - `all_broker_service`
  - `headless_service`
  - `broker_service`, one per broker, including the metrics port 9020
  - `pvc`
  - `broker_config`, the rendered broker properties, and `broker_config_map`

  It also exposes the helpers behind those properties:
  `generate_listener_specific_config`, `generate_advertised_listener_config`,
  `generate_storage_config`, `generate_super_users` and
  `get_internal_listeners`.
- `kafkaoperator.kafkamonitoring` and `kafkaoperator.cruisecontrolmonitoring`
  each provide `config_map` and `labels_for_jmx` for a JMX exporter
  configuration.
- `kafkaoperator.cruisecontrol` provides `service`, which exposes ports
  8090 and 9020, and `config_map`, which holds `cruisecontrol.properties`,
  `capacity.json`, `clusterConfigs.json` and the log4j files. It also has
  the helpers `generate_ssl_config` and `generate_bootstrap_server`.
- `kafkaoperator.envoy` provides:
  - `generate_envoy_config`, the Envoy bootstrap configuration as YAML.
    Only the first external listener is used.
  - `config_map`, `deployment` and `load_balancer`.
  - `get_exposed_container_ports` and `get_exposed_service_ports`.
- `kafkaoperator.scale` provides `CruiseControlClient` and `generate_url`.
- `kafkaoperator.webhook` provides `WebhookServer`, `not_allowed`,
  `allowed`, `ExistingTopic` and `NotFoundError`.
- `kafkaoperator.backoff` provides `retry`, `ConstantBackoffConfig`,
  `ConstantBackoffPolicy`, `mark_error_permanent`, `PermanentError` and
  `RetryError`.
- `kafkaoperator.util` holds small helpers such as `merge_labels`,
  `convert_string_to_int32` and `string_slice_remove`.

Every manifest is a plain dictionary, so you can dump it to YAML or JSON
as it is.

## Example: manifests

```python
import yaml

from kafkaoperator import kafka
from kafkaoperator.model import (
    BrokerConfig, InternalListenerConfig, KafkaCluster, ListenersConfig, StorageConfig,
)

cluster = KafkaCluster(
    name="kafka",
    namespace="kafka",
    zk_addresses=["zookeeper-client.zookeeper:2181"],
    listeners_config=ListenersConfig(
        internal_listeners=[
            InternalListenerConfig(
                type="plaintext",
                name="plaintext",
                container_port=29092,
                used_for_inner_broker_communication=True,
            ),
        ],
    ),
    broker_configs=[
        BrokerConfig(id=0, storage_configs=[StorageConfig(mount_path="/kafka-logs")]),
    ],
)

print(kafka.broker_config(cluster, cluster.broker_configs[0], "", ["CN=admin"]))
print(yaml.safe_dump(kafka.headless_service(cluster)))
```

## Example: scaling with Cruise Control

```python
from kafkaoperator.backoff import RetryError
from kafkaoperator.scale import CruiseControlClient, CruiseControlNotReadyError

client = CruiseControlClient(namespace="kafka", cluster_name="kafka")
try:
    client.upscale("3")
except CruiseControlNotReadyError:
    pass  # the analyzer has no proposal ready yet
except RetryError:
    pass  # the broker did not come online, or the request kept failing
```

By default the client calls the in-cluster service
`<cluster>-cruisecontrol-svc.<namespace>.svc.cluster.local:8090`. To use
another address, pass `cc_endpoint="host:port"`.

Other constructor options:

- `session`, a `requests.Session` to send requests through.
- `sleep`, the function used to wait.
- `backoff_config`, which defaults to a 10 second delay and 5 attempts.
- `task_poll_interval`, the wait used while a task is still running.

The client has these operations:

- `check_status`
- `is_broker_ready`
- `broker_with_least_partitions`
- `upscale`
- `downsize`
- `rebalance`
- `run_preferred_leader_election`
- `wait_for_task`

## Example: topic admission

`WebhookServer` takes three callables:

- `cluster_lookup(name, namespace)` returns a KafkaCluster resource as a
  mapping.
- `topic_lookup(name, namespace)` returns a KafkaTopic resource as a
  mapping.
- `admin_factory(cluster)` returns an object whose `get_topic(name)` method
  returns an `ExistingTopic`, or `None` when the topic does not exist.

Both lookups must raise `NotFoundError` when the resource is missing.

```python
import json

from kafkaoperator.webhook import NotFoundError, WebhookServer

def missing(name, namespace):
    raise NotFoundError(name)

server = WebhookServer(cluster_lookup=missing, topic_lookup=missing, admin_factory=None)
review = {"request": {"uid": "1", "kind": {"kind": "KafkaTopic"},
                      "object": {"metadata": {"name": "t", "namespace": "kafka"},
                                 "spec": {"name": "t", "clusterRef": {"name": "kafka"}}}}}
status, body = server.serve(json.dumps(review).encode(), "application/json")
```

`serve` takes the raw body and content type of a request and returns an
HTTP status and a response body. It answers 400 for an empty body and 415
for a content type other than `application/json`. `validate` and
`validate_kafka_topic` work on mappings that are already decoded.

## What the package does not do

- It does not apply manifests to a Kubernetes cluster and runs no
  reconcile loop. It only builds the dictionaries.
- It does not build broker pods or the Cruise Control deployment.
- It does not listen on a network port. `WebhookServer.serve` handles one
  request that you pass in.
- It has no Kubernetes API client and no Kafka admin client. You supply
  the lookups and the admin factory.
- It has no command-line entry point.

## Running the tests

```
pytest
```