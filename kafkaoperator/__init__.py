"""Kubernetes manifests, Cruise Control scaling and KafkaTopic admission checks for Kafka clusters."""

__version__ = "0.1.0"

__all__ = [
    "backoff",
    "cruisecontrol",
    "cruisecontrolmonitoring",
    "envoy",
    "kafka",
    "kafkamonitoring",
    "model",
    "scale",
    "templates",
    "util",
    "webhook",
]