"""Talking to cruise control to scale and rebalance a Kafka cluster."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import requests

from kafkaoperator.backoff import ConstantBackoffConfig, ConstantBackoffPolicy, retry

log = logging.getLogger(__name__)

BASE_PATH = "kafkacruisecontrol"
REMOVE_BROKER_ACTION = "remove_broker"
CRUISE_CONTROL_STATE_ACTION = "state"
ADD_BROKER_ACTION = "add_broker"
GET_TASK_LIST_ACTION = "user_tasks"
KAFKA_CLUSTER_STATE_ACTION = "kafka_cluster_state"
REBALANCE_ACTION = "rebalance"
SERVICE_NAME_TEMPLATE = "%s-cruisecontrol-svc"
SERVICE_PORT = 8090
TASK_POLL_INTERVAL = 20.0
_REPLICA_COUNT_CEILING = 99999.0

DEFAULT_BACKOFF = ConstantBackoffConfig(delay=10.0, max_retries=5)


class CruiseControlError(Exception):
    """Cruise control could not carry out a request."""


class CruiseControlNotReadyError(CruiseControlError):
    """Cruise control has no proposal ready yet."""

    def __init__(self) -> None:
        super().__init__("cruise-control is not ready")


class CruiseControlStatusError(CruiseControlError):
    """Cruise control answered with a status other than 200."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Non 200 response from cruise-control: {status}")
        self.status = status


def generate_url(
    action: str,
    namespace: str,
    options: Mapping[str, str],
    cc_endpoint: str,
    cluster_name: str,
) -> str:
    """Build the URL of a cruise control ``action`` with its query options."""
    query = "&".join(f"{option}={value}" for option, value in options.items())
    if cc_endpoint:
        host = cc_endpoint
    else:
        host = (
            f"{SERVICE_NAME_TEMPLATE % cluster_name}.{namespace}"
            f".svc.cluster.local:{SERVICE_PORT}"
        )
    return f"http://{host}/{BASE_PATH}/{action}?{query}"


def _broker_index(broker_id: str) -> int:
    try:
        return int(broker_id)
    except ValueError:
        return 0


class CruiseControlClient:
    """Client for the cruise control instance of one Kafka cluster."""

    def __init__(
        self,
        namespace: str,
        cluster_name: str,
        cc_endpoint: str = "",
        *,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        backoff_config: ConstantBackoffConfig = DEFAULT_BACKOFF,
        task_poll_interval: float = TASK_POLL_INTERVAL,
    ) -> None:
        self.namespace = namespace
        self.cluster_name = cluster_name
        self.cc_endpoint = cc_endpoint
        self.session = session or requests.Session()
        self.sleep = sleep
        self.backoff_config = backoff_config
        self.task_poll_interval = task_poll_interval

    def _url(self, action: str, options: Mapping[str, str]) -> str:
        return generate_url(action, self.namespace, options, self.cc_endpoint, self.cluster_name)

    def _policy(self) -> ConstantBackoffPolicy:
        return ConstantBackoffPolicy(self.backoff_config, sleep=self.sleep)

    @staticmethod
    def _check(response: requests.Response) -> requests.Response:
        if response.status_code != 200:
            status = f"{response.status_code} {response.reason or ''}".strip()
            error = CruiseControlStatusError(status)
            log.error("error during talking to cruise-control: %s", error)
            raise error
        return response

    def _get(self, action: str, options: Mapping[str, str]) -> Any:
        try:
            response = self.session.get(self._url(action, options))
        except requests.RequestException:
            log.exception("error during talking to cruise-control")
            raise
        return self._check(response).json()

    def _post(self, action: str, options: Mapping[str, str]) -> requests.Response:
        try:
            response = self.session.post(
                self._url(action, options), headers={"Content-Type": "text/plain"}
            )
        except requests.RequestException:
            log.exception("error during talking to cruise-control")
            raise
        return self._check(response)

    def check_status(self) -> None:
        """Raise :class:`CruiseControlNotReadyError` unless a proposal is ready."""
        state = self._get(CRUISE_CONTROL_STATE_ACTION, {"substates": "ANALYZER", "json": "true"})
        if not state["AnalyzerState"]["isProposalReady"]:
            log.info("could not handle graceful operation because cruise-control is not ready")
            raise CruiseControlNotReadyError()

    def _cluster_state(self) -> dict[str, Any]:
        return self._get(KAFKA_CLUSTER_STATE_ACTION, {"json": "true"})["KafkaBrokerState"]

    def is_broker_ready(self, broker_id: str) -> bool:
        """Tell whether cruise control sees the broker ``broker_id`` online."""
        online = self._cluster_state()["OnlineLogDirsByBrokerId"]
        return len(online) == _broker_index(broker_id) + 1

    def broker_with_least_partitions(self) -> str:
        """Return the id of the broker holding the fewest replicas."""
        self.check_status()
        counts = self._cluster_state()["ReplicaCountByBrokerId"]
        best_broker = ""
        best_count = _REPLICA_COUNT_CEILING
        for broker_id, count in counts.items():
            if best_count > count:
                best_count = count
                best_broker = broker_id
        return best_broker

    def _post_with_retry(self, action: str, options: Mapping[str, str]) -> requests.Response:
        def attempt() -> requests.Response:
            try:
                return self._post(action, options)
            except CruiseControlStatusError:
                log.info("trying to communicate with cc")
                raise

        return retry(attempt, self._policy())

    def upscale(self, broker_id: str) -> None:
        """Move load onto the new broker ``broker_id`` once it is online."""
        self.check_status()

        def broker_ready() -> None:
            if not self.is_broker_ready(broker_id):
                raise CruiseControlError("broker is not ready yet")

        retry(broker_ready, self._policy())
        response = self._post_with_retry(
            ADD_BROKER_ACTION, {"json": "true", "dryrun": "false", "brokerid": broker_id}
        )
        log.info("Initiated upscale in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def downsize(self, broker_id: str) -> None:
        """Move every replica away from the broker ``broker_id``."""
        self.check_status()
        response = self._post_with_retry(
            REMOVE_BROKER_ACTION, {"brokerid": broker_id, "dryrun": "false", "json": "true"}
        )
        log.info("Initiated downsize in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def _rebalance(self, options: Mapping[str, str]) -> None:
        self.check_status()
        response = self._post(REBALANCE_ACTION, options)
        log.info("Initiated rebalance in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def rebalance(self) -> None:
        """Rebalance the cluster."""
        self._rebalance({"dryrun": "false", "json": "true"})

    def run_preferred_leader_election(self) -> None:
        """Move leadership back to the preferred replicas."""
        self._rebalance(
            {"dryrun": "false", "json": "true", "goals": "PreferredLeaderElectionGoal"}
        )

    def wait_for_task(self, task_id: str) -> None:
        """Look up the task ``task_id`` and wait once for each unfinished entry."""
        tasks = self._get(GET_TASK_LIST_ACTION, {"json": "true", "user_task_ids": task_id})
        for task in tasks["userTasks"]:
            if task["Status"] != "Completed":
                log.info("Cruise control task still running, taskID=%s", task_id)
                self.sleep(self.task_poll_interval)