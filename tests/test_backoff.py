from itertools import islice

import pytest

from kafkaoperator.backoff import (
    ConstantBackoffConfig,
    ConstantBackoffPolicy,
    PermanentError,
    RetryError,
    mark_error_permanent,
    retry,
)


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def _policy(delay=10.0, max_retries=0, max_elapsed_time=0.0):
    recorder = _Recorder()
    config = ConstantBackoffConfig(
        delay=delay, max_retries=max_retries, max_elapsed_time=max_elapsed_time
    )
    return ConstantBackoffPolicy(config, sleep=recorder), recorder


def test_delays_respect_max_retries():
    policy, _ = _policy(delay=10.0, max_retries=5)
    delays = list(policy.delays())
    assert len(delays) == 5
    assert delays[0] == 0.0
    assert all(d == 10.0 for d in delays[1:])


def test_delays_unlimited_without_limits():
    policy, _ = _policy(delay=2.0)
    delays = list(islice(policy.delays(), 50))
    assert len(delays) == 50
    assert delays[1:] == [2.0] * 49


def test_delays_respect_max_elapsed_time():
    policy, _ = _policy(delay=10.0, max_elapsed_time=25.0)
    delays = list(policy.delays())
    assert sum(delays) <= 25.0
    assert len(delays) == 3


def test_retry_returns_after_transient_failures():
    policy, recorder = _policy(delay=3.0, max_retries=5)
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ValueError("not yet")
        return "done"

    assert retry(flaky, policy) == "done"
    assert len(attempts) == 3
    assert recorder.calls == [3.0, 3.0]


def test_retry_gives_up_with_last_error():
    policy, recorder = _policy(delay=1.0, max_retries=4)
    errors = []

    def failing():
        err = RuntimeError(f"failure {len(errors)}")
        errors.append(err)
        raise err

    with pytest.raises(RetryError) as info:
        retry(failing, policy)
    assert len(errors) == 4
    assert info.value.last_error is errors[-1]
    assert info.value.__cause__ is errors[-1]
    assert info.value.permanent is False
    assert str(info.value).startswith("all attempts failed: ")
    assert len(recorder.calls) == 3


def test_retry_stops_on_permanent_error():
    policy, recorder = _policy(delay=1.0, max_retries=10)
    inner = KeyError("gone")
    calls = []

    def fatal():
        calls.append(1)
        raise mark_error_permanent(inner)

    with pytest.raises(RetryError) as info:
        retry(fatal, policy)
    assert calls == [1]
    assert recorder.calls == []
    assert info.value.permanent is True
    assert info.value.last_error is inner
    assert info.value.message == "permanent error happened during retrying"


def test_mark_error_permanent_wraps_error():
    err = ValueError("boom")
    marked = mark_error_permanent(err)
    assert isinstance(marked, PermanentError)
    assert marked.error is err
    assert str(marked) == str(err)