import pytest

from ftw_ai.retry import retry


def flaky(failures, exc=ConnectionError):
    def fn():
        fn.calls += 1
        if fn.calls <= failures:
            raise exc("transient")
        return "ok"

    fn.calls = 0
    return fn


def test_single_attempt_by_default():
    sleeps = []
    fn = flaky(1)
    wrapped = retry(sleep=sleeps.append)(fn)

    with pytest.raises(ConnectionError):
        wrapped()
    assert fn.calls == 1
    assert sleeps == []


def test_retries_until_success_with_backoff():
    sleeps = []
    fn = flaky(2)
    wrapped = retry(max_attempts=3, base_delay=1.0, jitter=False, sleep=sleeps.append)(fn)

    assert wrapped() == "ok"
    assert fn.calls == 3
    assert sleeps == [1.0, 2.0]


def test_delay_is_capped():
    sleeps = []
    fn = flaky(3)
    wrapped = retry(
        max_attempts=4, base_delay=10, max_delay=15, jitter=False, sleep=sleeps.append
    )(fn)

    assert wrapped() == "ok"
    assert sleeps == [10, 15, 15]


def test_non_retryable_errors_propagate_immediately():
    sleeps = []
    fn = flaky(1, exc=ValueError)
    wrapped = retry(max_attempts=3, retryable=(ConnectionError,), sleep=sleeps.append)(fn)

    with pytest.raises(ValueError):
        wrapped()
    assert fn.calls == 1
    assert sleeps == []


def test_gives_up_after_max_attempts():
    sleeps = []
    fn = flaky(5)
    wrapped = retry(max_attempts=2, jitter=False, sleep=sleeps.append)(fn)

    with pytest.raises(ConnectionError):
        wrapped()
    assert fn.calls == 2
    assert len(sleeps) == 1
