from __future__ import annotations

import httpx

from ledger_index.config import RetryPolicy
from ledger_index.engine.retry import RequestDirective, build_chain
from ledger_index.engine.retry.strategies import RateLimitBackoffStrategy, RetryBudgetStrategy, backoff_delay


def _response(status: int, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status, headers=headers, request=httpx.Request("GET", "https://ledger.test"))


def test_backoff_grows_and_caps() -> None:
    policy = RetryPolicy(base_delay=0.5, max_delay=3.0)
    assert [backoff_delay(policy, n) for n in range(1, 6)] == [0.5, 1.0, 2.0, 3.0, 3.0]


def test_retry_after_header_is_capped() -> None:
    policy = RetryPolicy(base_delay=1.0, max_delay=10.0)
    assert backoff_delay(policy, 1, retry_after=4.0) == 4.0
    assert backoff_delay(policy, 1, retry_after=120.0) == 10.0


def test_budget_strategy_controls_attempts() -> None:
    context, _chain = build_chain(RetryPolicy(max_retries=2))
    budget = RetryBudgetStrategy()
    budget.before_request(context, RequestDirective())
    assert context.max_attempts == 3
    budget.after_failure(context, None, None)
    assert context.attempt == 2
    budget.after_success(context, _response(200))
    assert context.attempt == 1


def test_only_rate_limit_is_retryable() -> None:
    context, chain = build_chain(RetryPolicy(max_retries=3))
    chain.prepare(context)
    chain.notify_failure(context, _response(503), None)
    assert not chain.should_retry(context)

    chain.notify_failure(context, _response(429, {"Retry-After": "2"}), None)
    assert chain.should_retry(context)
    assert context.retry_after == 2.0


def test_backoff_strategy_sets_delay_on_retry() -> None:
    context, chain = build_chain(RetryPolicy(max_retries=3, base_delay=1.0, max_delay=8.0))
    assert chain.prepare(context).delay is None
    chain.notify_failure(context, _response(429, {"Retry-After": "soon"}), None)
    assert context.retry_after is None
    assert chain.prepare(context).delay == 1.0
    chain.notify_failure(context, _response(429), None)
    assert chain.prepare(context).delay == 2.0


def test_success_clears_retry_after() -> None:
    context, _chain = build_chain(RetryPolicy())
    context.retry_after = 5.0
    RateLimitBackoffStrategy().after_success(context, _response(200))
    assert context.retry_after is None
