"""Concrete retry strategies used by the chain."""

from __future__ import annotations

import httpx

from ...config import RetryPolicy
from .chain import RequestDirective, RetryChain, RetryContext, Strategy

RATE_LIMIT_STATUS = 429


def backoff_delay(policy: RetryPolicy, retry_number: int, retry_after: float | None = None) -> float:
    """Delay before the ``retry_number``-th retry (1-based), capped at ``max_delay``."""

    if retry_after is not None:
        return min(max(retry_after, 0.0), policy.max_delay)
    return min(policy.base_delay * (2 ** max(retry_number - 1, 0)), policy.max_delay)


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not worth honouring here; fall back to backoff.
        return None


class RetryBudgetStrategy(Strategy):
    """Expose the retry count from the policy to the fetch loop."""

    def before_request(self, context: RetryContext, directive: RequestDirective) -> None:
        context.max_attempts = max(1, context.policy.max_retries + 1)

    def after_success(self, context: RetryContext, response: httpx.Response) -> None:
        context.attempt = 1

    def after_failure(self, context: RetryContext, response: httpx.Response | None, error: Exception | None) -> None:
        context.attempt += 1


class RateLimitBackoffStrategy(Strategy):
    """Only 429 responses are retryable; they wait with exponential backoff."""

    def before_request(self, context: RetryContext, directive: RequestDirective) -> None:
        if context.attempt <= 1:
            return
        directive.delay = backoff_delay(context.policy, context.attempt - 1, context.retry_after)

    def after_success(self, context: RetryContext, response: httpx.Response) -> None:
        context.retry_after = None

    def after_failure(self, context: RetryContext, response: httpx.Response | None, error: Exception | None) -> None:
        if response is not None and response.status_code == RATE_LIMIT_STATUS:
            context.retryable = True
            context.retry_after = _parse_retry_after(response)


def build_chain(policy: RetryPolicy) -> tuple[RetryContext, RetryChain]:
    """Utility to build a ready-to-use chain for a single page request."""

    context = RetryContext(policy=policy)
    strategies: list[Strategy] = [
        RetryBudgetStrategy(),
        RateLimitBackoffStrategy(),
    ]
    return context, RetryChain(strategies)


__all__ = [
    "RATE_LIMIT_STATUS",
    "RateLimitBackoffStrategy",
    "RetryBudgetStrategy",
    "backoff_delay",
    "build_chain",
]
