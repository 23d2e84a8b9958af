"""Strategy chain deciding whether and when a page request is retried."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import httpx

from ...config import RetryPolicy


@dataclass
class RequestDirective:
    """What the fetch loop should do before its next attempt."""

    delay: float | None = None


@dataclass
class RetryContext:
    """Attempt bookkeeping for one logical request."""

    policy: RetryPolicy
    attempt: int = 1
    max_attempts: int = 1
    retryable: bool = False
    retry_after: float | None = None


class Strategy(Protocol):
    def before_request(self, context: RetryContext, directive: RequestDirective) -> None:
        ...

    def after_success(self, context: RetryContext, response: httpx.Response) -> None:
        ...

    def after_failure(
        self,
        context: RetryContext,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        ...


@dataclass
class RetryChain:
    """Runs every strategy at each hook; the context carries the verdict."""

    strategies: list[Strategy] = field(default_factory=list)

    def prepare(self, context: RetryContext) -> RequestDirective:
        directive = RequestDirective()
        for strategy in self.strategies:
            strategy.before_request(context, directive)
        return directive

    def notify_success(self, context: RetryContext, response: httpx.Response) -> None:
        context.retryable = False
        for strategy in self.strategies:
            strategy.after_success(context, response)

    def notify_failure(
        self,
        context: RetryContext,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        # Strategies opt a failure back in; nothing is retryable by default.
        context.retryable = False
        for strategy in self.strategies:
            strategy.after_failure(context, response, error)

    def should_retry(self, context: RetryContext) -> bool:
        return context.retryable and context.attempt <= context.max_attempts


__all__ = ["RequestDirective", "RetryChain", "RetryContext", "Strategy"]
