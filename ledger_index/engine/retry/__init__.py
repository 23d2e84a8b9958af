"""Rate-limit retry chain for ledger page requests."""

from .chain import RequestDirective, RetryChain, RetryContext
from .strategies import build_chain

__all__ = ["RequestDirective", "RetryChain", "RetryContext", "build_chain"]
