"""Exception taxonomy tagged with the reconciliation stage that failed."""

from __future__ import annotations

from enum import Enum
from typing import Any


class Stage(str, Enum):
    """Pipeline stage an error originated from."""

    CONFIG = "config"
    FETCH = "fetch"
    NORMALIZE = "normalize"
    EXISTENCE_CHECK = "existence_check"


class LedgerIndexError(Exception):
    """Base error for everything raised by the index engine."""

    stage: Stage = Stage.FETCH

    def __init__(
        self,
        message: str,
        *,
        stage: Stage | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.args[0]}"


class FetchError(LedgerIndexError):
    """Non-retryable failure while paging through a ledger feed."""

    stage = Stage.FETCH

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class RateLimitExceededError(FetchError):
    """The service kept answering 429 after the retry budget was spent."""


class MalformedPageError(FetchError):
    """A page payload was not a JSON object."""


class MalformedMetadataError(LedgerIndexError):
    """A record's metadata blob could not be parsed."""

    stage = Stage.NORMALIZE

    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(
            f"Unparseable metadata for {identifier}: {reason}",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class ExistenceCheckError(LedgerIndexError):
    """The batch tombstone lookup failed."""

    stage = Stage.EXISTENCE_CHECK


class ConfigError(LedgerIndexError):
    stage = Stage.CONFIG


__all__ = [
    "ConfigError",
    "ExistenceCheckError",
    "FetchError",
    "LedgerIndexError",
    "MalformedMetadataError",
    "MalformedPageError",
    "RateLimitExceededError",
    "Stage",
]
