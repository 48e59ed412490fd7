# utils/fanout.py
"""Fan-out/join helper with per-branch error isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BranchResult(Generic[T]):
    """Outcome of one branch: either ``value`` or ``error`` is set."""

    key: str
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or re-raise the branch's exception."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def gather_isolated(
    branches: Mapping[str, Awaitable[T]],
) -> dict[str, BranchResult[T]]:
    """Run all ``branches`` concurrently and collect results by key.

    A failing branch never cancels its siblings; its exception is captured in
    the corresponding ``BranchResult``. Cancellation of the caller still
    propagates.
    """
    keys = list(branches)
    outcomes = await asyncio.gather(
        *(branches[key] for key in keys), return_exceptions=True
    )
    results: dict[str, BranchResult[T]] = {}
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning(
                "Fan-out branch failed",
                branch=key,
                error_type=type(outcome).__name__,
                error=str(outcome),
            )
            results[key] = BranchResult(key=key, error=outcome)
        else:
            results[key] = BranchResult(key=key, value=outcome)
    return results
