"""Per-item results for bulk operations.

Atomicity is per chunk: each chunk runs in its own transaction and each item
inside it runs under a savepoint, so one bad item is rolled back and reported
without aborting its siblings. A storage-level failure of the chunk itself
rolls the whole chunk back; every item in it is reported failed and the next
chunk still runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from ..core.constants import BATCH_CHUNK_SIZE, BATCH_TRANSACTION_TIMEOUT_SECONDS
from ..core.enums import BatchOutcome
from ..core.exceptions import DomainError
from .transactions import TransactionManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BatchItemResult:
    key: str
    outcome: BatchOutcome
    reason: str = ""
    detail: Optional[dict] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"key": self.key, "outcome": self.outcome.value, "reason": self.reason}
        if self.detail:
            out["detail"] = self.detail
        return out


@dataclass
class BatchResult:
    items: list[BatchItemResult] = field(default_factory=list)

    def add(self, key: str, outcome: BatchOutcome, reason: str = "", detail: Optional[dict] = None) -> None:
        self.items.append(BatchItemResult(key=str(key), outcome=outcome, reason=reason, detail=detail))

    def success(self, key: str, reason: str = "", detail: Optional[dict] = None) -> None:
        self.add(key, BatchOutcome.SUCCESS, reason, detail)

    def failed(self, key: str, reason: str) -> None:
        self.add(key, BatchOutcome.FAILED, reason)

    def skipped(self, key: str, reason: str) -> None:
        self.add(key, BatchOutcome.SKIPPED, reason)

    def _count(self, outcome: BatchOutcome) -> int:
        return sum(1 for i in self.items if i.outcome == outcome)

    @property
    def succeeded(self) -> int:
        return self._count(BatchOutcome.SUCCESS)

    @property
    def failures(self) -> int:
        return self._count(BatchOutcome.FAILED)

    @property
    def skips(self) -> int:
        return self._count(BatchOutcome.SKIPPED)

    def outcome_of(self, key: str) -> Optional[BatchOutcome]:
        for i in self.items:
            if i.key == str(key):
                return i.outcome
        return None

    def to_dict(self) -> dict:
        return {
            "success": self.succeeded,
            "failed": self.failures,
            "skipped": self.skips,
            "items": [i.to_dict() for i in self.items],
        }


@dataclass(frozen=True)
class ItemOutcome:
    """What a batch handler reports for one item when it did not raise."""

    outcome: BatchOutcome = BatchOutcome.SUCCESS
    reason: str = ""
    detail: Optional[dict] = None


def chunked(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    size = max(1, int(size))
    for i in range(0, len(items), size):
        yield items[i : i + size]


def run_in_chunks(
    items: Sequence[T],
    handler: Callable[[T], Optional[ItemOutcome]],
    *,
    transactions: TransactionManager,
    key: Callable[[T], str] = str,
    chunk_size: int = BATCH_CHUNK_SIZE,
    timeout_seconds: int = BATCH_TRANSACTION_TIMEOUT_SECONDS,
    result: Optional[BatchResult] = None,
) -> BatchResult:
    result = result if result is not None else BatchResult()

    for chunk in chunked(list(items), chunk_size):
        keys = [key(item) for item in chunk]
        done = BatchResult()
        try:
            with transactions.transaction(timeout_seconds=timeout_seconds):
                for item, item_key in zip(chunk, keys):
                    try:
                        with transactions.savepoint():
                            out = handler(item) or ItemOutcome()
                    except DomainError as e:
                        logger.warning("batch item %s failed: %s", item_key, e)
                        done.failed(item_key, str(e))
                        continue
                    done.add(item_key, out.outcome, out.reason, out.detail)
        except Exception as e:
            # The whole chunk rolled back, including items already reported.
            logger.exception("batch chunk %s..%s rolled back", keys[0], keys[-1])
            for item_key in keys:
                result.failed(item_key, f"chunk rolled back: {e}")
            continue
        result.items.extend(done.items)

    return result
