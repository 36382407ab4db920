from __future__ import annotations

from src.review_scheduler.review_scheduler.common.batch import ItemOutcome, chunked, run_in_chunks
from src.review_scheduler.review_scheduler.core.enums import BatchOutcome
from src.review_scheduler.review_scheduler.core.exceptions import ConflictError
from tests.fakes import FakeTransactions, Store


def test_chunked_splits_evenly_with_tail():
    assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]


def test_failed_item_is_rolled_back_and_siblings_survive():
    store = Store()
    tx = FakeTransactions(store)

    def handler(n: int):
        store.rows[n] = "written"
        if n == 2:
            raise ConflictError("two is taken")
        if n == 3:
            return ItemOutcome(BatchOutcome.SKIPPED, "odd one out")
        return None

    result = run_in_chunks([1, 2, 3, 4], handler, transactions=tx, chunk_size=3, timeout_seconds=7)

    assert [i.outcome for i in result.items] == [
        BatchOutcome.SUCCESS,
        BatchOutcome.FAILED,
        BatchOutcome.SKIPPED,
        BatchOutcome.SUCCESS,
    ]
    assert result.items[1].reason == "two is taken"
    assert sorted(store.rows) == [1, 3, 4]
    assert tx.transactions == 2
    assert tx.timeouts == [7, 7]
    assert result.to_dict()["success"] == 2
    assert result.to_dict()["failed"] == 1
    assert result.to_dict()["skipped"] == 1


def test_storage_error_fails_its_chunk_and_later_chunks_still_run():
    store = Store()
    tx = FakeTransactions(store)

    def handler(n: int):
        store.rows[n] = "written"
        if n == 3:
            raise RuntimeError("deadlock")

    result = run_in_chunks([1, 2, 3, 4, 5], handler, transactions=tx, chunk_size=2)

    assert [(i.key, i.outcome) for i in result.items] == [
        ("1", BatchOutcome.SUCCESS),
        ("2", BatchOutcome.SUCCESS),
        ("3", BatchOutcome.FAILED),
        ("4", BatchOutcome.FAILED),
        ("5", BatchOutcome.SUCCESS),
    ]
    assert "deadlock" in result.items[2].reason
    assert sorted(store.rows) == [1, 2, 5]
    assert tx.transactions == 3


def test_item_reported_before_storage_error_is_marked_failed():
    store = Store()
    tx = FakeTransactions(store)

    def handler(n: int):
        store.rows[n] = "written"
        if n == 2:
            raise RuntimeError("connection lost")

    result = run_in_chunks([1, 2], handler, transactions=tx, chunk_size=5)

    assert result.outcome_of("1") == BatchOutcome.FAILED
    assert result.failures == 2
    assert store.rows == {}


def test_detail_is_only_serialized_when_present():
    tx = FakeTransactions()
    result = run_in_chunks(
        ["a", "b"],
        lambda k: ItemOutcome(detail={"id": k}) if k == "a" else None,
        transactions=tx,
    )
    assert result.items[0].to_dict() == {"key": "a", "outcome": "success", "reason": "", "detail": {"id": "a"}}
    assert "detail" not in result.items[1].to_dict()
