"""State transition tests for MintJob and MintJobItem models.

Tests focus on validating the mint job lifecycle state machine:
- Valid transitions between states
- Invalid transitions are rejected with clear error messages
- Counters and retry budget never exceed their bounds
"""

from uuid import uuid4

import pytest

from animetoken.models.mint_job import (
    InvalidStateTransition,
    MintJob,
    MintJobItem,
    MintJobItemStatus,
    MintJobStatus,
)


def make_job(total: int = 3) -> MintJob:
    return MintJob(wallet_address="wallet", collection_id=uuid4(), total_quantity=total)


def test_valid_job_transitions():
    """Happy path: pending → processing → completed."""
    job = make_job()
    assert job.status == MintJobStatus.PENDING

    job.mark_processing()
    assert job.status == MintJobStatus.PROCESSING
    assert job.started_at is not None

    job.record_outcomes(completed=3)
    job.mark_completed()
    assert job.status == MintJobStatus.COMPLETED
    assert job.completed_at is not None
    assert job.is_terminal


def test_invalid_job_transition_raises_exception():
    """Cannot complete a job that never started processing."""
    job = make_job()

    with pytest.raises(InvalidStateTransition) as exc_info:
        job.mark_completed()

    assert "pending" in str(exc_info.value)
    assert job.status == MintJobStatus.PENDING


def test_failed_job_keeps_error_message():
    job = make_job()
    job.mark_processing()
    job.mark_failed("RPC node unavailable")

    assert job.status == MintJobStatus.FAILED
    assert job.error_message == "RPC node unavailable"

    with pytest.raises(InvalidStateTransition):
        job.mark_processing()


def test_cancel_is_rejected_once_terminal():
    job = make_job()
    job.mark_cancelled()
    assert job.status == MintJobStatus.CANCELLED

    with pytest.raises(InvalidStateTransition):
        job.mark_cancelled()


def test_outcomes_cannot_exceed_total():
    job = make_job(total=3)
    job.record_outcomes(completed=2, failed=1)

    with pytest.raises(ValueError):
        job.record_outcomes(completed=1)

    assert job.completed_quantity == 2
    assert job.failed_quantity == 1


def test_item_retry_budget():
    """Retrying consumes the budget; the item never exceeds max_retries."""
    item = MintJobItem(
        mint_job_id=uuid4(), batch_number=1, status=MintJobItemStatus.FAILED, max_retries=2
    )

    item.schedule_retry("timeout")
    assert item.status == MintJobItemStatus.RETRYING
    assert item.retry_count == 1

    item.status = MintJobItemStatus.FAILED
    item.schedule_retry("timeout again")
    assert item.retry_count == 2

    item.status = MintJobItemStatus.FAILED
    with pytest.raises(InvalidStateTransition):
        item.schedule_retry("third failure")
    assert item.retry_count == item.max_retries


def test_pending_item_cannot_be_retried():
    item = MintJobItem(mint_job_id=uuid4(), batch_number=1)
    with pytest.raises(InvalidStateTransition):
        item.schedule_retry("not started")


def test_item_completion_records_mint():
    item = MintJobItem(mint_job_id=uuid4(), batch_number=2, status=MintJobItemStatus.PROCESSING)
    item.mark_completed("MintAddr111", "5sig")

    assert item.status == MintJobItemStatus.COMPLETED
    assert item.nft_mint_address == "MintAddr111"
    assert item.processed_at is not None

    with pytest.raises(InvalidStateTransition):
        item.mark_completed("MintAddr222", "6sig")
