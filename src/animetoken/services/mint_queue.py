"""Mint job queue: batch planning, job creation and progress derivation.

A mint request for ``quantity`` copies becomes one ``MintJob`` row plus
``quantity`` ``MintJobItem`` rows partitioned into fixed-size batches. Job and
items are written in a single unit of work, so a failure while inserting items
rolls the job back instead of leaving an orphaned pending job behind.

No minting happens here. An external worker consumes ``mint_job_items`` and
drives the status transitions; clients observe them through realtime change
events and ``get_job_progress``.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from animetoken.models.mint_job import (
    MintJob,
    MintJobItem,
    MintJobItemStatus,
    MintJobStatus,
)
from animetoken.services.exceptions import (
    CollectionUnavailable,
    InsufficientSupply,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from animetoken.services.wallet_signature import require_signed_message

logger = structlog.get_logger()

BATCH_SIZE = 50
INSERT_CHUNK_SIZE = 100
MAX_QUANTITY = 1000
SECONDS_PER_ITEM = 2.5
SIGNATURE_WINDOW_SECONDS = 300


@dataclass
class MintJobRequest:
    """Validated input of a create-mint-job call."""

    collection_id: UUID
    quantity: int
    wallet_address: str
    signature: str
    message: str
    user_id: Optional[str] = None


@dataclass
class MintJobCreated:
    """Summary returned to the client after a job is queued."""

    job_id: UUID
    total_quantity: int
    total_batches: int
    total_cost: float
    collection_name: str
    estimated_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": str(self.job_id),
            "totalQuantity": self.total_quantity,
            "totalBatches": self.total_batches,
            "totalCost": self.total_cost,
            "collectionName": self.collection_name,
            "estimatedTime": self.estimated_time,
        }


@dataclass
class JobProgress:
    """Progress of a job derived from its item rows (never persisted)."""

    job_id: UUID
    status: MintJobStatus
    total_quantity: int
    completed_items: int
    failed_items: int
    processing_items: int
    pending_items: int
    progress_percentage: float
    is_completed: bool
    is_failed: bool
    is_processing: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": str(self.job_id),
            "status": self.status.value,
            "totalQuantity": self.total_quantity,
            "completedItems": self.completed_items,
            "failedItems": self.failed_items,
            "processingItems": self.processing_items,
            "pendingItems": self.pending_items,
            "progressPercentage": self.progress_percentage,
            "isCompleted": self.is_completed,
            "isFailed": self.is_failed,
            "isProcessing": self.is_processing,
        }


def batch_number_for(item_index: int, batch_size: int = BATCH_SIZE) -> int:
    """1-based batch number of the zero-based ``item_index``."""
    return item_index // batch_size + 1


def count_batches(quantity: int, batch_size: int = BATCH_SIZE) -> int:
    return math.ceil(quantity / batch_size)


def plan_items(job_id: UUID, quantity: int, batch_size: int = BATCH_SIZE) -> list[MintJobItem]:
    """Build ``quantity`` pending items for ``job_id`` with their batch numbers."""
    return [
        MintJobItem(
            mint_job_id=job_id,
            batch_number=batch_number_for(index, batch_size),
            status=MintJobItemStatus.PENDING,
        )
        for index in range(quantity)
    ]


def calculate_total_cost(mint_price: float, quantity: int) -> float:
    """``mint_price * quantity`` computed in decimal to avoid float drift (0.1 * 3)."""
    return float(Decimal(str(mint_price or 0)) * quantity)


def estimate_time(quantity: int) -> str:
    """Coarse completion estimate at 2.5 seconds per item."""
    seconds = quantity * SECONDS_PER_ITEM
    if seconds < 60:
        return "< 1 minute"
    minutes = math.ceil(seconds / 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


def validate_quantity(quantity: int, max_quantity: int = MAX_QUANTITY) -> None:
    """Raises ValidationError unless 1 <= quantity <= max_quantity."""
    if quantity < 1 or quantity > max_quantity:
        raise ValidationError(f"Quantity must be between 1 and {max_quantity}")


def get_job_progress(job: MintJob, items: list[MintJobItem]) -> JobProgress:
    """Aggregate a job's items into a progress snapshot.

    Item counts come from the item rows. Items not yet visible to the caller
    (e.g. realtime inserts still in flight) are counted as pending, so
    completed + failed + processing + pending always equals total_quantity.
    ``progress_percentage`` follows the job's ``completed_quantity`` counter.
    """
    completed = sum(1 for item in items if item.status == MintJobItemStatus.COMPLETED)
    failed = sum(1 for item in items if item.status == MintJobItemStatus.FAILED)
    processing = sum(1 for item in items if item.status == MintJobItemStatus.PROCESSING)
    pending = max(0, job.total_quantity - completed - failed - processing)

    progress = (
        job.completed_quantity / job.total_quantity * 100 if job.total_quantity > 0 else 0.0
    )

    return JobProgress(
        job_id=job.id,
        status=job.status,
        total_quantity=job.total_quantity,
        completed_items=completed,
        failed_items=failed,
        processing_items=processing,
        pending_items=pending,
        progress_percentage=progress,
        is_completed=job.status == MintJobStatus.COMPLETED,
        is_failed=job.status == MintJobStatus.FAILED,
        is_processing=job.status == MintJobStatus.PROCESSING,
    )


class MintQueueService:
    """Creates mint jobs and reads their progress."""

    def __init__(
        self,
        uow_factory,
        batch_size: int = BATCH_SIZE,
        insert_chunk_size: int = INSERT_CHUNK_SIZE,
        max_quantity: int = MAX_QUANTITY,
        signature_window_seconds: int = SIGNATURE_WINDOW_SECONDS,
    ):
        """Initialize service.

        Args:
            uow_factory: Factory producing UnitOfWork instances
            batch_size: Items per batch (default: 50)
            insert_chunk_size: Maximum item rows per INSERT flush (default: 100)
            max_quantity: Largest quantity accepted in one request (default: 1000)
            signature_window_seconds: Freshness window of the signed message
        """
        self.uow_factory = uow_factory
        self.batch_size = batch_size
        self.insert_chunk_size = insert_chunk_size
        self.max_quantity = max_quantity
        self.signature_window_seconds = signature_window_seconds

    async def create_mint_job(self, request: MintJobRequest) -> MintJobCreated:
        """Queue a mint job for ``request.quantity`` items.

        Checks run in order: quantity bounds, message freshness, signature,
        collection existence, availability, supply. Nothing is written unless
        every check passes.

        Raises:
            ValidationError: Quantity out of range or message without timestamp
            ExpiredSignature: Message timestamp outside the freshness window
            InvalidSignature: Signature does not verify for the wallet
            NotFoundError: Collection does not exist
            CollectionUnavailable: Collection is not active and live
            InsufficientSupply: Fewer than ``quantity`` items available
        """
        validate_quantity(request.quantity, self.max_quantity)
        require_signed_message(
            request.wallet_address,
            request.message,
            request.signature,
            self.signature_window_seconds,
        )

        async with await self.uow_factory() as uow:
            collection = await uow.collections.get_for_update(request.collection_id)
            if collection is None:
                raise NotFoundError("Collection not found")
            if not collection.is_mintable:
                raise CollectionUnavailable("Collection is not available for minting")
            if not collection.has_supply_for(request.quantity):
                raise InsufficientSupply(
                    f"Only {collection.items_available} NFTs remaining in collection",
                    items_available=collection.items_available,
                    requested=request.quantity,
                )

            total_cost = calculate_total_cost(collection.mint_price, request.quantity)
            job = await uow.mint_jobs.add(
                MintJob(
                    user_id=request.user_id,
                    wallet_address=request.wallet_address,
                    collection_id=collection.id,
                    total_quantity=request.quantity,
                    total_cost=total_cost,
                    status=MintJobStatus.PENDING,
                )
            )
            items = plan_items(job.id, request.quantity, self.batch_size)
            await uow.mint_job_items.add_many(items, chunk_size=self.insert_chunk_size)
            collection_name = collection.name

        total_batches = count_batches(request.quantity, self.batch_size)
        logger.info(
            "mint_job.created",
            job_id=str(job.id),
            collection_id=str(request.collection_id),
            wallet_address=request.wallet_address,
            quantity=request.quantity,
            batches=total_batches,
            total_cost=total_cost,
        )

        return MintJobCreated(
            job_id=job.id,
            total_quantity=request.quantity,
            total_batches=total_batches,
            total_cost=total_cost,
            collection_name=collection_name,
            estimated_time=estimate_time(request.quantity),
        )

    async def list_jobs(
        self, wallet_address: str, limit: int = 50
    ) -> list[tuple[MintJob, list[MintJobItem]]]:
        """A wallet's jobs (newest first) with their items."""
        async with await self.uow_factory() as uow:
            jobs = await uow.mint_jobs.list_by_wallet(wallet_address, limit=limit)
            items_by_job = await uow.mint_job_items.list_by_jobs([job.id for job in jobs])
        return [(job, items_by_job.get(job.id, [])) for job in jobs]

    async def get_progress(self, job_id: UUID, wallet_address: Optional[str] = None) -> JobProgress:
        """Progress of one job.

        Raises:
            NotFoundError: If the job does not exist
            OwnershipError: If ``wallet_address`` is given and does not own the job
        """
        async with await self.uow_factory() as uow:
            job = await uow.mint_jobs.get_by_id(job_id)
            if job is None:
                raise NotFoundError("Mint job not found")
            if wallet_address is not None and job.wallet_address != wallet_address:
                raise OwnershipError("Mint job belongs to another wallet")
            items = await uow.mint_job_items.list_by_job(job_id)
        return get_job_progress(job, items)
