"""Mint job entities - one user request to mint N copies, split into batch items."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class MintJobStatus(str, Enum):
    """Mint job lifecycle status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class MintJobItemStatus(str, Enum):
    """Per-item status within a mint job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRYING = "retrying"


TERMINAL_JOB_STATUSES = (MintJobStatus.COMPLETED, MintJobStatus.FAILED, MintJobStatus.CANCELLED)


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid mint job or item state transition."""

    pass


class MintJob(SQLModel, table=True):
    """MintJob tracks a batched mint request from creation to a terminal state.

    Status transitions are driven by the external minting worker; this service
    only creates jobs. The transition methods exist so that any writer goes
    through the same guarded state machine.
    """

    __tablename__ = "mint_jobs"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    wallet_address: str = Field(index=True, max_length=64)
    collection_id: UUID = Field(foreign_key="collections.id", index=True)
    total_quantity: int = Field(gt=0)
    completed_quantity: int = Field(default=0, ge=0)
    failed_quantity: int = Field(default=0, ge=0)
    total_cost: float = Field(default=0, ge=0)
    status: MintJobStatus = Field(default=MintJobStatus.PENDING, index=True)
    error_message: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    started_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    def mark_processing(self) -> None:
        """Transition from pending to processing.

        Raises:
            InvalidStateTransition: If current status is not pending
        """
        if self.status != MintJobStatus.PENDING:
            raise InvalidStateTransition(
                f"Cannot mark processing from {self.status.value}. Job must be pending."
            )
        self.status = MintJobStatus.PROCESSING
        self.started_at = utcnow()
        self.updated_at = self.started_at

    def mark_completed(self) -> None:
        """Transition from processing to completed.

        Raises:
            InvalidStateTransition: If current status is not processing
        """
        if self.status != MintJobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark completed from {self.status.value}. Job must be processing."
            )
        self.status = MintJobStatus.COMPLETED
        self.completed_at = utcnow()
        self.updated_at = self.completed_at

    def mark_failed(self, error_message: str) -> None:
        """Transition from processing to failed.

        Raises:
            InvalidStateTransition: If current status is not processing
        """
        if self.status != MintJobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark failed from {self.status.value}. Job must be processing."
            )
        self.status = MintJobStatus.FAILED
        self.error_message = error_message
        self.completed_at = utcnow()
        self.updated_at = self.completed_at

    def mark_cancelled(self) -> None:
        """Cancel a pending or processing job.

        Raises:
            InvalidStateTransition: If the job is already terminal
        """
        if self.is_terminal:
            raise InvalidStateTransition(
                f"Cannot cancel job in terminal state {self.status.value}."
            )
        self.status = MintJobStatus.CANCELLED
        self.completed_at = utcnow()
        self.updated_at = self.completed_at

    def record_outcomes(self, completed: int = 0, failed: int = 0) -> None:
        """Add item outcomes to the job counters.

        Raises:
            ValueError: If the counters would exceed total_quantity
        """
        if completed < 0 or failed < 0:
            raise ValueError("Outcome counts must be non-negative")
        new_completed = self.completed_quantity + completed
        new_failed = self.failed_quantity + failed
        if new_completed + new_failed > self.total_quantity:
            raise ValueError(
                f"completed ({new_completed}) + failed ({new_failed}) exceeds "
                f"total_quantity ({self.total_quantity})"
            )
        self.completed_quantity = new_completed
        self.failed_quantity = new_failed
        self.updated_at = utcnow()


class MintJobItem(SQLModel, table=True):
    """MintJobItem is one unit of work inside a batch of a mint job."""

    __tablename__ = "mint_job_items"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mint_job_id: UUID = Field(foreign_key="mint_jobs.id", index=True)
    batch_number: int = Field(ge=1)
    status: MintJobItemStatus = Field(default=MintJobItemStatus.PENDING, index=True)
    retry_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    nft_mint_address: Optional[str] = Field(default=None, max_length=64)
    transaction_signature: Optional[str] = Field(default=None, max_length=128)
    error_message: Optional[str] = Field(default=None)
    processed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    def schedule_retry(self, error_message: str) -> None:
        """Move a failed or processing item to retrying, consuming one retry.

        Raises:
            InvalidStateTransition: If the item is not processing/failed or has
                no retries left
        """
        if self.status not in (MintJobItemStatus.PROCESSING, MintJobItemStatus.FAILED):
            raise InvalidStateTransition(
                f"Cannot retry item from {self.status.value}. Item must be processing or failed."
            )
        if self.retry_count >= self.max_retries:
            raise InvalidStateTransition(
                f"Item has exhausted its retries ({self.retry_count}/{self.max_retries})."
            )
        self.retry_count += 1
        self.error_message = error_message
        self.status = MintJobItemStatus.RETRYING
        self.updated_at = utcnow()

    def mark_completed(self, nft_mint_address: str, transaction_signature: str) -> None:
        """Record a successful mint for this item.

        Raises:
            InvalidStateTransition: If the item is already completed
            ValueError: If the mint address is empty
        """
        if self.status == MintJobItemStatus.COMPLETED:
            raise InvalidStateTransition("Item is already completed.")
        if not nft_mint_address:
            raise ValueError("nft_mint_address is required")
        self.nft_mint_address = nft_mint_address
        self.transaction_signature = transaction_signature
        self.status = MintJobItemStatus.COMPLETED
        self.processed_at = utcnow()
        self.updated_at = self.processed_at
