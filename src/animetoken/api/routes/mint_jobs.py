"""Mint job queue endpoints.

- POST /functions/v1/create-mint-job - Queue a signed mint request
- POST /functions/v1/get-mint-jobs - A wallet's jobs with their items
- POST /functions/v1/get-mint-job-progress - Progress of one job

Creating a job requires an ed25519 signature of the mint message by the
paying wallet. A bearer token is optional; when present its user id is
recorded on the job.
"""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from animetoken.api.dependencies import get_mint_queue_service, get_optional_user
from animetoken.api.errors import success
from animetoken.api.validators import OptionalWalletAddress, WalletAddress
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.exceptions import AppError, InternalError
from animetoken.services.mint_queue import MintJobRequest, MintQueueService, get_job_progress

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["mint-jobs"])


class CamelModel(BaseModel):
    """Accepts both camelCase (client) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateMintJobRequest(CamelModel):
    collection_id: UUID
    quantity: int = Field(..., description="Number of items to mint (1-1000)")
    wallet_address: WalletAddress
    signature: str = Field(..., min_length=1, description="Base58 ed25519 signature")
    message: str = Field(..., min_length=1, description="Signed mint message")


class GetMintJobsRequest(CamelModel):
    wallet_address: WalletAddress
    limit: int = Field(default=50, ge=1, le=200)


class GetMintJobProgressRequest(CamelModel):
    job_id: UUID
    wallet_address: OptionalWalletAddress = None


@router.post("/create-mint-job")
async def create_mint_job(
    request: CreateMintJobRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: MintQueueService = Depends(get_mint_queue_service),
) -> dict:
    """Queue a mint job.

    Example:
        POST /functions/v1/create-mint-job
        {
            "collectionId": "6f1c...",
            "quantity": 120,
            "walletAddress": "9xQe...",
            "signature": "5VfY...",
            "message": "Mint 120 item(s) from collection 6f1c... on ANIME.TOKEN.\\n\\nTimestamp: 1718000000000"
        }

        Response 200:
        {
            "success": true,
            "jobId": "...",
            "totalQuantity": 120,
            "totalBatches": 3,
            "totalCost": 1.2,
            "collectionName": "Neon Ronin",
            "estimatedTime": "5 minutes"
        }
    """
    try:
        created = await service.create_mint_job(
            MintJobRequest(
                collection_id=request.collection_id,
                quantity=request.quantity,
                wallet_address=request.wallet_address,
                signature=request.signature,
                message=request.message,
                user_id=user.user_id if user else None,
            )
        )
        return success(**created.to_dict())
    except AppError as e:
        logger.warning(
            "mint_job.rejected",
            wallet_address=request.wallet_address,
            collection_id=str(request.collection_id),
            quantity=request.quantity,
            code=e.code,
            error=e.message,
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_creating_mint_job",
            wallet_address=request.wallet_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to create mint job. Please try again later.") from e


@router.post("/get-mint-jobs")
async def get_mint_jobs(
    request: GetMintJobsRequest,
    service: MintQueueService = Depends(get_mint_queue_service),
) -> dict:
    """List a wallet's jobs, newest first, each with its items and progress."""
    jobs = await service.list_jobs(request.wallet_address, limit=request.limit)
    return success(
        jobs=[
            {
                **job.model_dump(mode="json"),
                "progress": get_job_progress(job, items).to_dict(),
                "items": [item.model_dump(mode="json") for item in items],
            }
            for job, items in jobs
        ]
    )


@router.post("/get-mint-job-progress")
async def get_mint_job_progress(
    request: GetMintJobProgressRequest,
    service: MintQueueService = Depends(get_mint_queue_service),
) -> dict:
    progress = await service.get_progress(request.job_id, request.wallet_address)
    return success(**progress.to_dict())
