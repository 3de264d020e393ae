"""Server-Sent Events stream of committed row changes.

GET /realtime/v1/{table}?column=value streams INSERT/UPDATE/DELETE events for
one watched table, filtered by column equality on the query string, e.g.
``/realtime/v1/mint_job_items?mint_job_id=<uuid>``.
"""

import json

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from animetoken.api.dependencies import get_broker
from animetoken.services.exceptions import NotFoundError
from animetoken.services.realtime import ChangeBroker

logger = structlog.get_logger()
router = APIRouter(prefix="/realtime/v1", tags=["realtime"])

KEEPALIVE_SECONDS = 15.0


@router.get("/{table}")
async def stream_changes(
    table: str, request: Request, broker: ChangeBroker = Depends(get_broker)
) -> StreamingResponse:
    filters = dict(request.query_params)
    try:
        subscription = broker.subscribe(table, filters)
    except ValueError as e:
        raise NotFoundError(str(e)) from e

    logger.info("realtime.stream_opened", table=table, filters=filters)

    async def event_stream():
        try:
            yield ": connected\n\n"
            while not await request.is_disconnected():
                change = await subscription.get(timeout=KEEPALIVE_SECONDS)
                if change is None:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: {change.event_type}\ndata: {json.dumps(change.to_dict())}\n\n"
        finally:
            broker.unsubscribe(subscription)
            logger.info("realtime.stream_closed", table=table, dropped=subscription.dropped)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
