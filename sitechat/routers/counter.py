from fastapi import APIRouter, Depends, HTTPException, status

from sitechat.dependencies import get_counter
from sitechat.logging_config import get_logger
from sitechat.schemas.counter import CounterResponse
from sitechat.services.counter_service import LiveCounter

logger = get_logger("counter_router")

router = APIRouter(prefix="/api")


@router.get("/live-counter", response_model=CounterResponse)
async def live_counter(counter: LiveCounter = Depends(get_counter)):
    """Current visitor count. Advances the counter if an increment is overdue."""
    try:
        counter.maybe_increment()
        return CounterResponse(**counter.snapshot())
    except Exception as e:
        logger.error(f"Live counter failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
