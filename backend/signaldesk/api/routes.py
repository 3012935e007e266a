"""REST API routes."""

import logging
from typing import TYPE_CHECKING, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from signalcore.models import PAIRS, RECOMMENDED_PAIRS, TradeResult
from signaldesk.errors import ConfigurationError

if TYPE_CHECKING:
    from signaldesk.services.scheduler import SignalScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


class SelectionRequest(BaseModel):
    """Pair/timeframe selection change."""

    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    precision_mode: Optional[bool] = None


class PairResponse(BaseModel):
    symbol: str
    name: str
    payout_rate: int
    price_precision: int
    recommended: bool = False


class ResultRequest(BaseModel):
    """Trade outcome reported for a signal."""

    result: TradeResult
    exit_price: Optional[float] = None
    payout: Optional[float] = None


def get_scheduler(request: Request) -> "SignalScheduler":
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not initialized")
    return scheduler


@router.get("/status")
async def get_status(request: Request):
    """Get scheduler status and connectivity."""
    return get_scheduler(request).snapshot()


@router.get("/pairs", response_model=list[PairResponse])
async def get_pairs():
    """List supported currency pairs."""
    return [
        PairResponse(
            symbol=p.symbol,
            name=p.display_name,
            payout_rate=p.payout_rate,
            price_precision=p.price_precision,
            recommended=p.symbol in RECOMMENDED_PAIRS,
        )
        for p in PAIRS.values()
    ]


@router.get("/signals")
async def get_signals(request: Request, limit: int = Query(50, ge=1, le=500)):
    """Get the signal log (wire format, newest last)."""
    scheduler = get_scheduler(request)
    return [s.to_wire() for s in scheduler.signals[-limit:]]


@router.delete("/signals")
async def clear_signals(request: Request):
    """Clear the signal log."""
    get_scheduler(request).clear_signals()
    return {"success": True}


@router.post("/signals/{signal_id}/result")
async def record_result(request: Request, signal_id: str, body: ResultRequest):
    """Attach a trade outcome (WIN/LOSS/TIE) to a logged signal."""
    signal = get_scheduler(request).record_result(
        signal_id, body.result, exit_price=body.exit_price, payout=body.payout
    )
    if signal is None:
        raise HTTPException(status_code=404, detail=f"Signal not found: {signal_id}")
    return signal.to_wire()


@router.get("/market")
async def get_market(request: Request, limit: int = Query(100, ge=1, le=1000)):
    """Get cached bars and the current indicator snapshot."""
    scheduler = get_scheduler(request)
    return {
        "symbol": scheduler.symbol,
        "timeframe": scheduler.timeframe,
        "price": scheduler.current_price,
        "bars": [b.model_dump() for b in scheduler.series.bars[-limit:]],
        "indicators": scheduler.indicators.model_dump(by_alias=True),
    }


@router.post("/scheduler/start")
async def start_scheduler(request: Request):
    """Start periodic signal generation."""
    scheduler = get_scheduler(request)
    await scheduler.start()
    return scheduler.snapshot()


@router.post("/scheduler/stop")
async def stop_scheduler(request: Request):
    """Stop periodic signal generation."""
    scheduler = get_scheduler(request)
    await scheduler.stop()
    return scheduler.snapshot()


@router.post("/selection")
async def update_selection(request: Request, body: SelectionRequest):
    """Change the selected pair, timeframe or tick mode."""
    scheduler = get_scheduler(request)

    try:
        if body.symbol is not None:
            await scheduler.select_symbol(body.symbol)
        if body.timeframe is not None:
            await scheduler.select_timeframe(body.timeframe)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if body.precision_mode is not None:
        await scheduler.set_precision_mode(body.precision_mode)

    return scheduler.snapshot()
