"""Analytics API endpoints"""
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends

from app.schemas.analytics import UpdateStatsRequest
from app.services.analytics import RECENT_ACTIVITY_LIMIT, build_dashboard, stats_tracker
from app.services.transfer_store import TransferStore, get_transfer_store

logger = structlog.get_logger()

router = APIRouter()


def _now() -> str:
    return datetime.utcnow().isoformat()


@router.get("/dashboard")
async def get_dashboard(store: TransferStore = Depends(get_transfer_store)):
    """Overview, distributions and recent activity from stored transfers"""
    summary = await store.summarize()
    recent = await store.recent(RECENT_ACTIVITY_LIMIT)
    return {
        "success": True,
        "dashboard": build_dashboard(summary, recent),
        "timestamp": _now(),
    }


@router.get("/savings-comparison")
async def get_savings_comparison():
    """BorderHop fees against traditional remittance fees"""
    return {"success": True, "comparison": stats_tracker.savings_comparison(), "timestamp": _now()}


@router.get("/performance")
async def get_performance():
    return {"success": True, "performance": stats_tracker.performance(), "timestamp": _now()}


@router.get("/insights")
async def get_insights():
    return {"success": True, "insights": stats_tracker.insights(), "timestamp": _now()}


@router.post("/update-stats")
async def update_stats(request: UpdateStatsRequest):
    """Count a transfer in the in-process statistics"""
    stats_tracker.update(
        amount=request.amount,
        destination_chain=request.destination_chain,
        intent=request.intent.value,
        fees_saved=request.fees_saved,
    )
    logger.info("Transfer statistics updated", total_transfers=stats_tracker.total_transfers)
    return {
        "success": True,
        "message": "Statistics updated successfully",
        "currentStats": stats_tracker.snapshot(),
        "timestamp": _now(),
    }


@router.get("/realtime")
async def get_realtime():
    return {"success": True, "realtime": stats_tracker.realtime(), "timestamp": _now()}
