# sleep_tracker/api/routes/sleep_routes.py
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from sleep_tracker.api.routes.webhook_routes import get_sleep_service
from sleep_tracker.core.models.data_models import SleepEntry, SleepPreferences, TrendPeriod
from sleep_tracker.core.services.sleep_service import SleepService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sleep",
    tags=["Sleep Data"],
    responses={404: {"description": "Not found"}}
)


@router.get("/entries", response_model=List[SleepEntry])
async def get_sleep_entries(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: int = Query(30, ge=1, le=1000),
    service: SleepService = Depends(get_sleep_service)
):
    """Get sleep entries, newest first, or oldest first within a date range"""
    try:
        return await service.get_entries(limit=limit, start_date=start_date, end_date=end_date)
    except Exception as e:
        logger.exception("Error fetching sleep entries")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/entries/{sleep_date}", status_code=204)
async def delete_sleep_entry(sleep_date: str, service: SleepService = Depends(get_sleep_service)):
    """Delete the entry for one sleep night"""
    success = await service.delete_entry(sleep_date)
    if not success:
        raise HTTPException(status_code=404, detail=f"No sleep entry for {sleep_date}")
    return None


@router.get("/trends", response_model=Dict)
async def get_sleep_trends(
    period: TrendPeriod = Query(TrendPeriod.DAYS_7),
    service: SleepService = Depends(get_sleep_service)
):
    """Averages and period-over-period deltas for a trend period"""
    try:
        return await service.get_trend_summary(period)
    except Exception as e:
        logger.exception("Error summarizing sleep trends")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/preferences", response_model=SleepPreferences)
async def get_sleep_preferences(service: SleepService = Depends(get_sleep_service)):
    """Get sleep preferences (defaults when none are saved)"""
    return await service.get_preferences()


@router.post("/preferences", response_model=SleepPreferences)
async def save_sleep_preferences(
    preferences: SleepPreferences,
    service: SleepService = Depends(get_sleep_service)
):
    """Save sleep preferences"""
    try:
        return await service.save_preferences(preferences)
    except Exception as e:
        logger.exception("Error saving sleep preferences")
        raise HTTPException(status_code=500, detail=str(e))
