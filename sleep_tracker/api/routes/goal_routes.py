# sleep_tracker/api/routes/goal_routes.py
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from sleep_tracker.api.dependencies import get_repository
from sleep_tracker.core.models.data_models import Goal, GoalUpdate, TrendPeriod
from sleep_tracker.core.services.goal_service import GoalService

logger = logging.getLogger(__name__)


# Dependency
def get_goal_service(repository=Depends(get_repository)):
    return GoalService(repository)


router = APIRouter(
    prefix="/goals",
    tags=["Goals"],
    responses={404: {"description": "Not found"}}
)


@router.get("", response_model=List[Goal])
async def get_goals(service: GoalService = Depends(get_goal_service)):
    """Get all goals"""
    return await service.get_goals()


@router.get("/status", response_model=List[Dict])
async def get_goal_status(
    period: TrendPeriod = Query(TrendPeriod.DAYS_7),
    service: GoalService = Depends(get_goal_service)
):
    """Compare each goal with its metric's average over the period"""
    try:
        return await service.get_goal_status(period)
    except Exception as e:
        logger.exception("Error evaluating goals")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{metric_key}", response_model=Goal)
async def save_goal(metric_key: str, goal: GoalUpdate, service: GoalService = Depends(get_goal_service)):
    """Create or update the goal for a metric"""
    try:
        return await service.save_goal(metric_key, goal.target_value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{metric_key}", status_code=204)
async def delete_goal(metric_key: str, service: GoalService = Depends(get_goal_service)):
    """Delete the goal for a metric"""
    success = await service.delete_goal(metric_key)
    if not success:
        raise HTTPException(status_code=404, detail=f"No goal for {metric_key}")
    return None
