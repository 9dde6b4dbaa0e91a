"""
API route handlers for posting automation.
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from poster.errors import ContextInvalidated

from ..errors import BackendError, HubError, NoSession, SessionExpired
from ..hub import CoordinationHub
from ..models import AutomationStart, MarkPostedIn, MarkPostedOut, PendingPostIn, ProgressOut
from .deps import get_hub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["automation"])


@router.post("/automation/start")
async def start_automation(payload: AutomationStart, hub: CoordinationHub = Depends(get_hub)):
    """Store the vehicle as the pending post and hand it to the create tab."""
    if not payload.vehicleData:
        raise HTTPException(status_code=400, detail="vehicleData is required")
    try:
        return await hub.start_automation(payload.vehicleData, payload.vehicleId)
    except ContextInvalidated as e:
        raise HTTPException(status_code=409, detail=f"{e}. Reload the posting tab and try again.")
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="The posting tab did not answer in time")
    except HubError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/pending-post")
async def set_pending_post(payload: PendingPostIn, hub: CoordinationHub = Depends(get_hub)):
    """Store a record for the next create page that loads."""
    hub.pending.save(payload.data)
    return {"success": True}


@router.delete("/pending-post")
async def clear_pending_post(hub: CoordinationHub = Depends(get_hub)):
    hub.pending.clear()
    return {"success": True}


@router.post("/vehicles/{vehicle_id}/posted", response_model=MarkPostedOut)
async def mark_posted(vehicle_id: str, payload: MarkPostedIn, hub: CoordinationHub = Depends(get_hub)):
    try:
        return await hub.mark_posted(vehicle_id, payload.listingUrl)
    except (NoSession, SessionExpired) as e:
        raise HTTPException(status_code=401, detail=str(e))
    except BackendError as e:
        logger.error(f"Error marking vehicle {vehicle_id} as posted: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/progress", response_model=ProgressOut)
async def get_progress(
    limit: int = Query(50, ge=0, le=500),
    hub: CoordinationHub = Depends(get_hub),
):
    items = hub.recent_progress(limit)
    return ProgressOut(total=len(hub.progress), items=items)
