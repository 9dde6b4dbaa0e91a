"""
API route handlers for the hub session.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..hub import CoordinationHub
from ..models import SessionIn, SessionOut
from ..session import Session
from .deps import get_hub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["session"])


def _out(session) -> SessionOut:
    if session is None:
        return SessionOut(authenticated=False)
    return SessionOut(**session.public())


@router.get("/session", response_model=SessionOut)
async def get_session(hub: CoordinationHub = Depends(get_hub)):
    """Who the hub is signed in as."""
    return _out(hub.session)


@router.post("/session", response_model=SessionOut)
async def set_session(payload: SessionIn, hub: CoordinationHub = Depends(get_hub)):
    """Store credentials and connect the realtime channel."""
    session = Session.from_dict(payload.model_dump())
    if session is None:
        raise HTTPException(status_code=400, detail="A token or API key is required")
    await hub.set_session(session)
    return _out(session)


@router.delete("/session", response_model=SessionOut)
async def delete_session(hub: CoordinationHub = Depends(get_hub)):
    await hub.clear_session()
    return _out(None)
