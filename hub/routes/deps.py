"""
Shared route dependencies.
"""
from fastapi import HTTPException, Request

from ..hub import CoordinationHub


def get_hub(request: Request) -> CoordinationHub:
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise HTTPException(status_code=503, detail="Hub is not running")
    return hub
