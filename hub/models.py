"""
Pydantic models for API request/response serialization.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionIn(BaseModel):
    """Credentials handed over by the operator UI after sign-in."""
    token: Optional[str] = None
    apiKey: Optional[str] = None
    userId: Optional[str] = None
    role: Optional[str] = None
    organizationId: Optional[str] = None


class SessionOut(BaseModel):
    authenticated: bool
    user_id: Optional[str] = None
    role: Optional[str] = None
    organization_id: Optional[str] = None


class AutomationStart(BaseModel):
    """Vehicle to post, in wire format."""
    vehicleId: Optional[str] = None
    vehicleData: Dict[str, Any] = Field(default_factory=dict)


class PendingPostIn(BaseModel):
    data: Dict[str, Any]


class MarkPostedIn(BaseModel):
    listingUrl: str = ""


class MarkPostedOut(BaseModel):
    success: bool
    duplicate: bool = False
    data: Optional[Dict[str, Any]] = None


class ScrapeIn(BaseModel):
    url: str
    scraper: Optional[str] = None


class ProgressEntry(BaseModel):
    ts: str
    level: str = "info"
    message: str = ""
    vehicleId: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ProgressOut(BaseModel):
    total: int
    items: List[ProgressEntry]
