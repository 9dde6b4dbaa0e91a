"""
State carried through one fill-and-verify cycle.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from scraper.models import VehicleRecord


MAX_FILL_ATTEMPTS = 30


class Phase(str, Enum):
    IDLE = "idle"
    OBSERVING = "observing"
    FILLING = "filling"
    COMPLETING = "completing"
    VERIFIED = "verified"
    UNCERTAIN = "uncertain"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (Phase.VERIFIED, Phase.UNCERTAIN, Phase.FAILED)


class FieldStatus(str, Enum):
    NOT_FOUND = "not_found"
    FILLED = "filled"
    SKIPPED = "skipped"


@dataclass
class FillAttempt:
    """One record bound to one target page."""

    record: VehicleRecord
    max_attempts: int = MAX_FILL_ATTEMPTS
    attempts: int = 0
    phase: Phase = Phase.IDLE
    field_status: Dict[str, FieldStatus] = field(default_factory=dict)
    images_done: bool = False
    images_uploaded: int = 0
    # Checkboxes already ticked; they never hold up completion
    ticked: Set[str] = field(default_factory=set)
    reason: Optional[str] = None

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def unresolved(self) -> List[str]:
        return [k for k, v in self.field_status.items() if v != FieldStatus.FILLED]

    def is_filled(self, name: str) -> bool:
        return self.field_status.get(name) == FieldStatus.FILLED


@dataclass
class PostingOutcome:
    """Result of verifying a listing against the platform's own index."""

    vehicle_id: Optional[str]
    verified: bool
    listing_url: str
    message: str
    attempt: int = 0
    vin: Optional[str] = None
    uncertain: bool = False

    def to_message(self) -> Dict[str, Any]:
        """Wire form of the post-complete notification."""
        return {
            "action": "postComplete",
            "success": self.verified,
            "verified": self.verified,
            "uncertain": self.uncertain,
            "vin": self.vin,
            "vehicleId": self.vehicle_id,
            "listingUrl": self.listing_url,
            "message": self.message,
            "attempt": self.attempt,
        }
