"""
Marketplace posting engine: typing, form filling and verification.
"""
from .agent import PageAgent
from .channel import ContextChannel, Delivery, SendResult, guarded, is_context_destroyed
from .errors import (
    ContextInvalidated,
    ExtractionError,
    FieldNotFound,
    FillExhausted,
    UploadError,
    VerificationUncertain,
)
from .models import FieldStatus, FillAttempt, Phase, PostingOutcome
from .orchestrator import FormFillOrchestrator
from .store import KeyValueStore, PendingPostStore
from .typist import Keystroke, Typist, plan_typing
from .verify import SELLING_URL, VerificationProbe

__version__ = "1.0.0"

__all__ = [
    "PageAgent",
    "ContextChannel",
    "Delivery",
    "SendResult",
    "guarded",
    "is_context_destroyed",
    "ContextInvalidated",
    "ExtractionError",
    "FieldNotFound",
    "FillExhausted",
    "UploadError",
    "VerificationUncertain",
    "FieldStatus",
    "FillAttempt",
    "Phase",
    "PostingOutcome",
    "FormFillOrchestrator",
    "KeyValueStore",
    "PendingPostStore",
    "Keystroke",
    "Typist",
    "plan_typing",
    "SELLING_URL",
    "VerificationProbe"
]
