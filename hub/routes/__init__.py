"""
Route package initialization.
"""
from .automation import router as automation_router
from .scrape import router as scrape_router
from .session import router as session_router

__all__ = ["automation_router", "scrape_router", "session_router"]
