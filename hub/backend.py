"""
HTTP client for the backend collaborator.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import BackendError, SessionExpired
from .session import Session

logger = logging.getLogger(__name__)


PLATFORM = "facebook_marketplace"


class BackendClient:
    """Thin async wrapper over the backend's REST endpoints."""

    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, session: Optional[Session], **kwargs) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if session is not None:
            headers.update(session.auth_headers())
        try:
            resp = await self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e
        if resp.status_code in (401, 403):
            raise SessionExpired(f"{method} {path} rejected with {resp.status_code}")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} {path} returned {e.response.status_code}: {e.response.text[:200]}",
                status_code=e.response.status_code,
            ) from e
        return resp

    async def mark_posted(self, session: Session, vehicle_id: str, listing_url: str) -> Dict[str, Any]:
        resp = await self._request(
            "POST",
            f"/vehicles/{vehicle_id}/posted",
            session,
            json={"platform": PLATFORM, "action": "post", "listingUrl": listing_url},
        )
        logger.info("Backend acknowledged vehicle %s as posted", vehicle_id)
        return _json(resp)

    async def validate_key(self, session: Session) -> Dict[str, Any]:
        """Raises SessionExpired on 401/403 and BackendError on anything else."""
        resp = await self._request("GET", "/auth/validate-key", session)
        return _json(resp)

    async def log_activity(self, session: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request("POST", "/logs/activity", session, json=payload)
        return _json(resp)


def _json(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}
