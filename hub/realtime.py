"""
Realtime channel to the backend over Socket.IO.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import socketio

from .session import Session

logger = logging.getLogger(__name__)


START_POSTING_EVENT = "start-posting-vehicle"
REGISTER_EVENT = "register-client"

StartPosting = Callable[[str, Dict[str, Any]], Awaitable[Any]]


class RealtimeChannel:
    """
    Socket.IO client with automatic reconnection.

    Every (re)connect registers this client again; ``start-posting-vehicle``
    events are handed to ``on_start_posting``.
    """

    def __init__(self, url: str, on_start_posting: StartPosting, reconnection_delay: float = 5.0,
                 client: Optional[socketio.AsyncClient] = None):
        self.url = url
        self.on_start_posting = on_start_posting
        self.sio = client or socketio.AsyncClient(
            reconnection=True,
            reconnection_delay=reconnection_delay,
            logger=False,
        )
        self.session: Optional[Session] = None
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on(START_POSTING_EVENT, self._on_start_posting)

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    async def connect(self, session: Session) -> None:
        self.session = session
        if self.connected:
            await self.sio.disconnect()
        auth = {"token": session.token, "apiKey": session.api_key}
        logger.info("Connecting realtime channel to %s", self.url)
        await self.sio.connect(self.url, auth=auth, transports=["websocket", "polling"])

    async def disconnect(self) -> None:
        self.session = None
        if self.connected:
            await self.sio.disconnect()

    async def _on_connect(self):
        logger.info("Realtime channel connected")
        if self.session is not None:
            await self.sio.emit(REGISTER_EVENT, {
                "userId": self.session.user_id,
                "organizationId": self.session.organization_id,
                "clientType": "posting-hub",
            })

    async def _on_disconnect(self, *args):
        logger.warning("Realtime channel disconnected; client will reconnect")

    async def _on_start_posting(self, data: Dict[str, Any]):
        data = data or {}
        vehicle_id = data.get("vehicleId")
        vehicle = data.get("vehicleData") or {}
        if not vehicle_id and not vehicle:
            logger.warning("Ignoring %s without a vehicle", START_POSTING_EVENT)
            return
        logger.info("Backend requested posting of vehicle %s", vehicle_id)
        await self.on_start_posting(vehicle_id, vehicle)
