"""
Sprint Planning Backend — In-Process WebSocket Broadcast Hub
==============================================================

What:  BroadcastService implementation that keeps subscriber WebSockets in
       this process and fans every published event out to all of them.
How:   Speaks the JSON hub protocol browser clients already use:
       records are JSON objects terminated by the record separator (0x1E).

Connection lifecycle:
    1. GET/POST /api/negotiate      → {url, accessToken}         (negotiate)
    2. POST /client/negotiate       → {connectionId, connectionToken, ...}
                                                                  (open_connection)
    3. WS   /client/?hub=..&id=..&access_token=..                 (serve)
         client → {"protocol": "json", "version": 1}
         server → {}
         server → {"type": 1, "target": ..., "arguments": [...]}  (publish)
         server → {"type": 6}                                     (keepalive)
         client → {"type": 7}                                     (close)

Access tokens:
    HS256 JWTs signed with HUB_ACCESS_KEY; `aud` is the client URL so a token
    minted for one hub is rejected by another. `sub` carries the client id.

Concurrency:
    The registry is only touched from the event loop. Each connection owns
    an asyncio.Lock so publish and keepalive frames never interleave on the
    same socket. A subscriber whose send fails is dropped; the publish itself
    still succeeds for everyone else.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import jwt
from pydantic import BaseModel
from starlette.websockets import WebSocket, WebSocketDisconnect

from sprintplanning.config import settings
from sprintplanning.exceptions import BroadcastError, HubAuthenticationError
from sprintplanning.schemas.sprint_planning import (
    ConnectionInfo,
    HubNegotiateResponse,
    TransportInfo,
)
from sprintplanning.services.broadcast_base import BroadcastService

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = "\x1e"

# Hub protocol message types
INVOCATION = 1
PING = 6
CLOSE = 7

TOKEN_ALGORITHM = "HS256"
POLICY_VIOLATION = 1008


def encode_record(message: Dict[str, Any]) -> str:
    """Raises ValueError for NaN/Infinity, which JSON.parse cannot read."""
    return json.dumps(message, separators=(",", ":"), allow_nan=False) + RECORD_SEPARATOR


def decode_records(payload: str) -> List[Dict[str, Any]]:
    """Split a frame into its JSON records. Raises ValueError on bad JSON."""
    return [json.loads(part) for part in payload.split(RECORD_SEPARATOR) if part.strip()]


@dataclass
class HubConnection:
    connection_id: str
    user_id: str
    websocket: WebSocket
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class WebSocketHub(BroadcastService):
    """
    Args:
        hub_name:            Hub clients subscribe to (matched case-insensitively)
        endpoint:            Public base URL of the hub client endpoints
        access_key:          HS256 signing key for access tokens
        token_ttl_seconds:   Lifetime of tokens issued by negotiate()
        keepalive_interval:  Seconds between server pings on idle sockets
    """

    def __init__(
        self,
        hub_name: str,
        endpoint: str,
        access_key: str,
        token_ttl_seconds: int = 3600,
        keepalive_interval: float = 15.0,
    ):
        self.hub_name = hub_name
        self.endpoint = endpoint.rstrip("/")
        self._access_key = access_key
        self._token_ttl = token_ttl_seconds
        self._keepalive_interval = keepalive_interval
        self._connections: Dict[str, HubConnection] = {}
        # connection token → (connection id, user id, expires at)
        self._pending: Dict[str, Tuple[str, str, float]] = {}

    # ── Credentials ───────────────────────────────────────────────────────

    @property
    def client_url(self) -> str:
        return f"{self.endpoint}/client/?hub={self.hub_name.lower()}"

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def matches_hub(self, hub: Optional[str]) -> bool:
        return bool(hub) and hub.lower() == self.hub_name.lower()

    def negotiate(self, client_id: Optional[str] = None) -> ConnectionInfo:
        now = int(time.time())
        user_id = client_id or uuid.uuid4().hex
        token = jwt.encode(
            {
                "aud": self.client_url,
                "sub": user_id,
                "iat": now,
                "exp": now + self._token_ttl,
            },
            self._access_key,
            algorithm=TOKEN_ALGORITHM,
        )
        logger.info("Issued hub access token for client %s", user_id)
        return ConnectionInfo(url=self.client_url, access_token=token)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Decode an access token issued by negotiate().

        Raises:
            HubAuthenticationError: missing, expired, tampered or foreign token.
        """
        if not token:
            raise HubAuthenticationError("Hub access token is missing")
        try:
            return jwt.decode(
                token,
                self._access_key,
                algorithms=[TOKEN_ALGORITHM],
                audience=self.client_url,
            )
        except jwt.ExpiredSignatureError as e:
            raise HubAuthenticationError("Hub access token has expired") from e
        except jwt.InvalidAudienceError as e:
            raise HubAuthenticationError("Hub access token was issued for another hub") from e
        except jwt.PyJWTError as e:
            raise HubAuthenticationError(
                context={"error_type": type(e).__name__}
            ) from e

    def open_connection(self, claims: Dict[str, Any]) -> HubNegotiateResponse:
        """Reserve a connection for a client that presented a valid token."""
        now = time.time()
        self._pending = {
            token: entry for token, entry in self._pending.items() if entry[2] > now
        }
        connection_id = uuid.uuid4().hex
        connection_token = uuid.uuid4().hex
        self._pending[connection_token] = (
            connection_id,
            claims.get("sub", connection_id),
            now + self._token_ttl,
        )
        return HubNegotiateResponse(
            connection_id=connection_id,
            connection_token=connection_token,
            negotiate_version=1,
            available_transports=[
                TransportInfo(transport="WebSockets", transfer_formats=["Text"]),
            ],
        )

    def _claim_connection(
        self, connection_token: Optional[str], claims: Dict[str, Any]
    ) -> Tuple[str, str]:
        if connection_token is None:
            return uuid.uuid4().hex, claims.get("sub", "")
        entry = self._pending.pop(connection_token, None)
        if entry is None or entry[2] <= time.time():
            raise HubAuthenticationError("Unknown or expired connection token")
        return entry[0], entry[1]

    # ── Connection handling ───────────────────────────────────────────────

    async def serve(
        self,
        websocket: WebSocket,
        access_token: Optional[str],
        connection_token: Optional[str] = None,
    ) -> None:
        """
        Run one subscriber connection until the client leaves.

        Authentication failures close the socket with 1008 before accepting.
        """
        try:
            claims = self.verify_token(access_token)
            connection_id, user_id = self._claim_connection(connection_token, claims)
        except HubAuthenticationError as e:
            logger.warning("Rejected hub connection: %s", e.message)
            await websocket.close(code=POLICY_VIOLATION)
            return

        await websocket.accept()
        try:
            error = await self._read_handshake(websocket)
        except WebSocketDisconnect:
            return
        if error:
            await websocket.send_text(encode_record({"error": error}))
            await websocket.close(code=POLICY_VIOLATION)
            return

        # Registered before the handshake reply so no publish can slip between
        connection = HubConnection(connection_id, user_id, websocket)
        self._connections[connection_id] = connection
        await self._send(connection, encode_record({}))
        logger.info(
            "Hub client %s connected as %s (%d connected)",
            user_id, connection_id, self.connection_count,
        )
        keepalive = asyncio.create_task(self._keepalive(connection))
        try:
            await self._receive_loop(connection)
        finally:
            keepalive.cancel()
            self._connections.pop(connection_id, None)
            logger.info(
                "Hub client %s disconnected (%d connected)", user_id, self.connection_count
            )

    async def _read_handshake(self, websocket: WebSocket) -> Optional[str]:
        """Returns an error message, or None when the handshake is acceptable."""
        try:
            records = decode_records(await websocket.receive_text())
        except KeyError:
            # receive_text() on a binary frame
            return "Handshake must be a text frame."
        except ValueError:
            return "Handshake was not valid JSON."
        request = records[0] if records and isinstance(records[0], dict) else {}
        if request.get("protocol") != "json":
            return f"Protocol '{request.get('protocol')}' is not supported."
        return None

    async def _receive_loop(self, connection: HubConnection) -> None:
        while True:
            try:
                payload = await connection.websocket.receive_text()
            except WebSocketDisconnect:
                return
            except KeyError:
                logger.warning("Dropping binary frame from %s", connection.connection_id)
                continue
            try:
                records = decode_records(payload)
            except ValueError:
                logger.warning("Dropping malformed frame from %s", connection.connection_id)
                continue
            for record in records:
                message_type = record.get("type") if isinstance(record, dict) else None
                if message_type == CLOSE:
                    await connection.websocket.close()
                    return
                if message_type != PING:
                    logger.debug(
                        "Ignoring client message type %s from %s",
                        message_type, connection.connection_id,
                    )

    async def _keepalive(self, connection: HubConnection) -> None:
        frame = encode_record({"type": PING})
        while True:
            await asyncio.sleep(self._keepalive_interval)
            if self._connections.get(connection.connection_id) is not connection:
                return
            await self._send(connection, frame)

    async def _send(self, connection: HubConnection, frame: str) -> None:
        try:
            async with connection.send_lock:
                await connection.websocket.send_text(frame)
        except Exception as e:
            # A dead subscriber must not fail the publish for everyone else
            logger.warning(
                "Dropping hub client %s after failed send: %s",
                connection.connection_id, str(e),
            )
            self._connections.pop(connection.connection_id, None)

    # ── Publishing ────────────────────────────────────────────────────────

    async def publish(self, target: str, arguments: Sequence[Any]) -> None:
        try:
            frame = encode_record(
                {
                    "type": INVOCATION,
                    "target": target,
                    "arguments": [
                        arg.model_dump(mode="json", by_alias=True)
                        if isinstance(arg, BaseModel) else arg
                        for arg in arguments
                    ],
                }
            )
        except (TypeError, ValueError) as e:
            raise BroadcastError(context={"target": target, "error": str(e)}) from e

        connections = list(self._connections.values())
        await asyncio.gather(*(self._send(c, frame) for c in connections))
        logger.info("Published %s to %d hub clients", target, len(connections))

    async def close_all(self) -> None:
        """Close every subscriber socket (application shutdown)."""
        for connection in list(self._connections.values()):
            try:
                await connection.websocket.close()
            except Exception as e:
                logger.debug("Close of %s failed: %s", connection.connection_id, str(e))
        self._connections.clear()


# ── Singleton Instance ────────────────────────────────────────────────────
broadcast_hub = WebSocketHub(
    hub_name=settings.hub_name,
    endpoint=settings.hub_endpoint,
    access_key=settings.hub_access_key,
    token_ttl_seconds=settings.hub_token_ttl_seconds,
)
