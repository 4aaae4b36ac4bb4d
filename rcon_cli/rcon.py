# rcon_cli/rcon.py
from __future__ import annotations

import asyncio
import enum
import logging
import random
from typing import Optional, Tuple

from .errors import (
    AuthError,
    RconConnectionError,
    RconError,
    ResponseEncodingError,
    SessionClosed,
)
from .packet import INT32_MAX, INT32_MIN, PacketType, encode
from .transport import Transport

# Some servers (Minecraft among them) drop the connection when two packets
# arrive back to back.
PACKET_SPACING = 0.005

AUTH_FAILED_ID = -1

log = logging.getLogger(__name__)


class SessionState(enum.Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    CLOSED = "closed"


def new_packet_id(*taken: int) -> int:
    """Random signed 32-bit id, never -1 and never one of `taken`."""
    while True:
        pid = random.randint(INT32_MIN, INT32_MAX)
        if pid != AUTH_FAILED_ID and pid not in taken:
            return pid


class RconClient:
    """One authenticated RCON connection.

    Build it with `RconClient.connect(...)`. Any error during an exchange
    closes the session for good; a fresh client has to be connected.
    """

    def __init__(self, transport: Transport):
        self.transport = transport
        self.state = SessionState.CONNECTING
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(cls, host: str, port: int, password: str,
                      timeout: Optional[float] = None) -> "RconClient":
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
        except asyncio.TimeoutError as e:
            raise RconConnectionError(f"timed out connecting to {host}:{port}") from e
        except (OSError, OverflowError, ValueError) as e:
            # OverflowError: port outside 0-65535
            raise RconConnectionError(f"could not connect to {host}:{port}: {e}") from e

        client = cls(Transport(reader, writer))
        log.debug("connected to %s", client.peer_address())
        try:
            await client._login(password)
        except BaseException:
            await client.close()
            raise
        return client

    def peer_address(self) -> Optional[Tuple]:
        return self.transport.peer_address

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def send_command(self, command: str) -> str:
        async with self._lock:
            if self.state is not SessionState.READY:
                raise SessionClosed(f"session is {self.state.value}; connect again")
            return await self._guarded(PacketType.COMMAND, command)

    async def close(self) -> None:
        if self.state is not SessionState.CLOSED:
            log.debug("closing session to %s", self.peer_address())
        self.state = SessionState.CLOSED
        await self.transport.close()

    async def __aenter__(self) -> "RconClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def _login(self, password: str) -> None:
        self.state = SessionState.AUTHENTICATING
        async with self._lock:
            # the body of a successful login reply carries nothing useful
            await self._guarded(PacketType.LOGIN, password)
        self.state = SessionState.READY
        log.debug("authenticated to %s", self.peer_address())

    async def _guarded(self, packet_type: PacketType, payload: str) -> str:
        try:
            return await self._send(packet_type, payload)
        except (RconError, OSError, asyncio.CancelledError):
            # a cancelled exchange cannot be resumed either
            self.transport.shutdown()
            self.state = SessionState.CLOSED
            raise

    async def _send(self, packet_type: PacketType, payload: str) -> str:
        """Run one request/response exchange.

        The real request is followed by an empty RESPONSE packet. Servers
        answer in order, so the echo of that dummy packet marks the point at
        which every fragment of the real reply has arrived.
        """
        request_id = new_packet_id()
        dummy_id = new_packet_id(request_id)
        request = encode(packet_type, request_id, payload)
        dummy = encode(PacketType.RESPONSE, dummy_id, b"")

        self.transport.clear()
        await self.transport.write_packet(request)
        await asyncio.sleep(PACKET_SPACING)
        await self.transport.write_packet(dummy)
        await asyncio.sleep(PACKET_SPACING)
        log.debug("sent %s id=%d, dummy id=%d", packet_type.name, request_id, dummy_id)

        chunks = []
        while True:
            packet = await self.transport.read_packet()
            if packet.type is PacketType.INVALID:
                log.debug("skipping packet id=%d with unknown type", packet.id)
                continue
            if packet.id == AUTH_FAILED_ID:
                raise AuthError(self.peer_address())
            if packet.id == dummy_id:
                break
            log.debug("received %d byte fragment id=%d", len(packet.body), packet.id)
            chunks.append(packet.body)

        try:
            return b"".join(chunks).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ResponseEncodingError(f"response from {self.peer_address()} is not valid UTF-8: {e}") from e


async def connect(address: Tuple[str, int], password: str,
                  timeout: Optional[float] = None) -> RconClient:
    host, port = address
    return await RconClient.connect(host, port, password, timeout=timeout)
