# rcon_cli/transport.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional, Tuple

from .errors import ConnectionClosed
from .packet import Packet, decode

READ_CHUNK = 4096

log = logging.getLogger(__name__)


class Transport:
    """Moves encoded packets over one asyncio stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self.buffer = bytearray()
        # cached so errors can still name the peer after it is gone
        self.peer_address: Optional[Tuple] = writer.get_extra_info("peername")

    async def write_packet(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as e:
            raise ConnectionClosed(self.peer_address, str(e) or type(e).__name__) from e
        log.debug("wrote %d bytes to %s", len(data), self.peer_address)

    async def read_packet(self) -> Packet:
        while True:
            packet = decode(self.buffer)
            if packet is not None:
                return packet
            try:
                chunk = await self.reader.read(READ_CHUNK)
            except OSError as e:
                raise ConnectionClosed(self.peer_address, str(e) or type(e).__name__) from e
            if not chunk:
                raise ConnectionClosed(self.peer_address)
            self.buffer.extend(chunk)

    def clear(self) -> None:
        self.buffer.clear()

    def shutdown(self) -> None:
        """Half-close the send side. Failures are ignored."""
        with contextlib.suppress(OSError, RuntimeError):
            if self.writer.can_write_eof():
                self.writer.write_eof()

    async def close(self) -> None:
        self.writer.close()
        with contextlib.suppress(OSError, RuntimeError):
            await self.writer.wait_closed()
