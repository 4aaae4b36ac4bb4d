# rcon_cli/packet.py
"""
RCON packet codec.

Wire layout (little-endian, no padding):

    [size:i32][id:i32][type:i32][body:size-10][0x00][0x00]

`size` counts everything after the size field itself, so a packet takes
`size + 4` bytes on the wire. The codec does no I/O.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .errors import MalformedPacket, RequestEncodingError, SizeOverflow

SIZE_FIELD = struct.Struct("<i")
HEADER = struct.Struct("<iii")
TERMINATOR = b"\x00\x00"

# id + type + terminator
MIN_PACKET_SIZE = 10
MAX_PACKET_SIZE = 2**31 - 1
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1


class PacketType(IntEnum):
    RESPONSE = 0
    COMMAND = 2
    LOGIN = 3
    INVALID = -2

    @classmethod
    def from_wire(cls, value: int) -> "PacketType":
        if value in (cls.RESPONSE, cls.COMMAND, cls.LOGIN):
            return cls(value)
        return cls.INVALID


@dataclass(frozen=True)
class Packet:
    id: int
    type: PacketType
    body: bytes = b""

    @property
    def size(self) -> int:
        return len(self.body) + MIN_PACKET_SIZE

    def encode(self) -> bytes:
        return encode(self.type, self.id, self.body)


def encode(packet_type: PacketType, packet_id: int, payload: Union[str, bytes]) -> bytes:
    """Build the wire bytes for one packet.

    Text payloads are encoded as UTF-8. Raises SizeOverflow when the payload
    cannot be described by the signed 32-bit size field, and
    RequestEncodingError for text that has no UTF-8 form (lone surrogates).
    """
    if packet_type == PacketType.INVALID:
        raise ValueError("cannot encode a packet of INVALID type")
    if not INT32_MIN <= packet_id <= INT32_MAX:
        raise ValueError(f"packet id {packet_id} does not fit in 32 bits")

    if isinstance(payload, str):
        try:
            body = payload.encode("utf-8")
        except UnicodeEncodeError as e:
            raise RequestEncodingError(f"request is not valid UTF-8 text: {e}") from e
    else:
        body = bytes(payload)
    size = len(body) + MIN_PACKET_SIZE
    if size > MAX_PACKET_SIZE:
        raise SizeOverflow(f"payload of {len(body)} bytes is too large for one packet")

    return HEADER.pack(size, packet_id, int(packet_type)) + body + TERMINATOR


def decode(buffer: bytearray) -> Optional[Packet]:
    """Pop one complete packet off the front of `buffer`.

    Returns None when the buffer does not hold a whole packet yet; the buffer
    is left untouched in that case. Raises MalformedPacket if the declared
    size is below the protocol minimum.
    """
    if len(buffer) < SIZE_FIELD.size:
        return None

    (size,) = SIZE_FIELD.unpack_from(buffer, 0)
    if size < MIN_PACKET_SIZE:
        raise MalformedPacket(f"declared packet size {size} is below the minimum of {MIN_PACKET_SIZE}")
    if size > len(buffer) - SIZE_FIELD.size:
        return None

    _, packet_id, raw_type = HEADER.unpack_from(buffer, 0)
    end = SIZE_FIELD.size + size
    body = bytes(buffer[HEADER.size:end - len(TERMINATOR)])
    del buffer[:end]
    return Packet(id=packet_id, type=PacketType.from_wire(raw_type), body=body)
