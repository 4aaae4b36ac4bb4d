# rcon_cli/errors.py
from __future__ import annotations

from typing import Optional, Tuple


def format_address(address: Optional[Tuple]) -> str:
    if not address:
        return "<unknown>"
    host, port = address[0], address[1]
    if ":" in str(host):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class RconError(Exception):
    """Base class for everything the RCON engine raises."""


class RconConnectionError(RconError):
    """The TCP connection could not be established."""


class AuthError(RconError):
    def __init__(self, address: Optional[Tuple] = None):
        self.address = address
        super().__init__(f"could not authenticate to {format_address(address)}")


class ConnectionClosed(RconError):
    def __init__(self, address: Optional[Tuple] = None, reason: Optional[str] = None):
        self.address = address
        msg = f"connection to {format_address(address)} closed"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MalformedPacket(RconError):
    """Declared packet size is below the protocol minimum."""


class ResponseEncodingError(RconError):
    """Response bytes are not valid UTF-8."""


class SizeOverflow(RconError):
    """Payload does not fit the 32-bit size field."""


class SessionClosed(RconError):
    """The session is no longer usable; connect again."""


class ConfigError(RconError):
    """Host, port or password could not be determined."""


class RequestEncodingError(RconError):
    """Request text cannot be encoded as UTF-8."""
