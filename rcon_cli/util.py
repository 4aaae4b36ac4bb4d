import os
from pathlib import Path
from typing import Callable, Optional

from .errors import ConfigError

DEFAULT_PORT = 25575

ENV_HOST = "RCON_HOST"
ENV_PORT = "RCON_PORT"
ENV_PASSWORD = "RCON_PASSWORD"

# names read by earlier releases, still honoured after the RCON_* ones
LEGACY_ENV = {
    ENV_HOST: "R2CON_HOST",
    ENV_PORT: "R2CON_PORT",
    ENV_PASSWORD: "R2CON_PASS",
}

def getenv(name: str) -> Optional[str]:
    return os.environ.get(name) or os.environ.get(LEGACY_ENV[name])

def read_properties(path: Optional[Path]) -> dict:
    props = {}
    if path is not None and path.exists():
        for line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
            line=line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                k,v = line.split("=",1)
                props[k.strip()]=v.strip()
    return props

def _int_or_none(s: Optional[str]) -> Optional[int]:
    try:
        return int(s) if s else None
    except ValueError:
        return None

def resolve_host(arg: Optional[str], ask: Callable[[str], str]) -> str:
    host = arg or getenv(ENV_HOST) or ask("Hostname: ").strip()
    if not host:
        raise ConfigError("no hostname could be read")
    return host

def resolve_port(arg: Optional[int], props: Optional[dict] = None) -> int:
    if arg is not None:
        return arg
    port = _int_or_none(getenv(ENV_PORT))
    if port is None and props:
        port = _int_or_none(props.get("rcon.port"))
    return DEFAULT_PORT if port is None else port

def resolve_password(arg: Optional[str], props: Optional[dict], ask: Callable[[str], str]) -> str:
    password = arg or getenv(ENV_PASSWORD) or (props or {}).get("rcon.password")
    if not password:
        password = ask("Password: ")
    if not password:
        raise ConfigError("no password could be read")
    return password
