#!/usr/bin/env python3
from __future__ import annotations
import argparse, asyncio, getpass, logging, sys
from pathlib import Path
from typing import List, Optional
from rcon_cli.errors import AuthError, ConfigError, RconError, format_address
from rcon_cli.rcon import RconClient
from rcon_cli.util import DEFAULT_PORT, read_properties, resolve_host, resolve_password, resolve_port

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

# --- output helpers ----------------------------------------------------------

def prompt(text: str) -> str:
    return input(text).strip()

def prompt_secret(text: str) -> str:
    return getpass.getpass(text)

def err(silent: bool, *lines: str) -> None:
    if silent: return
    for line in lines:
        print(line, file=sys.stderr, flush=True)

# --- command runners ---------------------------------------------------------

async def run_command(client: RconClient, command: str, silent: bool) -> None:
    try:
        out = await client.send_command(command)
    except RconError as e:
        err(silent, "An error occurred while sending the command:", f"Error: {e}")
        raise
    if out and not silent:
        print(out, flush=True)

async def command_loop(client: RconClient, commands: List[str], silent: bool, wait_time: float) -> None:
    for i, command in enumerate(commands):
        await run_command(client, command, silent)
        if i != len(commands) - 1 and wait_time > 0:
            await asyncio.sleep(wait_time)

async def interactive_loop(client: RconClient, silent: bool) -> None:
    from rcon_cli.rcon_ui import run_plain, run_rcon_ui
    if not silent:
        print(f"Connected to {format_address(client.peer_address())}")
        print("Type 'quit' to close.", flush=True)
    try:
        if sys.stdin.isatty() and sys.stdout.isatty():
            await run_rcon_ui(client, silent)
        else:
            await run_plain(client, sys.stdin, silent)
    except RconError as e:
        err(silent, "An error occurred while sending the command:", f"Error: {e}")
        raise

async def run(args) -> int:
    silent = args.silent
    props = read_properties(args.properties) if args.properties else {}
    try:
        host = resolve_host(args.host, prompt)
        port = resolve_port(args.port, props)
        password = resolve_password(args.password, props, prompt_secret)
    except (ConfigError, EOFError) as e:
        err(silent, f"error: {str(e) or 'no input could be read'}")
        return EXIT_FAILURE

    try:
        client = await RconClient.connect(host, port, password, timeout=args.timeout)
    except AuthError as e:
        err(silent, f"wrong password: {e}")
        return EXIT_FAILURE
    except RconError as e:
        err(silent, f"connection error: {e}")
        return EXIT_FAILURE

    interactive = args.interactive or not args.commands
    async with client:
        try:
            await command_loop(client, args.commands, silent, args.wait_time)
            if interactive:
                await interactive_loop(client, silent)
        except RconError:
            return EXIT_FAILURE
    return EXIT_OK

# --- argparse ----------------------------------------------------------------

def build_parser():
    p = argparse.ArgumentParser(prog="rconcli.py", description="Send commands to a server over RCON.")
    p.add_argument("-H", "--host", help="RCON server hostname (env RCON_HOST)")
    p.add_argument("-p", "--port", type=int, help=f"RCON port (env RCON_PORT) [default: {DEFAULT_PORT}]")
    p.add_argument("-P", "--password", help="RCON server password (env RCON_PASSWORD)")
    p.add_argument("--properties", type=Path, help="read rcon.port / rcon.password from a server.properties file")
    p.add_argument("-s", "--silent", action="store_true", help="Suppress output")
    p.add_argument("-w", "--wait-time", type=float, default=0.0,
                   help="Wait time between commands in seconds (only affects non-interactive mode)")
    p.add_argument("-i", "--interactive", action="store_true",
                   help="Enable interactive mode after commands are finished")
    p.add_argument("-t", "--timeout", type=float, default=5.0, help="Connect timeout in seconds")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("commands", nargs="*", help="commands to run")
    return p

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

if __name__ == "__main__":
    raise SystemExit(main())
