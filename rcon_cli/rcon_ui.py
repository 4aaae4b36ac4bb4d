# rcon_cli/rcon_ui.py
from __future__ import annotations

import asyncio
from typing import List, Optional, TextIO

from prompt_toolkit.application import Application
from prompt_toolkit.document import Document
from prompt_toolkit.filters import has_focus
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Label, TextArea

from .errors import RconError, format_address
from .rcon import RconClient

QUIT_WORD = "quit"
LOG_TRIM_LIMIT = 2_000_000  # keep last ~2MB in the in-memory text area


async def run_rcon_ui(client: RconClient, silent: bool = False) -> None:
    """Fullscreen RCON console: output pane + an input bar.

    Returns when the user quits. The first RconError ends the console and is
    raised again here, since the session is gone by then.
    """
    # Output view (not focusable so user can't type into it, but NOT read_only)
    log = TextArea(
        style="class:log",
        focusable=False,
        scrollbar=True,
        wrap_lines=False,
        read_only=False,  # <-- allow programmatic inserts
    )
    input_field = TextArea(height=1, prompt="> ", multiline=False)
    status = Label(
        text=f"RCON {format_address(client.peer_address())}    (type '{QUIT_WORD}', Ctrl-C or Esc to exit)",
        style="class:status",
    )

    kb = KeyBindings()
    failures: List[RconError] = []
    busy = asyncio.Lock()

    @kb.add("enter", filter=has_focus(input_field))
    async def _(event) -> None:
        cmd = (input_field.text or "").strip()
        input_field.buffer.document = Document(text="")
        if not cmd:
            return
        if cmd == QUIT_WORD:
            _exit(event.app)
            return
        # one exchange at a time, even if enter is hit again mid-command
        async with busy:
            if client.closed:
                return
            try:
                out = await client.send_command(cmd)
            except RconError as e:
                failures.append(e)
                _exit(event.app)
                return
        if not silent:
            _append(event.app, log, f"> {cmd}\n" + (f"{out}\n" if out else ""))

    @kb.add("c-c")
    @kb.add("escape")
    def _(event) -> None:
        _exit(event.app)

    root = HSplit([status, log, input_field])
    app = Application(
        layout=Layout(root, focused_element=input_field),
        key_bindings=kb,
        full_screen=True,
        style=Style.from_dict(
            {
                "log": "bg:#0e162b #d1d5db",
                "status": "reverse",
            }
        ),
    )

    await app.run_async()
    if failures:
        raise failures[0]


async def run_plain(client: RconClient, stream: TextIO, silent: bool = False) -> None:
    """Line-by-line console for when stdin is not a terminal."""
    while True:
        if not silent:
            print("> ", end="", flush=True)
        line = await asyncio.to_thread(stream.readline)
        if not line:
            break
        cmd = line.strip()
        if cmd == QUIT_WORD:
            break
        if not cmd:
            continue
        out = await client.send_command(cmd)
        if out and not silent:
            print(out)


def _append(app: Optional[Application], area: TextArea, text: str) -> None:
    """
    Append text to the TextArea safely and keep the buffer size bounded.
    """
    buf = area.buffer
    buf.insert_text(text, move_cursor=True)
    if len(buf.text) > LOG_TRIM_LIMIT:
        new_text = buf.text[-LOG_TRIM_LIMIT:]
        buf.document = Document(new_text, cursor_position=len(new_text))
    if app is not None:
        app.invalidate()


def _exit(app: Application) -> None:
    if not app.is_done:
        app.exit()
