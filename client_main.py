"""Talk to the documentation assistant from a terminal.

Starts a realtime session through the token server, plays the model's voice
on the local audio sink, prints every protocol event as it is logged, and
sends each line typed on stdin as a text message.

Run: start the server (`python main.py`), then `python client_main.py`.
Type `/quit` or press Ctrl-D to stop the session.
"""
import argparse
import asyncio
import json
import logging
import sys
import threading
from typing import Any, Dict, TextIO

import httpx

from models.session_models import SessionStatus
from services.realtime.media import AudioOutput, MicrophoneSource
from services.realtime.session_controller import RealtimeSessionController
from services.realtime.tool_panel import ToolPanel
from utils.env_config import ClientConfig

QUIT_COMMAND = "/quit"


def _alert(message: str) -> None:
    print(f"[alert] {message}", file=sys.stderr, flush=True)


def _print_event(direction: str, event: Dict[str, Any]) -> None:
    print(f"{direction} {event.get('type')}: {json.dumps(event)[:200]}", flush=True)


def _parse_args(config: ClientConfig) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Realtime voice client for the documentation assistant.")
    parser.add_argument("--server", default=config.server_url, help="Base URL of the token/search server.")
    parser.add_argument("--welcome-delay", type=float, default=1.0, help="Seconds to wait before the welcome message.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def _print_search(query: str, searching: bool) -> None:
    if searching:
        print(f"[tool] searching for {query!r}...", flush=True)
    else:
        print(f"[tool] search for {query!r} finished", flush=True)


def _start_stdin_reader(stream: TextIO, queue: asyncio.Queue) -> threading.Thread:
    """Feed lines from `stream` into `queue` from a daemon thread; "" marks EOF.

    A daemon thread never holds up interpreter shutdown, so Ctrl-C exits even
    while a read is pending.
    """
    loop = asyncio.get_running_loop()

    def pump() -> None:
        while True:
            line = stream.readline()
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                return  # loop already closed
            if not line:
                return

    thread = threading.Thread(target=pump, name="stdin-reader", daemon=True)
    thread.start()
    return thread


async def _read_lines(controller: RealtimeSessionController, stream: TextIO = sys.stdin) -> None:
    """Forward lines as text messages until EOF or /quit."""
    lines: asyncio.Queue = asyncio.Queue()
    _start_stdin_reader(stream, lines)
    while controller.status != SessionStatus.INACTIVE:
        line = await lines.get()
        if not line or line.strip() == QUIT_COMMAND:
            return
        text = line.strip()
        if text:
            controller.send_text_message(text)


async def run(config: ClientConfig, args: argparse.Namespace) -> int:
    async with httpx.AsyncClient(base_url=args.server, timeout=None) as http_client:
        controller = RealtimeSessionController(
            http_client,
            alert=_alert,
            model=config.realtime_model,
            microphone_factory=lambda constraints: MicrophoneSource(
                config.mic_device, config.mic_format, constraints
            ),
            audio_output_factory=lambda: AudioOutput(config.audio_output, config.audio_output_format),
            welcome_delay=args.welcome_delay,
        )
        panel = ToolPanel(controller, http_client)
        controller.subscribe(lambda event: _print_event("<-", event))
        controller.on_send(lambda event: _print_event("->", event))
        panel.on_search(_print_search)
        controller.on_status_change(lambda status: print(f"[session] {status.value}", flush=True))

        if not await controller.start():
            return 1
        print(f"[mic] {controller.microphone_status.value}", flush=True)
        try:
            await _read_lines(controller)
        finally:
            await controller.stop()
    return 0


def main() -> None:
    config = ClientConfig.from_env()
    args = _parse_args(config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        code = asyncio.run(run(config, args))
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
