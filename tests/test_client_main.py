import asyncio
import io

import pytest

import client_main

pytestmark = pytest.mark.asyncio


async def test_read_lines_sends_text_until_quit(harness):
    await harness.start_open()
    stream = io.StringIO("what is helm?\n\n/quit\nnot sent\n")

    await asyncio.wait_for(client_main._read_lines(harness.controller, stream), timeout=2)

    texts = [
        event["item"]["content"][0]["text"]
        for event in harness.channel.sent_events()
        if event["type"] == "conversation.item.create"
    ]
    assert texts == ["what is helm?"]


async def test_read_lines_returns_on_eof(harness):
    await harness.start_open()

    await asyncio.wait_for(client_main._read_lines(harness.controller, io.StringIO("")), timeout=2)

    assert harness.channel.sent == []


async def test_stdin_reader_runs_as_daemon():
    lines = asyncio.Queue()

    thread = client_main._start_stdin_reader(io.StringIO("one\n"), lines)

    assert thread.daemon
    assert await asyncio.wait_for(lines.get(), timeout=2) == "one\n"
    assert await asyncio.wait_for(lines.get(), timeout=2) == ""


async def test_outbound_and_search_status_are_printed(capsys):
    client_main._print_event("->", {"type": "response.create", "event_id": "e1"})
    client_main._print_search("kubernetes", True)
    client_main._print_search("kubernetes", False)

    out = capsys.readouterr().out
    assert "-> response.create" in out
    assert "searching for 'kubernetes'" in out
    assert "search for 'kubernetes' finished" in out
