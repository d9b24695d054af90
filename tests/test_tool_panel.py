import json

import pytest

from services.realtime.prompts import SEARCH_TOOL_NAME
from services.realtime.response_parser import SEARCH_FAILED_MESSAGE
from tests.fakes import ORGANIC_RESULTS

pytestmark = pytest.mark.asyncio


def _tool_call(call_id="call_1", arguments='{"query":"kubernetes"}', name=SEARCH_TOOL_NAME):
    return {
        "type": "response.tool_call",
        "tool_call": {"id": call_id, "name": name, "arguments": arguments},
    }


def _sent_of_type(harness, event_type):
    return [event for event in harness.channel.sent_events() if event["type"] == event_type]


async def test_session_created_sends_tool_configuration_once(harness):
    await harness.start_open()

    await harness.deliver({"type": "session.created"})
    await harness.deliver({"type": "session.created"})
    await harness.deliver({"type": "session.updated"})

    (update,) = _sent_of_type(harness, "session.update")
    (tool,) = update["session"]["tools"]
    assert tool["name"] == SEARCH_TOOL_NAME
    assert tool["parameters"]["required"] == ["query"]
    assert update["session"]["tool_choice"] == "auto"
    assert harness.panel.function_added


async def test_tool_call_runs_one_search_and_replies(harness, backend):
    await harness.start_open()

    await harness.deliver(_tool_call())

    (search,) = backend.requests_to("/search")
    assert search.url.params["q"] == "kubernetes"
    (reply,) = _sent_of_type(harness, "tool_call.response")
    assert reply["tool_call_id"] == "call_1"
    content = json.loads(reply["content"])
    assert content["results"] == [
        {"title": r["title"], "link": r["link"], "snippet": r["snippet"]} for r in ORGANIC_RESULTS[:3]
    ]
    assert harness.panel.last_query == "kubernetes"
    assert harness.panel.is_searching is False
    assert harness.panel.search_results["organic_results"] == ORGANIC_RESULTS


async def test_search_without_organic_results_replies_empty(harness, backend):
    backend.search_body = {"search_metadata": {"status": "Success"}}
    await harness.start_open()

    await harness.deliver(_tool_call())

    (reply,) = _sent_of_type(harness, "tool_call.response")
    assert json.loads(reply["content"]) == {"results": []}


async def test_failed_search_replies_with_error(harness, backend):
    backend.search_status = 500
    backend.search_body = {"error": "Failed to perform search"}
    await harness.start_open()

    await harness.deliver(_tool_call(call_id="call_err"))

    (reply,) = _sent_of_type(harness, "tool_call.response")
    assert reply["tool_call_id"] == "call_err"
    assert json.loads(reply["content"]) == {"error": SEARCH_FAILED_MESSAGE, "results": []}
    assert harness.panel.is_searching is False


async def test_unparseable_arguments_reply_with_error_without_searching(harness, backend):
    await harness.start_open()

    await harness.deliver(_tool_call(arguments="{not json"))
    await harness.deliver(_tool_call(call_id="call_2", arguments='{"topic": "helm"}'))

    assert backend.requests_to("/search") == []
    replies = _sent_of_type(harness, "tool_call.response")
    assert [reply["tool_call_id"] for reply in replies] == ["call_1", "call_2"]
    assert all(json.loads(reply["content"])["error"] == SEARCH_FAILED_MESSAGE for reply in replies)


async def test_other_tools_are_ignored(harness, backend):
    await harness.start_open()

    await harness.deliver(_tool_call(name="get_weather"))

    assert backend.requests_to("/search") == []
    assert _sent_of_type(harness, "tool_call.response") == []


async def test_overlapping_tool_calls_run_one_at_a_time(harness, backend):
    backend.search_delay = 0.02
    await harness.start_open()

    harness.channel.deliver(_tool_call(call_id="a", arguments='{"query":"helm"}'))
    harness.channel.deliver(_tool_call(call_id="b", arguments='{"query":"argo"}'))
    await harness.controller.wait_idle()
    await harness.panel.wait_idle()

    assert backend.max_searches_in_flight == 1
    assert [r.url.params["q"] for r in backend.requests_to("/search")] == ["helm", "argo"]
    replies = _sent_of_type(harness, "tool_call.response")
    assert [reply["tool_call_id"] for reply in replies] == ["a", "b"]


async def test_new_session_configures_tool_again(harness):
    await harness.start_open()
    await harness.deliver({"type": "session.created"})
    await harness.controller.stop()

    assert harness.panel.function_added is False
    assert harness.panel.last_query == ""

    await harness.start_open()
    await harness.deliver({"type": "session.created"})

    assert len(_sent_of_type(harness, "session.update")) == 1
    assert len(harness.peer_connections) == 2


async def test_search_listeners_see_start_and_finish(harness, backend):
    seen = []
    harness.panel.on_search(lambda query, searching: seen.append((query, searching)))
    await harness.start_open()

    await harness.deliver(_tool_call())

    assert seen == [("kubernetes", True), ("kubernetes", False)]


async def test_search_listeners_see_failed_search_finish(harness, backend):
    backend.search_status = 502
    seen = []
    harness.panel.on_search(lambda query, searching: seen.append((query, searching)))
    await harness.start_open()

    await harness.deliver(_tool_call())

    assert seen == [("kubernetes", True), ("kubernetes", False)]
