import json

import pytest

from models.event_log import EventLog
from models.search_models import condense_results
from models.session_models import SessionCredential
from services.openai.response_utils import serialize_response
from services.realtime.prompts import SEARCH_TOOL_NAME, session_update_event
from services.realtime.response_parser import (
    parse_search_query,
    parse_tool_call,
    tool_error_event,
    tool_response_event,
)
from utils.env_config import DEFAULT_REALTIME_MODEL, ClientConfig, ServerConfig


def test_event_log_is_newest_first_and_keeps_duplicates():
    log = EventLog()
    first = {"type": "a"}
    log.prepend(first)
    log.prepend({"type": "b"})
    log.prepend(first)

    assert [event["type"] for event in log] == ["a", "b", "a"]
    assert log.snapshot()[0] is first
    assert isinstance(log.snapshot(), tuple)

    log.clear()
    assert len(log) == 0
    assert log.snapshot() == ()


def test_credential_from_token_response():
    credential = SessionCredential.from_token_response({"client_secret": {"value": "abc", "expires_at": 12}})

    assert credential == SessionCredential(value="abc", expires_at=12)


@pytest.mark.parametrize("body", [None, [], {}, {"client_secret": "abc"}, {"client_secret": {"value": ""}}])
def test_credential_requires_secret_value(body):
    assert SessionCredential.from_token_response(body) is None


def test_condense_results_keeps_three_summaries():
    data = {
        "organic_results": [
            {"title": f"t{i}", "link": f"l{i}", "snippet": f"s{i}", "position": i} for i in range(5)
        ]
    }

    assert condense_results(data) == [
        {"title": "t0", "link": "l0", "snippet": "s0"},
        {"title": "t1", "link": "l1", "snippet": "s1"},
        {"title": "t2", "link": "l2", "snippet": "s2"},
    ]


def test_condense_results_tolerates_missing_fields():
    assert condense_results({"organic_results": [{"title": "only title"}]}) == [
        {"title": "only title", "link": "", "snippet": ""}
    ]
    assert condense_results({"error": "nope"}) == []
    assert condense_results("garbage") == []


def test_parse_tool_call():
    call = parse_tool_call(
        {"type": "response.tool_call", "tool_call": {"id": "c1", "name": SEARCH_TOOL_NAME, "arguments": "{}"}}
    )

    assert call.call_id == "c1"
    assert call.name == SEARCH_TOOL_NAME
    assert parse_tool_call({"type": "response.done"}) is None
    assert parse_tool_call({"type": "response.tool_call", "tool_call": None}) is None


def test_parse_search_query():
    assert parse_search_query('{"query": "terraform state"}') == "terraform state"
    with pytest.raises(ValueError):
        parse_search_query('{"query": ""}')
    with pytest.raises(ValueError):
        parse_search_query("nope")


def test_tool_reply_events_encode_content_as_json_string():
    ok = tool_response_event("c1", [{"title": "t", "link": "l", "snippet": "s"}])
    failed = tool_error_event("c2")

    assert ok["type"] == failed["type"] == "tool_call.response"
    assert json.loads(ok["content"]) == {"results": [{"title": "t", "link": "l", "snippet": "s"}]}
    assert json.loads(failed["content"])["results"] == []


def test_session_update_declares_single_tool():
    event = session_update_event()

    assert event["type"] == "session.update"
    assert [tool["name"] for tool in event["session"]["tools"]] == [SEARCH_TOOL_NAME]
    assert SEARCH_TOOL_NAME in event["session"]["instructions"]


def test_server_config_tolerates_missing_secrets(monkeypatch):
    monkeypatch.setattr("utils.env_config.load_dotenv", lambda: None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("REALTIME_MODEL", raising=False)
    monkeypatch.setenv("SERPAPI_KEY", "  ")
    monkeypatch.setenv("PORT", "8080")

    config = ServerConfig.from_env()

    assert config.openai_api_key is None
    assert config.serpapi_key is None
    assert config.port == 8080
    assert config.realtime_model == DEFAULT_REALTIME_MODEL


def test_client_config_reads_server_url(monkeypatch):
    monkeypatch.setattr("utils.env_config.load_dotenv", lambda: None)
    monkeypatch.setenv("VOICE_SERVER_URL", "http://voice.local:9000")

    assert ClientConfig.from_env().server_url == "http://voice.local:9000"


def test_serialize_response_rejects_non_objects():
    assert serialize_response({"id": "sess"}) == {"id": "sess"}
    with pytest.raises(TypeError):
        serialize_response("sess")
