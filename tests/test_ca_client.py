"""Tests for ca_graphql_fetch.ca_client.

All tests replace the requests.Session with a MagicMock so no real HTTP
calls are made. Covers login, search parsing, headers, status-agnostic
decoding and the error taxonomy.
"""

import json
import os
from unittest.mock import MagicMock

import pytest
import requests

from ca_graphql_fetch.ca_client import CollectiveAccessClient, SearchRequest, SearchResponse
from ca_graphql_fetch.credentials import Credentials
from ca_graphql_fetch.errors import AuthenticationError, ProtocolError, RequestError
from ca_graphql_fetch.settings import DEFAULT_BUNDLES

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

CREDS = Credentials("https://ca.example.org/", "admin", "secret")


def _mock_response(payload, status_code=200):
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.json.return_value = payload
    return mock_resp


def _login_response(jwt="test-jwt"):
    return _mock_response({"data": {"login": {"jwt": jwt}}})


def _search_payload():
    with open(os.path.join(FIXTURES_DIR, "search_response.json")) as f:
        return json.load(f)


def _make_client(*responses):
    session = MagicMock()
    session.post.side_effect = list(responses)
    return CollectiveAccessClient(session=session), session


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_authenticate_posts_login_query():
    client, session = _make_client(_login_response())
    assert client.authenticate(CREDS) == "test-jwt"

    url = session.post.call_args[0][0]
    kwargs = session.post.call_args[1]
    assert url == "https://ca.example.org/service/Auth"
    assert kwargs["json"] == {"query": '{ login(username: "admin", password: "secret") { jwt } }'}
    assert kwargs["headers"] == {"Content-Type": "application/json"}
    assert "Authorization" not in kwargs["headers"]


@pytest.mark.parametrize("payload", [
    {"data": {"login": {"jwt": ""}}},
    {"data": {"login": {"jwt": None}}},
    {"data": {"login": None}},
    {"errors": [{"message": "Invalid credentials"}]},
])
def test_authenticate_without_jwt_raises(payload):
    client, _ = _make_client(_mock_response(payload))
    with pytest.raises(AuthenticationError):
        client.authenticate(CREDS)


def test_authentication_error_includes_remote_message():
    client, _ = _make_client(_mock_response({"errors": [{"message": "Invalid credentials"}]}, 401))
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        client.authenticate(CREDS)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def test_search_sends_bearer_token():
    client, session = _make_client(_login_response(), _mock_response(_search_payload()))
    client.search(CREDS, SearchRequest("*", ["ca_objects.idno"], start=100, limit=50))

    search_call = session.post.call_args_list[1]
    assert search_call[0][0] == "https://ca.example.org/service/Search"
    headers = search_call[1]["headers"]
    assert headers["Authorization"] == "Bearer test-jwt"
    assert headers["Content-Type"] == "application/json"
    query = search_call[1]["json"]["query"]
    assert "start: 100, limit: 50" in query
    assert '["ca_objects.idno"]' in query


def test_search_parses_results():
    client, _ = _make_client(_login_response(), _mock_response(_search_payload()))
    response = client.search(CREDS, SearchRequest("*", DEFAULT_BUNDLES))
    assert response.count == 2
    assert [r["id"] for r in response.results] == ["101", "102"]


def test_search_reuses_token():
    client, session = _make_client(
        _login_response(),
        _mock_response(_search_payload()),
        _mock_response(_search_payload()),
        _mock_response(_search_payload()),
    )
    for start in (0, 100, 200):
        client.search(CREDS, SearchRequest("*", [], start=start, limit=100))

    auth_calls = [c for c in session.post.call_args_list if c[0][0].endswith("/service/Auth")]
    assert len(auth_calls) == 1
    assert session.post.call_count == 4


def test_count_requests_a_single_record():
    client, session = _make_client(_login_response(), _mock_response(_search_payload()))
    assert client.count(CREDS, "*", DEFAULT_BUNDLES) == 2
    query = session.post.call_args[1]["json"]["query"]
    assert "start: 0, limit: 1" in query


def test_search_parses_json_on_error_status():
    client, _ = _make_client(_login_response(), _mock_response(_search_payload(), status_code=500))
    assert client.search(CREDS, SearchRequest("*", [])).count == 2


def test_token_property():
    client, _ = _make_client(_login_response(), _mock_response(_search_payload()))
    assert client.token is None
    client.search(CREDS, SearchRequest("*", []))
    assert client.token == "test-jwt"


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

def test_connection_error_becomes_request_error():
    client, _ = _make_client(requests.ConnectionError("connection refused"))
    with pytest.raises(RequestError, match="connection refused"):
        client.authenticate(CREDS)


def test_timeout_becomes_request_error():
    client, _ = _make_client(_login_response(), requests.Timeout("read timed out"))
    with pytest.raises(RequestError):
        client.search(CREDS, SearchRequest("*", []))


def test_invalid_json_becomes_request_error():
    bad = MagicMock()
    bad.status_code = 502
    bad.json.side_effect = ValueError("Expecting value")
    client, _ = _make_client(_login_response(), bad)
    with pytest.raises(RequestError, match="invalid JSON"):
        client.search(CREDS, SearchRequest("*", []))


def test_missing_count_is_protocol_error():
    client, _ = _make_client(
        _login_response(),
        _mock_response({"errors": [{"message": "Unknown bundle"}]}),
    )
    with pytest.raises(ProtocolError, match="Unknown bundle"):
        client.count(CREDS, "*", ["ca_objects.nope"])


@pytest.mark.parametrize("search", [
    {"count": 0, "results": None},
    {"count": 0, "results": [{}]},
    {"count": 0},
])
def test_count_zero_without_result_groups(search):
    client, _ = _make_client(_login_response(), _mock_response({"data": {"search": search}}))
    assert client.count(CREDS, "*", DEFAULT_BUNDLES) == 0


def test_non_object_body_is_protocol_error():
    client, _ = _make_client(_login_response(), _mock_response(["not", "an", "object"]))
    with pytest.raises(ProtocolError):
        client.search(CREDS, SearchRequest("*", []))


# ---------------------------------------------------------------------------
# SearchResponse / SearchRequest
# ---------------------------------------------------------------------------

def test_search_response_zero_count_without_result_groups():
    response = SearchResponse.from_payload({"data": {"search": {"count": 0, "results": []}}})
    assert response.count == 0
    assert response.results == []


def test_search_response_missing_results_is_protocol_error():
    with pytest.raises(ProtocolError):
        SearchResponse.from_payload({"data": {"search": {"count": 5}}})


def test_search_response_group_without_result_is_protocol_error():
    with pytest.raises(ProtocolError):
        SearchResponse.from_payload({"data": {"search": {"count": 5, "results": [{}]}}})


def test_count_from_payload_ignores_result_groups():
    payload = {"data": {"search": {"count": "12", "results": [{"bogus": True}]}}}
    assert SearchResponse.count_from_payload(payload) == 12


def test_count_from_payload_missing_count_is_protocol_error():
    with pytest.raises(ProtocolError):
        SearchResponse.count_from_payload({"data": {"search": {"results": []}}})


def test_search_response_string_count():
    response = SearchResponse.from_payload(
        {"data": {"search": {"count": "237", "results": [{"result": []}]}}}
    )
    assert response.count == 237


def test_search_request_validates_bounds():
    with pytest.raises(ValueError):
        SearchRequest("*", [], start=-1, limit=10)
    with pytest.raises(ValueError):
        SearchRequest("*", [], start=0, limit=0)


def test_search_request_freezes_bundles():
    bundles = ["ca_objects.idno"]
    request = SearchRequest("*", bundles)
    bundles.append("ca_objects.access")
    assert request.bundles == ("ca_objects.idno",)
