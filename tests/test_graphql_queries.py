"""Tests for ca_graphql_fetch.graphql_queries."""

import json

from ca_graphql_fetch.graphql_queries import (
    build_login_query,
    build_search_query,
    escape_string,
)


def test_escape_string_plain():
    assert escape_string("admin") == "admin"


def test_escape_string_quotes_and_backslash():
    assert escape_string('a"b') == 'a\\"b'
    assert escape_string("a'b") == "a\\'b"
    assert escape_string("a\\b") == "a\\\\b"


def test_escape_string_nul():
    assert escape_string("a\0b") == "a\\0b"


def test_login_query_text():
    assert build_login_query("admin", "secret") == (
        '{ login(username: "admin", password: "secret") { jwt } }'
    )


def test_login_query_escapes_password():
    query = build_login_query("admin", 'pa"ss')
    assert 'password: "pa\\"ss"' in query


def test_search_query_text():
    query = build_search_query("*", ["ca_objects.idno"], 0, 1)
    assert query == (
        '{ search(table: "ca_objects", search: "*", bundles: ["ca_objects.idno"], '
        "start: 0, limit: 1) { table, count, results { result { id, table, idno, "
        "bundles { name, code, dataType, values { value, locale } } } } } }"
    )


def test_search_query_braces_balanced():
    query = build_search_query("*", [], 0, 10)
    assert query.count("{") == query.count("}")


def test_search_query_escapes_search():
    query = build_search_query('title:"vase"', [], 0, 10)
    assert 'search: "title:\\"vase\\""' in query


def test_search_query_embeds_bundles_as_json_array():
    bundles = ["ca_objects.idno", "ca_entities.preferred_labels.displayname"]
    query = build_search_query("*", bundles, 200, 37)
    assert f"bundles: {json.dumps(bundles)}" in query
    assert "start: 200, limit: 37" in query


def test_search_query_custom_table():
    query = build_search_query("*", [], 0, 1, table="ca_entities")
    assert query.startswith('{ search(table: "ca_entities"')
