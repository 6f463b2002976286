"""
GraphQL Query Builders — The two queries sent to CollectiveAccess.

The CollectiveAccess GraphQL service does not accept query variables, so
values are interpolated into the query text. All string literals pass through
escape_string() and the bundle list is embedded as a JSON array literal; keep
every query in this module so there is exactly one place doing interpolation.

Login (POST /service/Auth):
    { login(username: "...", password: "...") { jwt } }

Search (POST /service/Search):
    { search(table: "ca_objects", search: "...", bundles: [...], start: N, limit: N) {
        table, count,
        results { result { id, table, idno,
                           bundles { name, code, dataType, values { value, locale } } } } } }
"""

import json
from typing import Sequence

from .settings import DEFAULT_SETTINGS

LOGIN_QUERY_TEMPLATE = '{{ login(username: "{username}", password: "{password}") {{ jwt }} }}'

SEARCH_QUERY_TEMPLATE = (
    '{{ search(table: "{table}", search: "{search}", bundles: {bundles}, '
    "start: {start}, limit: {limit}) "
    "{{ table, count, results {{ result {{ id, table, idno, "
    "bundles {{ name, code, dataType, values {{ value, locale }} }} }} }} }} }}"
)

_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\0": "\\0",
}


def escape_string(value: str) -> str:
    """Backslash-escape quotes, backslashes and NUL for a quoted query literal."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def build_login_query(username: str, password: str) -> str:
    return LOGIN_QUERY_TEMPLATE.format(
        username=escape_string(username),
        password=escape_string(password),
    )


def build_search_query(
    search: str,
    bundles: Sequence[str],
    start: int,
    limit: int,
    table: str = DEFAULT_SETTINGS["TABLE"],
) -> str:
    """Build the search query for one page of results.

    Args:
        search: CollectiveAccess search expression ("*" for everything).
        bundles: Bundle codes to return for each record.
        start: Zero-based offset of the first record.
        limit: Maximum number of records in this page.
        table: Table to search.

    Returns:
        The query text ready to be sent as {"query": ...}.
    """
    return SEARCH_QUERY_TEMPLATE.format(
        table=escape_string(table),
        search=escape_string(search),
        bundles=json.dumps(list(bundles)),
        start=int(start),
        limit=int(limit),
    )
