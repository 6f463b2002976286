"""
CollectiveAccess API Client — Handles authentication and search calls.

This module is responsible for all HTTP communication with CollectiveAccess.
Two GraphQL endpoints are used, both relative to the instance base URL:

  1. /service/Auth   — login(username, password) { jwt }
  2. /service/Search — search(table, search, bundles, start, limit) { ... }

Authentication flow:
    POST /service/Auth
    Body: {"query": "{ login(username: \"admin\", password: \"...\") { jwt } }"}
    Response: {"data": {"login": {"jwt": "eyJ0eXAiOiJKV1Qi..."}}}

    The JWT is kept in a TokenCache and attached as a Bearer header to every
    search request until it is older than the refresh window.

CollectiveAccess reports most failures inside a 200 response, so bodies are
decoded as JSON whatever the status code and then checked for the expected
data path. Transport failures become RequestError, a missing path becomes
ProtocolError, and a login without a JWT becomes AuthenticationError.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests

from .credentials import Credentials
from .errors import AuthenticationError, ProtocolError, RequestError
from .graphql_queries import build_login_query, build_search_query
from .settings import AUTH_ENDPOINT, DEFAULT_SETTINGS, SEARCH_ENDPOINT
from .token_cache import TokenCache


@dataclass(frozen=True)
class SearchRequest:
    search: str
    bundles: Sequence[str]
    start: int = 0
    limit: int = DEFAULT_SETTINGS["PAGE_SIZE"]

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.limit <= 0:
            raise ValueError(f"limit must be > 0, got {self.limit}")
        object.__setattr__(self, "bundles", tuple(self.bundles))


@dataclass
class SearchResponse:
    count: int
    results: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def count_from_payload(payload: Dict[str, Any]) -> int:
        """Read data.search.count only; the result groups are not inspected.

        Raises:
            ProtocolError: If data.search.count is missing or not a number.
        """
        search = (payload.get("data") or {}).get("search")
        if not isinstance(search, dict) or search.get("count") is None:
            raise ProtocolError(
                f"Response has no data.search.count: {_describe_errors(payload)}"
            )

        try:
            return int(search["count"])
        except (TypeError, ValueError):
            raise ProtocolError(f"data.search.count is not a number: {search['count']!r}")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SearchResponse":
        """Parse the decoded body of a /service/Search page.

        Raises:
            ProtocolError: If data.search.count or data.search.results is missing.
        """
        count = cls.count_from_payload(payload)
        search = payload["data"]["search"]

        groups = search.get("results")
        if not isinstance(groups, list):
            raise ProtocolError(
                f"Response has no data.search.results: {_describe_errors(payload)}"
            )

        # An empty results list means the remote has nothing left to return
        if not groups:
            return cls(count=count, results=[])

        records = groups[0].get("result") if isinstance(groups[0], dict) else None
        if not isinstance(records, list):
            raise ProtocolError(
                f"Response has no data.search.results[0].result: {_describe_errors(payload)}"
            )

        return cls(count=count, results=records)


def _describe_errors(payload: Dict[str, Any]) -> str:
    """The GraphQL errors array if present, otherwise the whole payload, as JSON."""
    return json.dumps(payload.get("errors") or payload, default=str)


class CollectiveAccessClient:
    """Client for the CollectiveAccess GraphQL services.

    Manages a requests.Session used for every call. Tokens are obtained
    through the injected TokenCache, so one client used for a whole fetch
    logs in once per refresh window.

    Attributes:
        token_cache: Cache that decides when to call authenticate().
        timeout: Seconds before an HTTP request is abandoned.
        debug: If True, print verbose request details.
    """

    def __init__(
        self,
        token_cache: Optional[TokenCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_SETTINGS["REQUEST_TIMEOUT"],
        table: str = DEFAULT_SETTINGS["TABLE"],
        debug: bool = False,
    ):
        """Initialize the client.

        Args:
            token_cache: TokenCache to use (a new one is created if omitted).
            session: requests.Session to send requests with.
            timeout: Per-request timeout in seconds.
            table: Table searched by search() and count().
            debug: Enable verbose output.
        """
        self.token_cache = token_cache if token_cache is not None else TokenCache(debug=debug)
        self.timeout = timeout
        self.table = table
        self.debug = debug
        self._session = session if session is not None else requests.Session()

    def authenticate(self, credentials: Credentials) -> str:
        """Log in and return a fresh JWT. Does not consult the cache.

        Returns:
            The JWT string.

        Raises:
            AuthenticationError: If the response has no non-empty data.login.jwt.
            RequestError: If the request fails or the body is not JSON.
        """
        if self.debug:
            print(f"  Authenticating as: {credentials.username}")

        payload = self._post(
            credentials.base_url,
            AUTH_ENDPOINT,
            build_login_query(credentials.username, credentials.password),
            headers={"Content-Type": "application/json"},
        )

        jwt = ((payload.get("data") or {}).get("login") or {}).get("jwt")
        if not isinstance(jwt, str) or jwt == "":
            raise AuthenticationError(
                f"CollectiveAccess authentication failed: {_describe_errors(payload)}"
            )

        if self.debug:
            print(f"  Authentication successful, token: {jwt[:20]}...")

        return jwt

    def get_token(self, credentials: Credentials) -> str:
        """Return the cached JWT, logging in first if it is missing or stale."""
        return self.token_cache.get_token(credentials, self.authenticate)

    def search(self, credentials: Credentials, request: SearchRequest) -> SearchResponse:
        """Run one page of a search.

        Args:
            credentials: Connection to search against.
            request: Search expression, bundles, offset and page size.

        Returns:
            The parsed SearchResponse.

        Raises:
            AuthenticationError: If a new token was needed and login failed.
            RequestError: If the request fails or the body is not JSON.
            ProtocolError: If the expected data path is missing.
        """
        return SearchResponse.from_payload(self._search_payload(credentials, request))

    def count(self, credentials: Credentials, search: str, bundles: Sequence[str]) -> int:
        """Total number of records matching the search (a one-record search).

        Only data.search.count is required; a zero-hit response may carry no
        usable result group.
        """
        payload = self._search_payload(credentials, SearchRequest(search, bundles, start=0, limit=1))
        return SearchResponse.count_from_payload(payload)

    def _search_payload(self, credentials: Credentials, request: SearchRequest) -> Dict[str, Any]:
        jwt = self.get_token(credentials)
        query = build_search_query(
            request.search, request.bundles, request.start, request.limit, table=self.table
        )

        if self.debug:
            print(f"  Searching start={request.start} limit={request.limit} ({len(query)} chars)")

        return self._post(
            credentials.base_url,
            SEARCH_ENDPOINT,
            query,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {jwt}",
            },
        )

    def _post(
        self,
        base_url: str,
        endpoint: str,
        query: str,
        headers: Dict[str, str],
    ) -> Dict[str, Any]:
        url = base_url.rstrip("/") + endpoint

        try:
            response = self._session.post(
                url, json={"query": query}, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RequestError(f"POST {url} failed: {e}") from e

        # No raise_for_status(): CollectiveAccess puts errors in the JSON body
        try:
            payload = response.json()
        except ValueError as e:
            raise RequestError(
                f"POST {url} returned invalid JSON (HTTP {response.status_code}): {e}"
            ) from e

        if not isinstance(payload, dict):
            raise ProtocolError(f"POST {url} returned {type(payload).__name__}, expected an object")

        return payload

    @property
    def token(self) -> Optional[str]:
        """The current JWT, or None if not yet authenticated."""
        cached = self.token_cache.token
        return cached.value if cached else None
