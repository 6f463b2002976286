"""
ca_graphql_fetch — Fetch CollectiveAccess objects into a JSONL file.

Each module handles one concern:

  orchestrator.py      Run coordination (configuration, steps, summary)
  fetcher.py           Count → page → flatten → write loop
  ca_client.py         HTTP communication with CollectiveAccess
  graphql_queries.py   Login and search query construction
  token_cache.py       JWT reuse within the refresh window
  record_flattener.py  Nested search result → flat record
  jsonl_writer.py      Append-only JSON Lines output
  credentials.py       Argument → environment → error resolution
  settings.py          Defaults and the default bundle list
  errors.py            Exception hierarchy
"""

from .errors import (
    FetchError,
    AuthenticationError,
    RequestError,
    ProtocolError,
    ConfigurationError,
)
from .credentials import Credentials, Resolution, resolve_setting, resolve_credentials
from .token_cache import Token, TokenCache, context_hash
from .graphql_queries import escape_string, build_login_query, build_search_query
from .ca_client import CollectiveAccessClient, SearchRequest, SearchResponse
from .record_flattener import RecordFlattener
from .jsonl_writer import JsonlWriter
from .fetcher import FetchResult, FetchState, PaginatedFetcher
from .orchestrator import FetchOrchestrator
