"""
Fetch Orchestrator — Wires configuration, client and fetcher for one run.

This module ties the other modules (CollectiveAccessClient, TokenCache,
RecordFlattener, PaginatedFetcher) into a two-step workflow:

  Step 1: AUTHENTICATION
      Resolves credentials (argument → environment → error) and obtains a JWT
      through the session's TokenCache. The token is reused by the count
      search and by every page until it is older than the refresh window.

  Step 2: FETCH
      Runs the PaginatedFetcher: count, then page through the results,
      flatten each record and append it to the JSONL output file.

Configuration:
    Settings are loaded from environment variables (typically via .env file).
    Required: CA_BASE_URL (or CA_SERVER), CA_USERNAME, CA_PASSWORD, unless
    given on the command line. See settings.py for defaults.

Typical usage:
    orchestrator = FetchOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .ca_client import CollectiveAccessClient
from .credentials import Credentials, resolve_credentials
from .errors import ConfigurationError, FetchError
from .fetcher import FetchState, PaginatedFetcher
from .record_flattener import RecordFlattener
from .settings import CONNECTOR_NAME, DEFAULT_SETTINGS, parse_bundles
from .token_cache import TokenCache


class FetchOrchestrator:
    """Orchestrates one CollectiveAccess fetch.

    Attributes:
        base_url: Base URL given on the command line ("" = use environment).
        username: Username given on the command line ("" = use environment).
        password: Password given on the command line ("" = use environment).
        output: JSONL file the records are appended to.
        page_size: Records per search call.
        max_records: Maximum records to fetch (0 = all).
        search: CollectiveAccess search expression.
        bundles: Bundle codes requested for each record.
        table: Table searched.
        refresh_window: Seconds a JWT is reused before logging in again.
        request_timeout: Per-request HTTP timeout in seconds.
        strict: If True, a page failure makes the run unsuccessful.
        show_progress: Whether to draw the progress bar.
        debug: Whether to enable verbose output.
        credentials: Resolved Credentials (None until validate_config/run).
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        # Connection settings; empty means "resolve from environment"
        self.base_url = ""
        self.username = ""
        self.password = ""

        # Fetch parameters
        self.output = os.getenv("CA_OUTPUT", DEFAULT_SETTINGS["OUTPUT"])
        self.page_size = int(os.getenv("CA_PAGE_SIZE", str(DEFAULT_SETTINGS["PAGE_SIZE"])))
        self.max_records = int(os.getenv("CA_MAX_RECORDS", str(DEFAULT_SETTINGS["MAX_RECORDS"])))
        self.search = os.getenv("CA_SEARCH", DEFAULT_SETTINGS["SEARCH"])
        self.bundles = parse_bundles(os.getenv("CA_BUNDLES", ""))
        self.table = os.getenv("CA_TABLE", DEFAULT_SETTINGS["TABLE"])

        # HTTP and token settings
        self.refresh_window = int(
            os.getenv("JWT_REFRESH_AFTER_SECONDS", str(DEFAULT_SETTINGS["JWT_REFRESH_AFTER_SECONDS"]))
        )
        self.request_timeout = float(
            os.getenv("CA_REQUEST_TIMEOUT", str(DEFAULT_SETTINGS["REQUEST_TIMEOUT"]))
        )

        # Processing options
        self.strict = os.getenv("STRICT", str(DEFAULT_SETTINGS["STRICT"])).lower() == "true"
        self.debug = os.getenv("DEBUG", str(DEFAULT_SETTINGS["DEBUG"])).lower() == "true"
        self.show_progress = True

        self.credentials: Optional[Credentials] = None

    def validate_config(self) -> bool:
        """Validate that all required configuration values are present.

        Checks:
            - base URL, username and password resolve from arguments or environment
            - page size is positive and max records is not negative

        Returns:
            True if the configuration is usable, False otherwise.
            Prints specific error messages for each problem.
        """
        errors = []
        try:
            self.credentials = self._resolve_credentials()
        except ConfigurationError as e:
            errors.extend(e.problems)

        if self.page_size <= 0:
            errors.append(f"Page size must be greater than 0 (got {self.page_size})")
        if self.max_records < 0:
            errors.append(f"Maximum records must not be negative (got {self.max_records})")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def build_client(self) -> CollectiveAccessClient:
        """Create a client with a fresh TokenCache for this fetch session."""
        token_cache = TokenCache(refresh_window=self.refresh_window, debug=self.debug)
        return CollectiveAccessClient(
            token_cache=token_cache,
            timeout=self.request_timeout,
            table=self.table,
            debug=self.debug,
        )

    def run(self, client: Optional[CollectiveAccessClient] = None) -> Dict[str, Any]:
        """Execute the fetch.

        Args:
            client: Client to use. A new one (with its own TokenCache) is
                    built when omitted.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "collectiveaccess-graphql"
                - config: Base URL, search, page size, max, bundle count, output
                - success: False if the run aborted (or, in strict mode, if a
                  page failed)
                - summary: total, target, fetched, state
                - fetch_error: Message of the page failure, if any
                - error: Error message (if the run aborted)
        """
        results = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": CONNECTOR_NAME,
            "config": {
                "base_url": self.base_url or os.getenv("CA_BASE_URL") or os.getenv("CA_SERVER", ""),
                "search": self.search,
                "page_size": self.page_size,
                "max_records": self.max_records,
                "bundles": len(self.bundles),
                "output": self.output,
                "strict": self.strict,
            },
            "success": False,
        }

        try:
            credentials = self.credentials or self._resolve_credentials()
            results["config"]["base_url"] = credentials.base_url
            client = client if client is not None else self.build_client()

            # Step 1: Authenticate with CollectiveAccess
            print(f"\n{'='*60}")
            print("STEP 1: AUTHENTICATION")
            print("="*60)
            client.get_token(credentials)
            print("  Authentication successful")

            # Step 2: Count, page, flatten and write
            print(f"\n{'='*60}")
            print("STEP 2: FETCH OBJECTS")
            print("="*60)
            print(f"  Fetching {len(self.bundles)} bundle types")
            fetcher = PaginatedFetcher(
                client,
                credentials,
                flattener=RecordFlattener(prefix=self.table + "."),
                page_size=self.page_size,
                max_records=self.max_records,
                show_progress=self.show_progress,
                debug=self.debug,
            )
            fetch_result = fetcher.run(self.search, self.bundles, self.output)

            results["summary"] = {
                "total": fetch_result.total_count,
                "target": fetch_result.target,
                "fetched": fetch_result.fetched,
                "state": fetch_result.state.value,
                "output": self.output,
            }
            if fetch_result.error:
                results["fetch_error"] = (
                    f"Request failed at offset {fetch_result.error_offset}: {fetch_result.error}"
                )
            results["success"] = not (self.strict and fetch_result.state == FetchState.ERROR)

        except (FetchError, OSError) as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                traceback.print_exc()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()
        return results

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        print(f"\n{'='*60}")
        print("FETCH COMPLETE")
        print("="*60)
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        summary = results.get("summary", {})
        if summary:
            print(f"Found: {summary.get('total', 0)}")
            print(f"Planned: {summary.get('target', 0)}")
            print(f"Stopped: {summary.get('state', 'N/A')}")
            print(f"Wrote {summary.get('fetched', 0)} records to {summary.get('output')}")

        if results.get("fetch_error"):
            print(f"Warning: {results['fetch_error']}")
        if results.get("error"):
            print(f"Error: {results['error']}")

    def _resolve_credentials(self) -> Credentials:
        return resolve_credentials(self.base_url, self.username, self.password)
