#!/usr/bin/env python3
"""
CollectiveAccess Object Fetcher — Entry Point.

Fetches objects from a CollectiveAccess GraphQL API and appends them, one
flattened JSON object per line, to a JSONL file. Configuration is read from
a .env file and can be overridden on the command line.

The fetch (managed by FetchOrchestrator) performs 2 steps:
  1. Authenticate via /service/Auth (JWT cached for 8 minutes)
  2. Count matching objects, then page through /service/Search, flattening
     and writing each record

A page that fails mid-fetch stops the loop with a warning; the records
already written are kept and the command still exits 0 unless --strict.

Usage:
    ca-fetch https://ca.example.org var/objects.jsonl --username admin
    ca-fetch --max 500 --limit 50        # First 500 objects, 50 per page
    ca-fetch --search 'ca_objects.type_id:painting'
    ca-fetch --bundles 'ca_objects.idno,ca_objects.preferred_labels.name'
    ca-fetch --strict                    # Exit 1 if a page fails
    ca-fetch --debug                     # Verbose output
    ca-fetch --version                   # Show version
"""

import sys
import argparse
import logging
from pathlib import Path

from .orchestrator import FetchOrchestrator
from .settings import DEFAULT_SETTINGS, parse_bundles

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ca-fetch",
        description="Fetch objects from CollectiveAccess GraphQL API and write to JSONL",
    )
    parser.add_argument(
        "base_url", nargs="?", default="",
        help="Base URL of CollectiveAccess instance (default: CA_BASE_URL)",
    )
    parser.add_argument(
        "output", nargs="?", default=None,
        help=f"Output JSONL file path (default: CA_OUTPUT or {DEFAULT_SETTINGS['OUTPUT']})",
    )
    parser.add_argument("--username", "-u", default="", help="CA username/email (default: CA_USERNAME)")
    parser.add_argument("--password", "-p", default="", help="CA password (default: CA_PASSWORD)")
    parser.add_argument("--limit", type=int, default=None, help="Records per page (default: 100)")
    parser.add_argument("--max", type=int, default=None, help="Maximum total records (0 = all)")
    parser.add_argument("--search", "-s", default=None, help="Search query (default: *)")
    parser.add_argument(
        "--bundles", "-b", default=None,
        help="Bundles to fetch (comma-separated, empty = defaults)",
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--strict", action="store_true", help="Exit with an error if any page fails")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")
    return parser


def main(argv=None):
    """Parse CLI arguments and run the fetch."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"ca-graphql-fetch {VERSION}")
        sys.exit(0)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s'
        )
        logging.getLogger('urllib3').setLevel(logging.DEBUG)

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = FetchOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    orchestrator.base_url = args.base_url
    orchestrator.username = args.username
    orchestrator.password = args.password
    if args.output:
        orchestrator.output = args.output
    if args.limit is not None:
        orchestrator.page_size = args.limit
    if args.max is not None:
        orchestrator.max_records = args.max
    if args.search is not None:
        orchestrator.search = args.search
    if args.bundles is not None:
        orchestrator.bundles = parse_bundles(args.bundles)
    if args.strict:
        orchestrator.strict = True
    if args.no_progress:
        orchestrator.show_progress = False
    if args.debug:
        orchestrator.debug = True

    # Print header
    print(f"\n{'='*60}")
    print(f"COLLECTIVEACCESS GRAPHQL FETCHER v{VERSION}")
    print("="*60)
    print(f"Search: {orchestrator.search}")
    print(f"Output: {orchestrator.output}")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    print(f"Server: {orchestrator.credentials.base_url}")

    results = orchestrator.run()

    orchestrator.print_summary(results)

    # Exit with error code if the fetch failed
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
