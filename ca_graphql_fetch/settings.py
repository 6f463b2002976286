"""
Settings — Default configuration values for the CollectiveAccess fetcher.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when neither a CLI flag nor an environment variable is set.
The actual configuration is usually loaded from .env at runtime.

Configuration precedence (highest to lowest):
  1. CLI arguments and flags
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PAGE_SIZE                 Records requested per search call (default: 100)
  MAX_RECORDS               Stop after this many records (0 = fetch everything)
  SEARCH                    CollectiveAccess search expression (default: "*")
  OUTPUT                    JSONL file the records are appended to
  TABLE                     Table searched; its name + "." is stripped from bundle keys
  JWT_REFRESH_AFTER_SECONDS Age after which a cached JWT is re-requested
  REQUEST_TIMEOUT           Seconds before an HTTP call is abandoned
  STRICT                    Exit non-zero when a page fails mid-fetch
  DEBUG                     Whether to print verbose output
"""

CONNECTOR_NAME = "collectiveaccess-graphql"

AUTH_ENDPOINT = "/service/Auth"
SEARCH_ENDPOINT = "/service/Search"

# Environment variables tried in order for each credential
BASE_URL_ENV_VARS = ("CA_BASE_URL", "CA_SERVER")
USERNAME_ENV_VARS = ("CA_USERNAME",)
PASSWORD_ENV_VARS = ("CA_PASSWORD",)

DEFAULT_SETTINGS = {
    "PAGE_SIZE": 100,
    "MAX_RECORDS": 0,
    "SEARCH": "*",
    "OUTPUT": "var/ca_objects.jsonl",
    "TABLE": "ca_objects",
    "JWT_REFRESH_AFTER_SECONDS": 480,
    "REQUEST_TIMEOUT": 30,
    "STRICT": False,
    "DEBUG": False,
}

DEFAULT_BUNDLES = [
    # Core identification
    "ca_objects.preferred_labels.name",
    "ca_objects.nonpreferred_labels",
    "ca_objects.idno",
    "ca_objects.type_id",

    # Visibility & status
    "ca_objects.access",
    "ca_objects.status",

    # Descriptions
    "ca_objects.description",
    "ca_objects.descriptionSet",
    "ca_objects.internal_notes",

    # Dates
    "ca_objects.object_date",
    "ca_objects.primaryDateSet",

    # Physical attributes
    "ca_objects.dimensions",
    "ca_objects.georeference",
    "ca_objects.geonames",

    # Keywords & subject headings
    "ca_objects.RHS_keywords_list",
    "ca_objects.lcsh_terms",

    # Rights & source
    "ca_objects.rightsSet",
    "ca_objects.sourceSet",

    # Related records
    "ca_entities.preferred_labels.displayname",
    "ca_places.preferred_labels.name",
    "ca_collections.preferred_labels.name",
    "ca_list_items.preferred_labels.name_plural",

    # Media
    "ca_object_representations.media.small.url",
    "ca_object_representations.media.medium.url",
    "ca_object_representations.media.original.url",

    # Links
    "ca_objects.external_link",
]


def parse_bundles(value: str) -> list:
    """Split a comma-separated bundle override, or return the defaults if empty."""
    bundles = [item.strip() for item in (value or "").split(",") if item.strip()]
    return bundles if bundles else list(DEFAULT_BUNDLES)
