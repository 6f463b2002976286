"""
Errors — Exception hierarchy for the CollectiveAccess fetcher.

  FetchError              Base class, never raised directly.
  AuthenticationError     Login response carried no usable JWT. Fatal.
  RequestError            Transport failure or a body that is not JSON.
  ProtocolError           Valid JSON that lacks the expected data path.
  ConfigurationError      A required setting has no argument and no env value.

The fetch loop only recovers from RequestError and ProtocolError (per page);
everything else aborts the run.
"""

from typing import List, Optional


class FetchError(Exception):
    """Base class for all fetcher errors."""


class AuthenticationError(FetchError):
    """Raised when CollectiveAccess does not return a JWT for the login query."""


class RequestError(FetchError):
    """Raised when the HTTP request fails or the body cannot be decoded."""


class ProtocolError(FetchError):
    """Raised when a response is missing data.search.count or similar paths."""


class ConfigurationError(FetchError):
    """Raised when a required setting cannot be resolved.

    Attributes:
        problems: One message per unresolved setting.
    """

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems if problems is not None else [message]
