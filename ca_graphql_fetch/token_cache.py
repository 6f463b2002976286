"""
Token Cache — Reuses the CollectiveAccess JWT between search calls.

A token is remembered together with a context hash of the credentials it was
issued for and the time it was issued. get_token() returns the cached value
as long as both still hold:

  - the context hash equals the hash of the credentials being used now
  - the token is no older than refresh_window seconds (480 by default)

Otherwise the supplied authenticate callable is invoked and its result
replaces the cached token. The cache is not thread-safe; a lock around the
refresh would be needed before sharing one instance between threads.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .credentials import Credentials
from .settings import DEFAULT_SETTINGS


@dataclass(frozen=True)
class Token:
    value: str
    context_hash: str
    issued_at: float


def context_hash(credentials: Credentials) -> str:
    """SHA-256 over the JSON array [base_url, username, password]."""
    encoded = json.dumps(
        [credentials.base_url, credentials.username, credentials.password],
        ensure_ascii=False,
    )
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class TokenCache:
    """Holds at most one bearer token for a fetch session."""

    def __init__(
        self,
        refresh_window: float = DEFAULT_SETTINGS["JWT_REFRESH_AFTER_SECONDS"],
        clock: Callable[[], float] = time.time,
        debug: bool = False,
    ):
        self.refresh_window = refresh_window
        self.debug = debug
        self._clock = clock
        self._token: Optional[Token] = None

    def is_fresh(self, credentials: Credentials) -> bool:
        """True if the cached token can be used for these credentials right now."""
        if self._token is None:
            return False
        if self._token.context_hash != context_hash(credentials):
            return False
        return (self._clock() - self._token.issued_at) <= self.refresh_window

    def get_token(
        self,
        credentials: Credentials,
        authenticate: Callable[[Credentials], str],
    ) -> str:
        """Return a valid token, authenticating only when the cache is stale.

        Args:
            credentials: The connection the token must belong to.
            authenticate: Called with credentials to obtain a new token value.
                Any exception it raises propagates unchanged.

        Returns:
            The bearer token value.
        """
        if self.is_fresh(credentials):
            return self._token.value

        if self.debug:
            reason = "no cached token" if self._token is None else "cached token is stale"
            print(f"  Requesting new JWT ({reason})")

        value = authenticate(credentials)
        self._token = Token(
            value=value,
            context_hash=context_hash(credentials),
            issued_at=self._clock(),
        )
        return value

    def invalidate(self) -> None:
        """Forget the cached token so the next call re-authenticates."""
        self._token = None

    @property
    def token(self) -> Optional[Token]:
        """The cached Token, or None if nothing has been issued yet."""
        return self._token
