"""
Credentials — Connection settings and their resolution chain.

Each credential is resolved in a fixed order:

  1. The value passed on the command line (if non-empty)
  2. The first non-empty environment variable from a list of names
  3. Otherwise a ConfigurationError describing how to provide it

resolve_setting() returns a Resolution rather than raising, so that callers
can report every missing setting at once. resolve_credentials() does exactly
that and raises a single ConfigurationError listing all problems.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .errors import ConfigurationError
from .settings import BASE_URL_ENV_VARS, PASSWORD_ENV_VARS, USERNAME_ENV_VARS


@dataclass(frozen=True)
class Credentials:
    base_url: str
    username: str
    password: str


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one setting: either a value or an error."""

    value: Optional[str] = None
    source: Optional[str] = None
    error: Optional[ConfigurationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.value


def resolve_setting(
    value: Optional[str],
    env_names: Sequence[str],
    label: str,
    hint: str,
    environ: Optional[Mapping[str, str]] = None,
) -> Resolution:
    """Resolve a setting from an explicit value, then the environment.

    Args:
        value: Value given by the caller (CLI argument). Empty means "not given".
        env_names: Environment variables to try, in order.
        label: Human-readable name used in the error message.
        hint: How the user can provide the value (e.g. "--username").
        environ: Mapping to read from (defaults to os.environ).

    Returns:
        A Resolution with value and source ("argument" or the env var name),
        or with error set if nothing was found.
    """
    if value:
        return Resolution(value=value, source="argument")

    environ = os.environ if environ is None else environ
    for name in env_names:
        env_value = environ.get(name, "")
        if env_value:
            return Resolution(value=env_value, source=name)

    sources = " or ".join([hint] + list(env_names))
    return Resolution(
        error=ConfigurationError(f"CollectiveAccess {label} must be provided via {sources}")
    )


def resolve_credentials(
    base_url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Credentials:
    """Resolve all three connection settings.

    Raises:
        ConfigurationError: If any setting is missing. The problems attribute
            lists one message per missing setting.
    """
    resolutions = [
        resolve_setting(base_url, BASE_URL_ENV_VARS, "base URL", "the base_url argument", environ),
        resolve_setting(username, USERNAME_ENV_VARS, "username", "--username", environ),
        resolve_setting(password, PASSWORD_ENV_VARS, "password", "--password", environ),
    ]

    problems = [str(r.error) for r in resolutions if not r.ok]
    if problems:
        raise ConfigurationError("; ".join(problems), problems)

    url, user, secret = (r.value for r in resolutions)
    return Credentials(base_url=url, username=user, password=secret)
