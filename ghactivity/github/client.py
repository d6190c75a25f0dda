"""GitHub REST client for the user events endpoint."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError

_DEFAULT_API_URL = "https://api.github.com"
_DEFAULT_TIMEOUT_S = 20.0
_MAX_PER_PAGE = 100


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubCredentials:
    """Credentials used when polling the events API.

    A token is sent as a bearer header. Without one, an OAuth app client ID
    and secret are sent as basic auth, which raises the anonymous rate limit.
    """

    token: str | None = None
    client_id: str | None = None
    client_secret: str | None = None

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization header for a bearer token, if any."""
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def basic_auth(self) -> httpx.BasicAuth | None:
        """Return basic auth for the client ID/secret pair, if both are set."""
        if self.token or not (self.client_id and self.client_secret):
            return None
        return httpx.BasicAuth(self.client_id, self.client_secret)


class GitHubEventsClient(typ.Protocol):
    """Interface for fetching recent public activity of a user."""

    async def fetch_user_events(
        self, user: str, credentials: GitHubCredentials | None = None
    ) -> list[object]:
        """Return the raw event objects, newest first."""
        ...


def _positive_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise GitHubConfigError.invalid_setting(name, raw) from exc
    if value <= 0:
        raise GitHubConfigError.invalid_setting(name, raw)
    return value


def _per_page(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise GitHubConfigError.invalid_setting(name, raw) from exc
    if not 1 <= value <= _MAX_PER_PAGE:
        raise GitHubConfigError.invalid_setting(name, raw)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubEventsConfig:
    """Configuration for the GitHub REST events client."""

    api_url: str = _DEFAULT_API_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    per_page: int = _MAX_PER_PAGE
    user_agent: str = "ghactivity/0.1"

    @classmethod
    def from_env(cls) -> GitHubEventsConfig:
        """Build configuration from ``GHACTIVITY_GITHUB_*`` variables."""
        api_url = os.environ.get("GHACTIVITY_GITHUB_API_URL", "").strip()
        return cls(
            api_url=api_url or _DEFAULT_API_URL,
            timeout_s=_positive_float(
                "GHACTIVITY_GITHUB_TIMEOUT_S", _DEFAULT_TIMEOUT_S
            ),
            per_page=_per_page("GHACTIVITY_GITHUB_PER_PAGE", _MAX_PER_PAGE),
        )


def _parse_events_body(response: httpx.Response) -> list[object]:
    """Return the decoded event list; an empty body is an empty list."""
    if not response.content.strip():
        return []
    try:
        body = response.json()
    except ValueError as exc:
        raise GitHubResponseShapeError.invalid_json() from exc
    if not isinstance(body, list):
        raise GitHubResponseShapeError.not_a_list(type(body).__name__)
    return body


class GitHubRESTEventsClient:
    """httpx implementation of :class:`GitHubEventsClient`.

    Only the first page is fetched; the events endpoint is polled often
    enough that one page covers the gap between runs.
    """

    def __init__(
        self,
        config: GitHubEventsConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise with configuration and an optional shared HTTP client."""
        self._config = config or GitHubEventsConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_s,
            headers={
                "User-Agent": self._config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _events_url(self, user: str) -> str:
        return f"{self._config.api_url.rstrip('/')}/users/{user}/events"

    async def fetch_user_events(
        self, user: str, credentials: GitHubCredentials | None = None
    ) -> list[object]:
        """Fetch one page of recent events for ``user``.

        Raises
        ------
        GitHubAPIError
            If GitHub answers with anything other than 200.
        GitHubResponseShapeError
            If the body is not a JSON array.
        httpx.HTTPError
            On transport failures, including timeouts.

        """
        creds = credentials or GitHubCredentials()
        response = await self._client.get(
            self._events_url(user),
            params={"per_page": self._config.per_page},
            headers=creds.auth_headers(),
            timeout=self._config.timeout_s,
            auth=creds.basic_auth(),
        )
        if response.status_code != httpx.codes.OK:
            raise GitHubAPIError.http_error(response.status_code)
        return _parse_events_body(response)
