"""GitHub REST API client for response time data retrieval."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, AuthenticationError, RateLimitError
from .models import Activity, Item, ItemType, PullRequestDetail, QuotaStatus

logger = logging.getLogger(__name__)


class GitHubClient:
    """Small, typed client for the GitHub search, issue, pull request and org APIs."""

    _API_BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    _PAGE_SIZE = 100
    _SEARCH_RESULT_CAP = 1000
    _MAX_PAGES = 50
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including organization and token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {config.token}",
                "X-GitHub-Api-Version": self._API_VERSION,
                "User-Agent": "gh-response-time-tracker",
            }
        )

    @property
    def organization(self) -> str:
        return self._config.organization

    def _build_url(self, path: str) -> str:
        return f"{self._API_BASE_URL}/{path.lstrip('/')}"

    def _full_name(self, repository: str) -> str:
        """Qualify a bare repository name with the configured organization."""
        if "/" in repository:
            return repository
        return f"{self._config.organization}/{repository}"

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse GitHub ISO8601 timestamps into timezone-aware UTC datetimes."""
        if not value:
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def _is_rate_limited(self, response: requests.Response) -> bool:
        if response.status_code not in (403, 429):
            return False
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in (response.text or "").lower()

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a GET request with retry logic for network errors and 5xx responses.

        Quota exhaustion is never retried: the reset can be up to an hour away,
        so the caller is expected to abort the run.

        Raises:
            RateLimitError: If GitHub reports the request quota as exhausted.
            AuthenticationError: If GitHub rejects the token (401/403).
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return valid JSON.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ApiError(f"GitHub request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code

            if self._is_rate_limited(response):
                raise RateLimitError(f"GitHub API rate limit exceeded: GET {url} returned {status_code}")

            if 500 <= status_code <= 599 and attempt < self._MAX_RETRIES:
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            if status_code in (401, 403):
                raise AuthenticationError(
                    f"GitHub rejected the request: GET {url} returned {status_code} - {response.text}"
                )

            if status_code >= 400:
                raise ApiError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                return response.json()
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def _get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        payload = self._get_json(path, params=params)
        if not isinstance(payload, list):
            raise ApiError(f"GitHub API returned unexpected payload shape: GET {path}")
        return payload

    def _paginate(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect every page of a list endpoint until a short page is returned.

        Raises:
            ApiError: If the page limit is reached while pages are still full.
        """
        results: List[Dict[str, Any]] = []

        for page in range(1, self._MAX_PAGES + 1):
            query = dict(params or {})
            query.update({"per_page": self._PAGE_SIZE, "page": page})
            page_items = self._get_list(path, params=query)
            results.extend(page_items)

            if len(page_items) < self._PAGE_SIZE:
                break
        else:
            raise ApiError(
                f"GitHub list exceeds {self._MAX_PAGES * self._PAGE_SIZE} entries, refusing to truncate: GET {path}"
            )

        return results

    def _login(self, user: Optional[Dict[str, Any]]) -> Optional[str]:
        if not user:
            return None
        login = user.get("login")
        return str(login) if login else None

    def search_items(
        self,
        repository: str,
        item_type: ItemType,
        created_from: date,
        created_to: date,
    ) -> List[Item]:
        """Search issues or pull requests created within an inclusive date range.

        Uses the search API, which has its own, much smaller, rate budget than
        the core API. Results are capped by GitHub at 1000 per query.
        """
        qualifier = "issue" if item_type == ItemType.ISSUE else "pr"
        query = (
            f"repo:{self._full_name(repository)} is:{qualifier} "
            f"created:{created_from.isoformat()}..{created_to.isoformat()}"
        )

        items: List[Item] = []
        page = 1
        warned_about_cap = False

        while True:
            payload = self._get_json(
                "search/issues",
                params={"q": query, "per_page": self._PAGE_SIZE, "page": page},
            )
            if not isinstance(payload, dict):
                raise ApiError(f"GitHub search returned unexpected payload shape: q={query}")

            page_items = payload.get("items", [])
            for entry in page_items:
                is_pull_request = "pull_request" in entry
                if is_pull_request != (item_type == ItemType.PR):
                    continue

                number = entry.get("number")
                created_at = self._parse_datetime(entry.get("created_at"))
                if number is None or created_at is None:
                    raise ApiError(
                        "GitHub search result is missing required fields: "
                        f"repository={repository}, payload={entry}"
                    )

                items.append(
                    Item(
                        repository=repository,
                        number=int(number),
                        item_type=item_type,
                        title=str(entry.get("title") or ""),
                        created_at=created_at,
                        author=self._login(entry.get("user")),
                        url=str(entry.get("html_url") or ""),
                        state=str(entry.get("state") or "open"),
                    )
                )

            reported_total = int(payload.get("total_count") or 0)
            if reported_total > self._SEARCH_RESULT_CAP and not warned_about_cap:
                warned_about_cap = True
                logger.warning(
                    "Search for %s %ss matched %d results; only the first %d are analyzed",
                    repository,
                    item_type.value,
                    reported_total,
                    self._SEARCH_RESULT_CAP,
                )
            total_count = min(reported_total, self._SEARCH_RESULT_CAP)
            if len(page_items) < self._PAGE_SIZE or page * self._PAGE_SIZE >= total_count:
                break

            page += 1

        logger.debug(
            "Searched items",
            extra={"repository": repository, "item_type": item_type.value, "count": len(items)},
        )
        return items

    def get_pull_request_detail(self, repository: str, number: int) -> PullRequestDetail:
        """Fetch merge status and merging user for one pull request."""
        payload = self._get_json(f"repos/{self._full_name(repository)}/pulls/{number}")
        if not isinstance(payload, dict):
            raise ApiError(f"GitHub API returned unexpected pull request payload: {repository}#{number}")

        return PullRequestDetail(
            number=number,
            merged_at=self._parse_datetime(payload.get("merged_at")),
            merged_by=self._login(payload.get("merged_by")),
        )

    def _list_activity(
        self,
        path: str,
        timestamp_field: str,
        page_size: int,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Activity]:
        query = dict(params or {})
        query.update({"per_page": page_size, "page": 1})
        activities: List[Activity] = []

        for entry in self._get_list(path, params=query):
            author = self._login(entry.get("user"))
            if not author:
                continue
            activities.append(
                Activity(author=author, created_at=self._parse_datetime(entry.get(timestamp_field)))
            )

        return activities

    def list_comments(self, repository: str, number: int, page_size: int) -> List[Activity]:
        """List the first page of conversation comments, oldest first."""
        return self._list_activity(
            f"repos/{self._full_name(repository)}/issues/{number}/comments",
            "created_at",
            page_size,
        )

    def list_review_comments(self, repository: str, number: int, page_size: int) -> List[Activity]:
        """List the first page of inline review comments, oldest first."""
        return self._list_activity(
            f"repos/{self._full_name(repository)}/pulls/{number}/comments",
            "created_at",
            page_size,
            params={"sort": "created", "direction": "asc"},
        )

    def list_reviews(self, repository: str, number: int, page_size: int) -> List[Activity]:
        """List the first page of formal reviews in chronological order.

        Pending reviews have no ``submitted_at`` and are returned with a
        ``None`` timestamp.
        """
        return self._list_activity(
            f"repos/{self._full_name(repository)}/pulls/{number}/reviews",
            "submitted_at",
            page_size,
        )

    def list_org_members(self) -> List[str]:
        """List the logins of every member of the configured organization."""
        members = self._paginate(f"orgs/{self._config.organization}/members")
        return [login for login in (self._login(member) for member in members) if login]

    def list_team_members(self, team_slug: str) -> List[str]:
        """List the logins of a team within the configured organization."""
        members = self._paginate(f"orgs/{self._config.organization}/teams/{team_slug}/members")
        return [login for login in (self._login(member) for member in members) if login]

    def get_quota_status(self) -> Dict[str, QuotaStatus]:
        """Return the remaining request quota for the core and search API categories."""
        payload = self._get_json("rate_limit")
        resources = payload.get("resources", {}) if isinstance(payload, dict) else {}
        statuses: Dict[str, QuotaStatus] = {}

        for category in ("core", "search"):
            resource = resources.get(category)
            if not resource:
                continue
            statuses[category] = QuotaStatus(
                category=category,
                remaining=int(resource.get("remaining", 0)),
                limit=int(resource.get("limit", 0)),
                reset_at=datetime.fromtimestamp(int(resource.get("reset", 0)), tz=timezone.utc),
            )

        return statuses
