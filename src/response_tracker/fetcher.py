"""Sequencing of per-repository fetches under the shared GitHub rate budget.

Repositories are fetched one after another because date-scoped queries go
through the search API, whose quota is far smaller than the core API quota.
Pull request response lookups run in fixed-width batches: items inside a batch
are looked up concurrently, batches run sequentially, which bounds the number
of requests in flight.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_PR_BATCH_SIZE
from .errors import ApiError, AuthenticationError, RateLimitError
from .github_client import GitHubClient
from .models import Item, ItemType, NormalizedRecord, QuotaStatus
from .processor import ItemProcessor

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    """Progress of the fetch for the repository currently being processed."""

    IDLE = "idle"
    FETCHING_ISSUES = "fetching_issues"
    FETCHING_PRS = "fetching_prs"
    DONE = "done"


def _is_rate_limit_failure(exc: Exception) -> bool:
    return isinstance(exc, RateLimitError) or "rate limit" in str(exc).lower()


def quota_snapshot(client: GitHubClient) -> Dict[str, QuotaStatus]:
    """Probe the remaining quota, or return an empty mapping when the probe fails."""
    try:
        return client.get_quota_status()
    except (ApiError, AuthenticationError) as exc:
        logger.warning("Could not read rate limit status: %s", exc)
        return {}


def enrich_rate_limit_error(client: GitHubClient, exc: Exception, activity: str) -> RateLimitError:
    """Build a ``RateLimitError`` carrying the current quota and reset times.

    Args:
        client: Client used to probe ``/rate_limit``.
        exc: The failure that exhausted the quota.
        activity: What the run was doing, e.g. ``"fetching repo-a"``.
    """
    quota = quota_snapshot(client)
    details = ", ".join(
        f"{status.category}: {status.remaining}/{status.limit} remaining, "
        f"resets at {status.reset_at.isoformat()}"
        for status in quota.values()
    )
    message = f"GitHub API rate limit exhausted while {activity}: {exc}"
    if details:
        message = f"{message} ({details})"
    return RateLimitError(message, quota=quota)


class FetchOrchestrator:
    """Fetches and processes issues, then pull requests, repository by repository."""

    def __init__(
        self,
        client: GitHubClient,
        processor: ItemProcessor,
        batch_size: int = DEFAULT_PR_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        self._client = client
        self._processor = processor
        self._batch_size = batch_size
        self.state = FetchState.IDLE

    def fetch_all(
        self,
        repositories: Sequence[str],
        created_from: date,
        created_to: date,
    ) -> List[NormalizedRecord]:
        """Fetch every repository in input order and concatenate their records."""
        records: List[NormalizedRecord] = []
        for repository in repositories:
            records.extend(self.fetch_repository(repository, created_from, created_to))
        return records

    def fetch_repository(
        self,
        repository: str,
        created_from: date,
        created_to: date,
    ) -> List[NormalizedRecord]:
        """Fetch and process the issues and pull requests of one repository.

        Raises:
            RateLimitError: If the request quota is exhausted, enriched with the
                current quota status. The run cannot continue.
            ApiError: For any other fetch failure of the item lists.
        """
        self.state = FetchState.IDLE
        try:
            self.state = FetchState.FETCHING_ISSUES
            logger.info("Fetching issues for %s", repository)
            issues = self._client.search_items(repository, ItemType.ISSUE, created_from, created_to)
            issue_records = [record for record in map(self._processor.process, issues) if record]
            logger.info(
                "Processed issues",
                extra={"repository": repository, "fetched": len(issues), "analyzed": len(issue_records)},
            )

            self.state = FetchState.FETCHING_PRS
            logger.info("Fetching pull requests for %s", repository)
            prs = self._client.search_items(repository, ItemType.PR, created_from, created_to)
            pr_records = self._process_in_batches(prs)
            logger.info(
                "Processed pull requests",
                extra={"repository": repository, "fetched": len(prs), "analyzed": len(pr_records)},
            )
        except AuthenticationError:
            raise
        except Exception as exc:
            if _is_rate_limit_failure(exc):
                raise enrich_rate_limit_error(self._client, exc, f"fetching {repository}") from exc
            if isinstance(exc, ApiError):
                raise ApiError(f"Failed to fetch items for {repository}: {exc}") from exc
            raise

        self.state = FetchState.DONE
        return issue_records + pr_records

    def _process_in_batches(self, items: Sequence[Item]) -> List[NormalizedRecord]:
        records: List[NormalizedRecord] = []

        for offset in range(0, len(items), self._batch_size):
            batch = items[offset:offset + self._batch_size]
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                # map() yields results in input order, one slot per item.
                results: List[Optional[NormalizedRecord]] = list(executor.map(self._processor.process, batch))
            records.extend(record for record in results if record is not None)

        return records
