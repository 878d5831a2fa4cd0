"""First-response attribution for issues and pull requests.

Only the first page of each event stream is inspected. Responses are expected
early in a thread, and scanning every page would multiply the request count per
item; an insider response that only appears after ``page_size`` earlier events
is therefore not seen and the item is reported as unanswered.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .config import DEFAULT_RESPONSE_PAGE_SIZE
from .errors import ApiError, AuthenticationError, RateLimitError
from .github_client import GitHubClient
from .membership import MembershipResolver
from .models import (
    Activity,
    Item,
    ItemType,
    PullRequestDetail,
    ResolvedResponse,
    ResponseEvent,
    ResponseSource,
)

logger = logging.getLogger(__name__)


def pick_earliest(events: Iterable[ResponseEvent]) -> Optional[ResponseEvent]:
    """Return the event with the smallest timestamp; the first seen wins ties."""
    earliest: Optional[ResponseEvent] = None
    for event in events:
        if earliest is None or event.timestamp < earliest.timestamp:
            earliest = event
    return earliest


def _raise_first_failure(failures: Iterable[Optional[BaseException]]) -> None:
    """Re-raise a fatal failure ahead of any recoverable one, else the first failure."""
    errors = [failure for failure in failures if failure is not None]
    for error in errors:
        if isinstance(error, (AuthenticationError, RateLimitError)):
            raise error
    if errors:
        raise errors[0]


class ResponseLocator:
    """Finds the first response by an eligible responder for a tracked item."""

    def __init__(
        self,
        client: GitHubClient,
        membership: MembershipResolver,
        page_size: int = DEFAULT_RESPONSE_PAGE_SIZE,
    ) -> None:
        self._client = client
        self._membership = membership
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def find_first_response(self, item: Item) -> Optional[ResolvedResponse]:
        """Return the earliest qualifying response, or ``None`` when there is none.

        Failures fetching any stream are logged and reported as "no response"
        so a single bad item does not abort the run. Rate limit and
        authentication failures still propagate since every later request
        would fail the same way.
        """
        try:
            if item.item_type == ItemType.PR:
                event = self._first_pull_request_event(item)
            else:
                event = self._first_issue_event(item)
        except (AuthenticationError, RateLimitError):
            raise
        except ApiError as exc:
            logger.error(
                "Error finding first response for %s#%s: %s",
                item.repository,
                item.number,
                exc,
            )
            return None

        if event is None:
            return None

        return ResolvedResponse(responded_at=event.timestamp, responded_by=event.author)

    def _qualifying(
        self,
        item: Item,
        activities: Iterable[Activity],
        source: ResponseSource,
    ) -> List[ResponseEvent]:
        return [
            ResponseEvent(timestamp=activity.created_at, author=activity.author, source=source)
            for activity in activities
            if activity.created_at is not None
            and self._membership.is_eligible_responder(activity.author, item.repository)
        ]

    def _first_issue_event(self, item: Item) -> Optional[ResponseEvent]:
        comments = self._client.list_comments(item.repository, item.number, self._page_size)
        for comment in comments:
            if comment.created_at is None:
                continue
            if self._membership.is_eligible_responder(comment.author, item.repository):
                return ResponseEvent(
                    timestamp=comment.created_at,
                    author=comment.author,
                    source=ResponseSource.COMMENT,
                )
        return None

    def _first_pull_request_event(self, item: Item) -> Optional[ResponseEvent]:
        with ThreadPoolExecutor(max_workers=4) as executor:
            comments_future = executor.submit(
                self._client.list_comments, item.repository, item.number, self._page_size
            )
            review_comments_future = executor.submit(
                self._client.list_review_comments, item.repository, item.number, self._page_size
            )
            reviews_future = executor.submit(
                self._client.list_reviews, item.repository, item.number, self._page_size
            )
            # Open pull requests cannot have been merged yet.
            detail_future = (
                executor.submit(self._client.get_pull_request_detail, item.repository, item.number)
                if item.is_closed
                else None
            )

        futures = [comments_future, review_comments_future, reviews_future]
        if detail_future is not None:
            futures.append(detail_future)
        _raise_first_failure(future.exception() for future in futures)

        events: List[ResponseEvent] = []
        events.extend(self._qualifying(item, comments_future.result(), ResponseSource.COMMENT))
        events.extend(self._qualifying(item, review_comments_future.result(), ResponseSource.REVIEW_COMMENT))
        events.extend(self._qualifying(item, reviews_future.result(), ResponseSource.REVIEW))
        detail: Optional[PullRequestDetail] = detail_future.result() if detail_future else None

        merge_event = self._merge_event(item, detail)
        if merge_event is not None:
            events.append(merge_event)

        return pick_earliest(events)

    def _merge_event(self, item: Item, detail: Optional[PullRequestDetail]) -> Optional[ResponseEvent]:
        if detail is None or detail.merged_at is None or not detail.merged_by:
            return None
        if not self._membership.is_eligible_responder(detail.merged_by, item.repository):
            return None
        return ResponseEvent(timestamp=detail.merged_at, author=detail.merged_by, source=ResponseSource.MERGE)
