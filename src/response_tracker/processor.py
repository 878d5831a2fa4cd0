"""Per-item eligibility filtering and record assembly."""

from __future__ import annotations

import logging
from typing import Optional

from .business_hours import elapsed_business_hours, is_within_one_business_day, week_start
from .membership import MembershipResolver
from .models import Item, NormalizedRecord, ResolvedResponse
from .response_locator import ResponseLocator

logger = logging.getLogger(__name__)


class ItemProcessor:
    """Turns fetched items into normalized records, dropping internal traffic."""

    def __init__(self, membership: MembershipResolver, locator: ResponseLocator) -> None:
        self._membership = membership
        self._locator = locator

    def is_eligible(self, item: Item) -> bool:
        """Items opened by insiders or bots are not community input."""
        return not self._membership.is_excluded(item.author, item.repository)

    def process(self, item: Item) -> Optional[NormalizedRecord]:
        """Locate the first response for an eligible item and build its record.

        Returns ``None`` when the item is authored by an excluded user.
        """
        if not self.is_eligible(item):
            logger.debug(
                "Skipping item authored by excluded user",
                extra={"repository": item.repository, "number": item.number, "author": item.author},
            )
            return None

        response = self._locator.find_first_response(item)
        return build_record(item, response)


def build_record(item: Item, response: Optional[ResolvedResponse]) -> NormalizedRecord:
    """Assemble the normalized record for an item and its (possibly missing) response."""
    response_time_hours: Optional[float] = None
    responded_within_one_day = False

    if response is not None:
        response_time_hours = elapsed_business_hours(item.created_at, response.responded_at)
        responded_within_one_day = is_within_one_business_day(item.created_at, response.responded_at)

    return NormalizedRecord(
        repository=item.repository,
        number=item.number,
        item_type=item.item_type,
        title=item.title,
        created_at=item.created_at,
        author=item.author,
        url=item.url,
        response=response,
        response_time_hours=response_time_hours,
        responded_within_one_day=responded_within_one_day,
        week_start=week_start(item.created_at),
    )
