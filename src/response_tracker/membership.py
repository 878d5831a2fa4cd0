"""Resolution of insider and bot accounts.

Insiders are organization members plus the members of configured teams. Their
own issues and pull requests are internal traffic and are not analyzed, while
their comments, reviews and merges are what counts as a response. Bots are
never analyzed and never count as responders, even when they belong to the
organization or a team.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .errors import ApiError, AuthenticationError, RateLimitError
from .github_client import GitHubClient

logger = logging.getLogger(__name__)


class MembershipResolver:
    """Per-run membership sets, fetched once by :meth:`load` and read-only afterwards."""

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        exclude_bots: Iterable[str] = (),
        exclude_teams: Iterable[str] = (),
        repository_teams: Optional[Mapping[str, Sequence[str]]] = None,
        include_org_members: bool = True,
    ) -> None:
        self._client = client
        self._organization = organization
        self._bots: FrozenSet[str] = frozenset(bot.lower() for bot in exclude_bots)
        self._exclude_teams = tuple(exclude_teams)
        self._repository_teams: Dict[str, Tuple[str, ...]] = {
            repository: tuple(teams) for repository, teams in (repository_teams or {}).items()
        }
        self._include_org_members = include_org_members

        self._org_members: FrozenSet[str] = frozenset()
        self._team_cache: Dict[str, FrozenSet[str]] = {}
        self._insiders_by_repository: Dict[str, FrozenSet[str]] = {}
        self._global_insiders: FrozenSet[str] = frozenset()
        self._loaded = False

    @property
    def team_cache(self) -> Mapping[str, FrozenSet[str]]:
        return dict(self._team_cache)

    def load(self, repositories: Sequence[str] = ()) -> None:
        """Fetch organization members and team rosters for the given repositories.

        Raises:
            ApiError: If the organization member list cannot be fetched. There
                is no safe fallback, as guessing membership would corrupt the
                metric.
        """
        if self._include_org_members:
            logger.info("Fetching organization members for %s", self._organization)
            try:
                members = self._client.list_org_members()
            except (AuthenticationError, RateLimitError):
                raise
            except ApiError as exc:
                raise ApiError(f"Failed to fetch org members: {exc}") from exc
            self._org_members = frozenset(members)
            logger.info(
                "Cached organization members",
                extra={"organization": self._organization, "members": len(self._org_members)},
            )

        global_members: Set[str] = set(self._org_members)
        for team in self._exclude_teams:
            global_members.update(self._team_members(team))
        self._global_insiders = frozenset(global_members)

        for repository in repositories:
            scoped: Set[str] = set(self._global_insiders)
            for team in self._repository_teams.get(repository, ()):
                scoped.update(self._team_members(team))
            self._insiders_by_repository[repository] = frozenset(scoped)

        self._loaded = True
        logger.info(
            "Built exclusion list",
            extra={
                "insiders": len(self._global_insiders),
                "bots": len(self._bots),
                "teams_fetched": len(self._team_cache),
            },
        )

    def _team_members(self, team_slug: str) -> FrozenSet[str]:
        """Return a team's roster, fetching it at most once per resolver."""
        if team_slug in self._team_cache:
            return self._team_cache[team_slug]

        try:
            members: List[str] = self._client.list_team_members(team_slug)
        except (AuthenticationError, RateLimitError):
            raise
        except ApiError as exc:
            logger.warning("Could not fetch members of team '%s', treating it as empty: %s", team_slug, exc)
            members = []

        roster = frozenset(members)
        self._team_cache[team_slug] = roster
        return roster

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("MembershipResolver.load() must be called before membership checks.")

    def insiders(self, repository: Optional[str] = None) -> FrozenSet[str]:
        """Insider logins for a repository, or the organization-wide set."""
        self._require_loaded()
        if repository is None:
            return self._global_insiders
        return self._insiders_by_repository.get(repository, self._global_insiders)

    def is_bot(self, username: Optional[str]) -> bool:
        return bool(username) and username.lower() in self._bots

    def is_excluded(self, username: Optional[str], repository: Optional[str] = None) -> bool:
        """Whether items authored by ``username`` are left out of the analysis."""
        if not username:
            return False
        return self.is_bot(username) or username in self.insiders(repository)

    def is_eligible_responder(self, username: Optional[str], repository: Optional[str] = None) -> bool:
        """Whether an event by ``username`` can count as a first response."""
        if not username or self.is_bot(username):
            return False
        return username in self.insiders(repository)
