"""Tests for insider and bot membership resolution."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from response_tracker.errors import ApiError, RateLimitError
from response_tracker.membership import MembershipResolver


def _client(org_members=None, teams=None) -> Mock:
    client = Mock()
    client.list_org_members.return_value = list(org_members or [])
    rosters = teams or {}

    def _team_members(team_slug: str):
        roster = rosters[team_slug]
        if isinstance(roster, Exception):
            raise roster
        return list(roster)

    client.list_team_members.side_effect = _team_members
    return client


def test_org_members_are_excluded_reporters_and_eligible_responders():
    """Verify organization members are insiders for both checks."""
    resolver = MembershipResolver(_client(org_members=["alice"]), "org")
    resolver.load(["repo"])

    assert resolver.is_excluded("alice", "repo") is True
    assert resolver.is_eligible_responder("alice", "repo") is True
    assert resolver.is_excluded("outsider", "repo") is False
    assert resolver.is_eligible_responder("outsider", "repo") is False


def test_bot_in_org_roster_is_excluded_and_never_a_responder():
    """Verify the static bot list wins over organization membership."""
    resolver = MembershipResolver(
        _client(org_members=["alice", "ci-bot"]),
        "org",
        exclude_bots=["CI-Bot"],
    )
    resolver.load(["repo"])

    assert resolver.is_excluded("ci-bot", "repo") is True
    assert resolver.is_eligible_responder("ci-bot", "repo") is False


def test_non_member_bot_is_excluded():
    """Verify bots outside the organization are still excluded as reporters."""
    resolver = MembershipResolver(_client(), "org", exclude_bots=["dependabot[bot]"])
    resolver.load([])

    assert resolver.is_excluded("dependabot[bot]") is True


def test_org_member_fetch_failure_fails_the_run():
    """Verify an organization member fetch failure propagates as ApiError."""
    client = _client()
    client.list_org_members.side_effect = ApiError("boom")
    resolver = MembershipResolver(client, "org")

    with pytest.raises(ApiError, match="Failed to fetch org members"):
        resolver.load(["repo"])


def test_team_fetch_failure_is_treated_as_empty_roster():
    """Verify a failing team roster is logged and treated as empty."""
    client = _client(org_members=["alice"], teams={"broken": ApiError("404")})
    resolver = MembershipResolver(client, "org", exclude_teams=["broken"])

    resolver.load(["repo"])

    assert resolver.insiders("repo") == frozenset({"alice"})
    assert resolver.team_cache["broken"] == frozenset()


def test_team_rate_limit_failure_propagates():
    """Verify rate limit errors from team fetches are not swallowed."""
    client = _client(teams={"core": RateLimitError("rate limit exceeded")})
    resolver = MembershipResolver(client, "org", exclude_teams=["core"])

    with pytest.raises(RateLimitError):
        resolver.load(["repo"])


def test_repository_scoped_teams_are_cached_by_slug():
    """Verify a team shared by several repositories is fetched once and scoped per repository."""
    client = _client(teams={"maintainers": ["bob"], "docs": ["carol"]})
    resolver = MembershipResolver(
        client,
        "org",
        repository_teams={"repo-a": ["maintainers"], "repo-b": ["maintainers", "docs"]},
        include_org_members=False,
    )

    resolver.load(["repo-a", "repo-b", "repo-c"])

    client.list_org_members.assert_not_called()
    assert client.list_team_members.call_count == 2
    assert resolver.insiders("repo-a") == frozenset({"bob"})
    assert resolver.insiders("repo-b") == frozenset({"bob", "carol"})
    assert resolver.is_eligible_responder("carol", "repo-a") is False
    assert resolver.is_eligible_responder("carol", "repo-b") is True
    assert resolver.insiders("repo-c") == frozenset()


def test_membership_checks_before_load_raise():
    """Verify checks fail loudly when the resolver was never loaded."""
    resolver = MembershipResolver(_client(), "org")

    with pytest.raises(RuntimeError):
        resolver.is_eligible_responder("alice")
