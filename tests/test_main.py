"""Tests for application orchestration in the main module."""

import sys
from argparse import Namespace
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from response_tracker.config import Config
from response_tracker.errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    NotificationError,
    RateLimitError,
)
from response_tracker.main import orchestrate_report_generation
from response_tracker.models import Item, ItemType, QuotaStatus
from response_tracker.processor import build_record


def _args(**overrides) -> Namespace:
    values = dict(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
        config="./config.json",
        output=None,
        slack=False,
        verbose=False,
    )
    values.update(overrides)
    return Namespace(**values)


def _config() -> Config:
    return Config(
        organization="org",
        repositories=("repo-a", "repo-b"),
        token="secret",
        exclude_bots=("dependabot[bot]",),
        slack_webhook_url="https://hooks.slack.com/x",
    )


def _records():
    item = Item(
        repository="repo-a",
        number=1,
        item_type=ItemType.ISSUE,
        title="Help",
        created_at=datetime(2024, 1, 2, 9, tzinfo=timezone.utc),
        author="outsider",
        url="https://github.com/org/repo-a/issues/1",
    )
    return [build_record(item, None)]


def test_orchestrate_report_generation_success(capsys):
    """Verify orchestration returns 0 and wires components correctly on success."""
    config = _config()
    orchestrator = Mock()
    orchestrator.fetch_all.return_value = _records()

    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", return_value=config
    ) as load_config_mock, patch(
        "response_tracker.main.GitHubClient"
    ) as client_ctor_mock, patch(
        "response_tracker.main.build_pipeline", return_value=orchestrator
    ) as build_mock, patch(
        "response_tracker.main.generate_report", return_value="REPORT"
    ), patch(
        "response_tracker.main.save_csv", return_value="response-times.csv"
    ) as save_mock:
        exit_code = orchestrate_report_generation()

    assert exit_code == 0
    load_config_mock.assert_called_once_with(config_path="./config.json")
    client_ctor_mock.assert_called_once_with(config=config)
    build_mock.assert_called_once_with(config, client_ctor_mock.return_value)
    orchestrator.fetch_all.assert_called_once_with(
        ("repo-a", "repo-b"),
        date(2024, 1, 1),
        date(2024, 1, 31),
    )
    save_mock.assert_called_once_with(orchestrator.fetch_all.return_value, None)
    output = capsys.readouterr().out
    assert "REPORT" in output
    assert "CSV report saved to: response-times.csv" in output


def test_orchestrate_report_generation_without_items_skips_report(capsys):
    """Verify an empty window exits successfully without writing a CSV."""
    orchestrator = Mock()
    orchestrator.fetch_all.return_value = []

    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", return_value=_config()
    ), patch("response_tracker.main.GitHubClient"), patch(
        "response_tracker.main.build_pipeline", return_value=orchestrator
    ), patch("response_tracker.main.save_csv") as save_mock:
        exit_code = orchestrate_report_generation()

    assert exit_code == 0
    save_mock.assert_not_called()
    assert "No issues or pull requests found" in capsys.readouterr().out


def test_notification_failure_does_not_fail_the_run():
    """Verify Slack delivery failures are logged and the run still succeeds."""
    orchestrator = Mock()
    orchestrator.fetch_all.return_value = _records()
    notifier = Mock()
    notifier.post_report.side_effect = NotificationError("Failed to post to Slack: 500")

    with patch("response_tracker.main.parse_args", return_value=_args(slack=True)), patch(
        "response_tracker.main.load_config", return_value=_config()
    ), patch("response_tracker.main.GitHubClient"), patch(
        "response_tracker.main.build_pipeline", return_value=orchestrator
    ), patch("response_tracker.main.save_csv", return_value="out.csv"), patch(
        "response_tracker.main.SlackNotifier", return_value=notifier
    ):
        exit_code = orchestrate_report_generation()

    assert exit_code == 0
    notifier.post_report.assert_called_once()
    notifier.upload_slow_responses.assert_called_once()


def test_configuration_error_returns_configuration_exit_code():
    """Verify invalid configuration fails before any client is created."""
    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", side_effect=ConfigurationError("bad")
    ), patch("response_tracker.main.GitHubClient") as client_ctor_mock:
        exit_code = orchestrate_report_generation()

    assert exit_code == 2
    client_ctor_mock.assert_not_called()


def test_missing_token_returns_auth_error():
    """Verify missing token/authentication failures return the authentication exit code."""
    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config",
        side_effect=AuthenticationError("Missing required GitHub token."),
    ):
        exit_code = orchestrate_report_generation()

    assert exit_code == 3


def test_api_error_returns_api_exit_code():
    """Verify GitHub API failures return the API error exit code."""
    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", return_value=_config()
    ), patch("response_tracker.main.GitHubClient"), patch(
        "response_tracker.main.build_pipeline", side_effect=ApiError("Failed to fetch org members")
    ):
        exit_code = orchestrate_report_generation()

    assert exit_code == 4


def test_rate_limit_error_returns_rate_limit_exit_code_with_guidance(capsys):
    """Verify quota exhaustion prints quota context and remediation guidance."""
    orchestrator = Mock()
    quota = {
        "search": QuotaStatus(
            category="search",
            remaining=0,
            limit=30,
            reset_at=datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
        )
    }
    orchestrator.fetch_all.side_effect = RateLimitError("rate limit exhausted", quota=quota)

    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", return_value=_config()
    ), patch("response_tracker.main.GitHubClient"), patch(
        "response_tracker.main.build_pipeline", return_value=orchestrator
    ):
        exit_code = orchestrate_report_generation()

    assert exit_code == 5
    err = capsys.readouterr().err
    assert "search: 0/30 remaining" in err
    assert "Wait for the rate limit to reset" in err


def test_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("response_tracker.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_report_generation()

    assert exit_code == 1


def test_build_pipeline_loads_membership_once():
    """Verify the pipeline loads org membership once before returning the orchestrator."""
    from response_tracker.main import build_pipeline

    client = Mock()
    client.list_org_members.return_value = ["alice"]

    orchestrator = build_pipeline(_config(), client)

    client.list_org_members.assert_called_once_with()
    assert orchestrator.state.value == "idle"


def test_attachment_is_uploaded_without_a_webhook(capsys):
    """Verify a bot token and channel deliver the attachment even when no webhook is configured."""
    from response_tracker.main import notify

    config = Config(
        organization="org",
        repositories=("repo-a",),
        token="secret",
        slack_bot_token="xoxb-token",
        slack_channel="C123",
    )
    notifier = Mock()
    notifier.post_report.side_effect = NotificationError("No Slack webhook URL configured.")
    notifier.upload_slow_responses.return_value = True

    with patch("response_tracker.main.SlackNotifier", return_value=notifier):
        notify(config, _records(), Mock(), [], date(2024, 1, 1), date(2024, 1, 31))

    notifier.upload_slow_responses.assert_called_once_with(_records(), date(2024, 1, 1), date(2024, 1, 31))
    output = capsys.readouterr().out
    assert "Slow response attachment uploaded to Slack." in output
    assert "Report posted to Slack." not in output


def test_rate_limit_while_loading_membership_reports_quota(capsys):
    """Verify quota exhaustion during membership loading prints remaining quota and reset time."""
    client = Mock()
    client.list_org_members.side_effect = RateLimitError("GitHub API rate limit exceeded")
    client.get_quota_status.return_value = {
        "core": QuotaStatus(
            category="core",
            remaining=0,
            limit=5000,
            reset_at=datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
        )
    }

    with patch("response_tracker.main.parse_args", return_value=_args()), patch(
        "response_tracker.main.load_config", return_value=_config()
    ), patch("response_tracker.main.GitHubClient", return_value=client):
        exit_code = orchestrate_report_generation()

    assert exit_code == 5
    err = capsys.readouterr().err
    assert "loading organization membership" in err
    assert "core: 0/5000 remaining, resets at 2024-01-01T10:00:00+00:00" in err
    assert "Wait for the rate limit to reset" in err
