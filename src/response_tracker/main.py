"""Entry point wiring configuration, fetching, aggregation and reporting together."""

from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Dict, List

from .aggregator import compute_overall_metrics, compute_weekly_summary
from .cli import parse_args, resolve_date_range
from .config import Config, load_config
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    NotificationError,
    RateLimitError,
)
from .fetcher import FetchOrchestrator, enrich_rate_limit_error, quota_snapshot
from .github_client import GitHubClient
from .membership import MembershipResolver
from .models import NormalizedRecord, OverallMetrics, QuotaStatus, WeeklySummary
from .notifier import SlackNotifier
from .processor import ItemProcessor
from .report import generate_report, save_csv
from .response_locator import ResponseLocator

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_UNEXPECTED_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_AUTHENTICATION_ERROR = 3
EXIT_API_ERROR = 4
EXIT_RATE_LIMIT_ERROR = 5

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records to stderr so stdout only carries the report."""
    logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT, handlers=[logging.StreamHandler(sys.stderr)])


def _format_quota(quota: Dict[str, QuotaStatus]) -> List[str]:
    return [
        f"  {status.category}: {status.remaining}/{status.limit} remaining, "
        f"resets at {status.reset_at.isoformat()}"
        for status in quota.values()
    ]


def _log_quota(client: GitHubClient) -> None:
    for status in quota_snapshot(client).values():
        logger.info(
            "Rate limit status",
            extra={"category": status.category, "remaining": status.remaining, "limit": status.limit},
        )


def build_pipeline(config: Config, client: GitHubClient) -> FetchOrchestrator:
    """Construct and load the per-run membership resolver and the components that share it."""
    membership = MembershipResolver(
        client=client,
        organization=config.organization,
        exclude_bots=config.exclude_bots,
        exclude_teams=config.exclude_teams,
        repository_teams=config.repository_teams,
        include_org_members=config.include_org_members,
    )
    try:
        membership.load(config.repositories)
    except RateLimitError as exc:
        raise enrich_rate_limit_error(client, exc, "loading organization membership") from exc

    locator = ResponseLocator(client=client, membership=membership, page_size=config.response_page_size)
    processor = ItemProcessor(membership=membership, locator=locator)
    return FetchOrchestrator(client=client, processor=processor, batch_size=config.pr_batch_size)


def notify(
    config: Config,
    records: List[NormalizedRecord],
    metrics: OverallMetrics,
    weekly_summary: List[WeeklySummary],
    start_date: date,
    end_date: date,
) -> None:
    """Deliver the digest and the slow-response attachment to Slack.

    The two deliveries are independent: a missing or failing webhook does not
    stop the attachment upload. Failures are logged and never fail the run.
    """
    notifier = SlackNotifier(
        webhook_url=config.slack_webhook_url,
        bot_token=config.slack_bot_token,
        channel=config.slack_channel,
    )
    try:
        notifier.post_report(metrics, weekly_summary, start_date, end_date)
    except NotificationError as exc:
        logger.error("Slack notification failed: %s", exc)
    else:
        print("Report posted to Slack.")

    try:
        if notifier.upload_slow_responses(records, start_date, end_date):
            print("Slow response attachment uploaded to Slack.")
    except NotificationError as exc:
        logger.error("Slack file upload failed: %s", exc)


def orchestrate_report_generation() -> int:
    """Run the response time analysis end to end and return a process exit code."""
    try:
        args = parse_args()
        configure_logging(logging.DEBUG if args.verbose else logging.INFO)

        config = load_config(config_path=args.config)
        start_date, end_date = resolve_date_range(args.start_date, args.end_date)

        print(f"Organization: {config.organization}")
        print(f"Repositories: {', '.join(config.repositories)}")
        print(f"Date range: {start_date.isoformat()} to {end_date.isoformat()}")

        client = GitHubClient(config=config)
        _log_quota(client)

        orchestrator = build_pipeline(config, client)
        records = orchestrator.fetch_all(config.repositories, start_date, end_date)

        if not records:
            print("No issues or pull requests found in the specified date range.")
            return EXIT_SUCCESS

        print(f"Total items analyzed: {len(records)}")

        metrics = compute_overall_metrics(records)
        weekly_summary = compute_weekly_summary(records)
        print(generate_report(metrics, weekly_summary, start_date, end_date))

        csv_path = save_csv(records, args.output)
        print(f"CSV report saved to: {csv_path}")

        if args.slack:
            notify(config, records, metrics, weekly_summary, start_date, end_date)

        _log_quota(client)
        return EXIT_SUCCESS
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except AuthenticationError as exc:
        print(f"Authentication error: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION_ERROR
    except RateLimitError as exc:
        print(f"Rate limit error: {exc}", file=sys.stderr)
        for line in _format_quota(exc.quota):
            print(line, file=sys.stderr)
        print(exc.remediation, file=sys.stderr)
        return EXIT_RATE_LIMIT_ERROR
    except ApiError as exc:
        print(f"GitHub API error: {exc}", file=sys.stderr)
        return EXIT_API_ERROR
    except Exception:
        logger.exception("Unexpected error while generating the response time report")
        return EXIT_UNEXPECTED_ERROR


def main() -> None:
    sys.exit(orchestrate_report_generation())


if __name__ == "__main__":
    main()
