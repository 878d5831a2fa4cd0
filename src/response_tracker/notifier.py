"""Slack delivery of the response time digest.

Delivery is best-effort: every failure is raised as ``NotificationError`` and
the caller decides whether the run still succeeds.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional, Sequence

import requests

from .aggregator import slow_responses
from .errors import NotificationError
from .models import NormalizedRecord, OverallMetrics, WeeklySummary
from .report import format_date, format_overall_metrics, format_weekly_table, generate_csv

logger = logging.getLogger(__name__)

_SLACK_API_URL = "https://slack.com/api"


def _code_block(text: str) -> str:
    return f"```\n{text}\n```"


def format_slack_message(
    metrics: OverallMetrics,
    weekly_summary: Sequence[WeeklySummary],
    start_date: date,
    end_date: date,
) -> str:
    """Build the mrkdwn digest with a title, the date range and both text blocks."""
    header = (
        "*GitHub Response Time Analysis*\n"
        f"_{format_date(start_date)} to {format_date(end_date)}_"
    )
    return "\n\n".join(
        [
            header,
            _code_block(format_overall_metrics(metrics)),
            _code_block(format_weekly_table(weekly_summary)),
        ]
    )


class SlackNotifier:
    """Posts the digest through an incoming webhook and uploads attachments with a bot token."""

    def __init__(
        self,
        webhook_url: Optional[str],
        bot_token: Optional[str] = None,
        channel: Optional[str] = None,
        timeout_seconds: int = 30,
    ) -> None:
        self._webhook_url = webhook_url
        self._bot_token = bot_token
        self._channel = channel
        self._timeout_seconds = timeout_seconds
        self._session = requests.Session()

    @property
    def can_upload(self) -> bool:
        return bool(self._bot_token and self._channel)

    def post_message(self, message: str) -> None:
        """Post a mrkdwn message to the configured incoming webhook."""
        if not self._webhook_url:
            raise NotificationError("No Slack webhook URL configured.")

        try:
            response = self._session.post(
                self._webhook_url,
                json={"text": message, "mrkdwn": True},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise NotificationError(f"Failed to post to Slack: {exc}") from exc

        if response.status_code >= 400:
            raise NotificationError(f"Failed to post to Slack: {response.status_code} {response.reason}")

    def post_report(
        self,
        metrics: OverallMetrics,
        weekly_summary: Sequence[WeeklySummary],
        start_date: date,
        end_date: date,
    ) -> None:
        self.post_message(format_slack_message(metrics, weekly_summary, start_date, end_date))
        logger.info("Posted report to Slack")

    def _call_api(self, method: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._session.post(
                f"{_SLACK_API_URL}/{method}",
                headers={"Authorization": f"Bearer {self._bot_token}"},
                timeout=self._timeout_seconds,
                **kwargs,
            )
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NotificationError(f"Slack API call {method} failed: {exc}") from exc

        if response.status_code >= 400 or not payload.get("ok"):
            raise NotificationError(f"Slack API call {method} failed: {payload.get('error', response.status_code)}")
        return payload

    def upload_file(self, filename: str, content: str, title: str, comment: Optional[str] = None) -> None:
        """Upload a text file to the configured channel using the external upload flow."""
        if not self.can_upload:
            raise NotificationError("Slack file upload requires a bot token and a channel.")

        data = content.encode("utf-8")
        ticket = self._call_api("files.getUploadURLExternal", data={"filename": filename, "length": len(data)})

        try:
            upload = self._session.post(ticket["upload_url"], data=data, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise NotificationError(f"Failed to upload {filename} to Slack: {exc}") from exc
        if upload.status_code >= 400:
            raise NotificationError(f"Failed to upload {filename} to Slack: {upload.status_code}")

        completion: Dict[str, Any] = {
            "files": [{"id": ticket["file_id"], "title": title}],
            "channel_id": self._channel,
        }
        if comment:
            completion["initial_comment"] = comment
        self._call_api("files.completeUploadExternal", json=completion)

    def upload_slow_responses(
        self,
        records: Sequence[NormalizedRecord],
        start_date: date,
        end_date: date,
    ) -> bool:
        """Attach a CSV of items not answered within one business day.

        Returns ``True`` when a file was uploaded, ``False`` when there was
        nothing to send or uploads are not configured.
        """
        slow = slow_responses(records)
        if not slow or not self.can_upload:
            return False

        date_range = f"{format_date(start_date)}-to-{format_date(end_date)}"
        self.upload_file(
            filename=f"slow-responses-{date_range}.csv",
            content=generate_csv(slow),
            title="Issues/PRs not responded to within 1 business day",
            comment=f"{len(slow)} items were not responded to within 1 business day.",
        )
        logger.info("Uploaded slow response attachment", extra={"items": len(slow)})
        return True
