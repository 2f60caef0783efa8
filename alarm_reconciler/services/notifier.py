"""
Completion notification over SNS.
"""
import logging
from typing import Optional

import boto3

from .base import BaseServiceManager
from ..reconcile.models import RunResult


logger = logging.getLogger(__name__)


def format_summary(result: RunResult) -> str:
    """Plain-text run summary used as the notification body."""
    lines = [
        "Alarm Deployment Complete",
        "",
        f"Region: {result.region}",
        f"Timestamp: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "Results:",
        f"Created: {result.created}",
        f"Deleted: {result.deleted}",
        f"Failed: {result.failed}",
    ]
    if result.skipped:
        lines.append(f"Skipped (unsupported type): {result.skipped}")
    if result.failed_outcomes:
        lines.append("")
        lines.append("Failures:")
        for outcome in result.failed_outcomes:
            lines.append(f"- {outcome.action.alarm_name}: {outcome.error_detail}")
    return "\n".join(lines)


class SNSNotifier(BaseServiceManager):
    """Publishes the run summary to an SNS topic, best effort."""

    def __init__(self, session: boto3.Session, region: str, topic_arn: Optional[str]):
        super().__init__(session, region)
        self.topic_arn = topic_arn

    @property
    def service_name(self) -> str:
        return 'sns'

    def notify(self, result: RunResult) -> bool:
        """Publish the summary.

        Returns:
            True if the message was published. Failures are logged, never raised.
        """
        if not self.topic_arn:
            logger.warning("No SNS topic configured, skipping notification")
            return False

        subject = f"Alarms Deployed: {result.created} created, {result.deleted} deleted"
        try:
            self.client.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=format_summary(result),
            )
        except Exception as e:
            logger.warning(f"Failed to send notification: {e}")
            return False

        logger.info(f"Notification sent to {self.topic_arn}")
        return True
