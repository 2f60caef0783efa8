"""
Pytest configuration and shared fixtures for alarm reconciler tests.
"""

import pytest
import boto3
from moto import mock_aws

from alarm_reconciler.core.config import ReconcilerConfig
from alarm_reconciler.reconcile.models import ActionOutcome, CreateAction, DeleteAction, Plan
from alarm_reconciler.reconcile.policy import DEFAULT_THRESHOLDS


REGION = "us-east-1"
SUFFIX = "-cloudwatch-alarm"
TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:alarm-notifications"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so no test can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    for var in ("AWS_REGION", "ALARM_SUFFIX", "ALARM_THRESHOLD", "ALARM_THRESHOLD_SQS",
                "ALARM_THRESHOLD_LAMBDA", "ALARM_THRESHOLD_DYNAMODB", "SNS_TOPIC_ARN",
                "RESOURCE_TYPES", "PLAN_FILE", "MAX_WORKERS", "ROLE_ARN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_aws_services():
    """Mock all AWS services used by the application."""
    with mock_aws():
        yield boto3.Session(region_name=REGION)


@pytest.fixture
def thresholds():
    return dict(DEFAULT_THRESHOLDS)


@pytest.fixture
def config():
    return ReconcilerConfig(region=REGION, alarm_suffix=SUFFIX, sns_topic_arn=TOPIC_ARN)


def make_create(name: str, resource_type: str = "SQS", threshold: float = 5.0,
                metric: str = "ApproximateNumberOfMessagesVisible") -> CreateAction:
    return CreateAction(
        resource_type=resource_type,
        resource_name=name,
        alarm_name=name + SUFFIX,
        threshold=threshold,
        metric_name=metric,
    )


def make_delete(name: str) -> DeleteAction:
    return DeleteAction(alarm_name=name + SUFFIX)


@pytest.fixture
def sample_plan():
    """Plan with three creates across types and two deletes."""
    return Plan(
        region=REGION,
        alarm_suffix=SUFFIX,
        creates=(
            make_create("orders"),
            make_create("orders-dlq", threshold=1.0),
            make_create("resize-images", resource_type="LAMBDA", threshold=10.0, metric="Errors"),
        ),
        deletes=(make_delete("retired-queue"), make_delete("old-table")),
    )


class FakeAlarmApi:
    """Alarm API double: fails the alarm names it is told to fail and records calls."""

    def __init__(self, failing=(), raising=()):
        self.failing = set(failing)
        self.raising = set(raising)
        self.calls = []

    def _respond(self, kind, action):
        self.calls.append((kind, action.alarm_name))
        if action.alarm_name in self.raising:
            raise RuntimeError(f"connection reset while handling {action.alarm_name}")
        if action.alarm_name in self.failing:
            return ActionOutcome(action=action, succeeded=False, error_detail="AccessDenied")
        return ActionOutcome(action=action, succeeded=True)

    def create_alarm(self, action):
        return self._respond('create', action)

    def delete_alarm(self, action):
        return self._respond('delete', action)
