"""
CloudWatch alarm collaborator: list, create and delete reconciled alarms.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

import boto3

from .base import BaseServiceManager
from ..core.exceptions import ServiceError
from ..reconcile.models import ActionOutcome, CreateAction, DeleteAction
from ..reconcile.policy import METRICS, ResourceType, format_threshold


logger = logging.getLogger(__name__)


class CloudWatchAlarmManager(BaseServiceManager):
    """Alarm API used by the analyzer (listing) and the executor (create/delete)."""

    def __init__(
        self,
        session: boto3.Session,
        region: str,
        topic_arn: Optional[str] = None,
        period: int = 60,
        evaluation_periods: int = 1,
    ):
        """Initialize the alarm manager.

        Args:
            session: Authenticated boto3 session
            region: AWS region the alarms live in
            topic_arn: SNS topic notified on ALARM and OK transitions
            period: Metric period in seconds
            evaluation_periods: Number of periods compared against the threshold
        """
        super().__init__(session, region)
        self.topic_arn = topic_arn
        self.period = period
        self.evaluation_periods = evaluation_periods

    @property
    def service_name(self) -> str:
        return 'cloudwatch'

    def list_alarm_names(self, suffix: str) -> List[str]:
        """Names of metric alarms that end with the naming suffix.

        Raises:
            ServiceError: If the describe call fails
        """
        try:
            paginator = self.client.get_paginator('describe_alarms')
            names = []
            for page in paginator.paginate(AlarmTypes=['MetricAlarm']):
                names.extend(a['AlarmName'] for a in page.get('MetricAlarms', []))
        except Exception as e:
            self._handle_aws_error(e, 'describe_alarms')
        return [name for name in names if name.endswith(suffix)]

    def build_alarm_params(self, action: CreateAction) -> Dict[str, Any]:
        """Keyword arguments for ``put_metric_alarm``.

        Raises:
            ServiceError: If the action names a resource type this build does not support
        """
        resource_type = ResourceType.from_label(action.resource_type)
        if resource_type is None:
            raise ServiceError(f"Unsupported resource type: {action.resource_type}")

        metric = METRICS[resource_type]
        spec = action.spec
        params = {
            'AlarmName': spec.alarm_name,
            'AlarmDescription': f"Alarm for {metric.description} {action.resource_name}",
            'Namespace': metric.namespace,
            'MetricName': spec.metric_name,
            'Dimensions': [{'Name': metric.dimension_name, 'Value': action.resource_name}],
            'Statistic': metric.statistic,
            'Period': self.period,
            'EvaluationPeriods': self.evaluation_periods,
            'Threshold': float(spec.threshold),
            'ComparisonOperator': 'GreaterThanThreshold',
            'TreatMissingData': 'notBreaching',
        }
        if self.topic_arn:
            params['AlarmActions'] = [self.topic_arn]
            params['OKActions'] = [self.topic_arn]
        return params

    def create_alarm(self, action: CreateAction) -> ActionOutcome:
        """Create (or overwrite) the alarm described by a create action.

        API failures are returned as a failed outcome, never raised.
        """
        start_time = datetime.now()
        logger.info(f"Creating alarm: {action.alarm_name} (threshold: {format_threshold(action.threshold)})")

        try:
            self.client.put_metric_alarm(**self.build_alarm_params(action))
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.error(f"Failed: {action.alarm_name}: {e}")
            return ActionOutcome(
                action=action,
                succeeded=False,
                error_detail=f"Failed to create alarm {action.alarm_name}: {str(e)}",
                duration=duration,
            )

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Created: {action.alarm_name}")
        return ActionOutcome(action=action, succeeded=True, duration=duration)

    def delete_alarm(self, action: DeleteAction) -> ActionOutcome:
        """Delete an alarm by name, reporting whatever the API reports."""
        start_time = datetime.now()
        logger.info(f"Deleting alarm: {action.alarm_name}")

        try:
            self.client.delete_alarms(AlarmNames=[action.alarm_name])
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.error(f"Failed to delete: {action.alarm_name}: {e}")
            return ActionOutcome(
                action=action,
                succeeded=False,
                error_detail=f"Failed to delete alarm {action.alarm_name}: {str(e)}",
                duration=duration,
            )

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Deleted: {action.alarm_name}")
        return ActionOutcome(action=action, succeeded=True, duration=duration)
