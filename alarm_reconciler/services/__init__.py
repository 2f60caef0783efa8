"""AWS collaborators: discovery, alarm API and notification."""

from .base import BaseServiceManager
from .cloudwatch import CloudWatchAlarmManager
from .inventory import (
    ResourceLister,
    SQSQueueLister,
    LambdaFunctionLister,
    DynamoDBTableLister,
    InventoryCollector,
)
from .notifier import SNSNotifier

__all__ = [
    'BaseServiceManager',
    'CloudWatchAlarmManager',
    'ResourceLister',
    'SQSQueueLister',
    'LambdaFunctionLister',
    'DynamoDBTableLister',
    'InventoryCollector',
    'SNSNotifier',
]
