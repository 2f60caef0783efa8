"""
Alarm Reconciler - keeps CloudWatch alarms in sync with the resources they guard.

Discovers SQS queues, Lambda functions and DynamoDB tables, compares them with
the alarms that follow the naming convention, and creates or deletes alarms
until every resource has exactly one.
"""

__version__ = "1.0.0"

from alarm_reconciler.core.exceptions import ReconcilerError

__all__ = ["ReconcilerError"]
