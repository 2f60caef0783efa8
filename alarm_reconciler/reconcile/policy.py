"""
Naming and threshold policy for reconciled alarms.

Every function here is pure: the same inputs always give the same alarm
name, metric and threshold, which is what makes repeated analyses produce
identical plans.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


DEAD_LETTER_MARKERS = ('-dlq', '-dead-letter', '_dlq')
DEAD_LETTER_THRESHOLD = 1.0


class ResourceType(str, Enum):
    """Kinds of resources that get an alarm. Values are the plan wire labels."""

    SQS = 'SQS'
    LAMBDA = 'LAMBDA'
    DYNAMODB = 'DYNAMODB'

    @classmethod
    def from_label(cls, label: str) -> Optional['ResourceType']:
        """Look up a type by its wire label, or None if this build does not know it."""
        try:
            return cls(label.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class MetricDefinition:
    """CloudWatch metric an alarm for one resource type watches."""
    namespace: str
    metric_name: str
    dimension_name: str
    statistic: str
    description: str


METRICS = {
    ResourceType.SQS: MetricDefinition(
        namespace='AWS/SQS',
        metric_name='ApproximateNumberOfMessagesVisible',
        dimension_name='QueueName',
        statistic='Average',
        description='SQS queue',
    ),
    ResourceType.LAMBDA: MetricDefinition(
        namespace='AWS/Lambda',
        metric_name='Errors',
        dimension_name='FunctionName',
        statistic='Sum',
        description='Lambda function',
    ),
    ResourceType.DYNAMODB: MetricDefinition(
        namespace='AWS/DynamoDB',
        metric_name='ConsumedReadCapacityUnits',
        dimension_name='TableName',
        statistic='Sum',
        description='DynamoDB table',
    ),
}

DEFAULT_THRESHOLDS = {
    ResourceType.SQS: 5.0,
    ResourceType.LAMBDA: 10.0,
    ResourceType.DYNAMODB: 80.0,
}


def is_dead_letter_variant(name: str) -> bool:
    """True if the queue name carries one of the dead-letter suffixes."""
    return name.endswith(DEAD_LETTER_MARKERS)


def threshold_for(
    resource_type: ResourceType,
    name: str,
    default_thresholds: Mapping[ResourceType, float],
) -> float:
    """Alarm threshold for a resource.

    Dead-letter queues alarm on the first visible message. Every other
    resource, including dead-letter-looking Lambda functions or tables,
    uses the configured default for its type, falling back to the built-in
    default when the mapping has no entry for it.
    """
    if resource_type is ResourceType.SQS and is_dead_letter_variant(name):
        return DEAD_LETTER_THRESHOLD
    return float(default_thresholds.get(resource_type, DEFAULT_THRESHOLDS[resource_type]))


def expected_alarm_name(name: str, suffix: str) -> str:
    return name + suffix


def resource_name_from_alarm(alarm_name: str, suffix: str) -> Optional[str]:
    """Recover the owning resource name, or None if the alarm is not ours."""
    if not suffix or not alarm_name.endswith(suffix):
        return None
    name = alarm_name[:-len(suffix)]
    return name or None


def metric_for(resource_type: ResourceType) -> str:
    return METRICS[resource_type].metric_name


def extract_resource_name(identifier: str) -> str:
    """Reduce a queue URL or ARN-like path to its last segment."""
    return identifier.rstrip('/').rsplit('/', 1)[-1]


def format_threshold(threshold: float) -> str:
    """Render a threshold losslessly, without a trailing '.0' for whole numbers."""
    value = float(threshold)
    if value.is_integer():
        return str(int(value))
    return repr(value)
