"""
Resource discovery for every alarmed resource type.
"""
from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Set, Type
import logging

import boto3

from .base import BaseServiceManager
from .cloudwatch import CloudWatchAlarmManager
from ..reconcile.diff import Inventory
from ..reconcile.policy import ResourceType, extract_resource_name


logger = logging.getLogger(__name__)


class ResourceLister(BaseServiceManager):
    """Lists the bare names of one resource type in a region."""

    resource_type: ResourceType

    @abstractmethod
    def list_identifiers(self) -> List[str]:
        """Raw identifiers as returned by the service (names or URLs)."""
        pass

    def list_resources(self) -> List[str]:
        """Bare resource names.

        Raises:
            ServiceError: If the listing call fails
        """
        try:
            identifiers = self.list_identifiers()
        except Exception as e:
            self._handle_aws_error(e, 'list')
        return [extract_resource_name(i) for i in identifiers if i]


class SQSQueueLister(ResourceLister):
    """Lists SQS queues by URL."""

    resource_type = ResourceType.SQS

    @property
    def service_name(self) -> str:
        return 'sqs'

    def list_identifiers(self) -> List[str]:
        paginator = self.client.get_paginator('list_queues')
        urls = []
        for page in paginator.paginate():
            urls.extend(page.get('QueueUrls', []))
        return urls


class LambdaFunctionLister(ResourceLister):
    """Lists Lambda function names."""

    resource_type = ResourceType.LAMBDA

    @property
    def service_name(self) -> str:
        return 'lambda'

    def list_identifiers(self) -> List[str]:
        paginator = self.client.get_paginator('list_functions')
        names = []
        for page in paginator.paginate():
            names.extend(f['FunctionName'] for f in page.get('Functions', []))
        return names


class DynamoDBTableLister(ResourceLister):
    """Lists DynamoDB table names."""

    resource_type = ResourceType.DYNAMODB

    @property
    def service_name(self) -> str:
        return 'dynamodb'

    def list_identifiers(self) -> List[str]:
        paginator = self.client.get_paginator('list_tables')
        names = []
        for page in paginator.paginate():
            names.extend(page.get('TableNames', []))
        return names


LISTERS: Dict[ResourceType, Type[ResourceLister]] = {
    ResourceType.SQS: SQSQueueLister,
    ResourceType.LAMBDA: LambdaFunctionLister,
    ResourceType.DYNAMODB: DynamoDBTableLister,
}


class InventoryCollector:
    """Takes the resource and alarm snapshot the diff runs against."""

    def __init__(
        self,
        session: boto3.Session,
        region: str,
        resource_types: Optional[Iterable[ResourceType]] = None,
        max_workers: int = 4,
    ):
        """Initialize the collector.

        Args:
            session: Authenticated boto3 session
            region: AWS region to discover in
            resource_types: Types that get new alarms. If None, all supported types.
                Every type is still listed so existing alarms keep their owners.
            max_workers: Maximum number of concurrent listing calls
        """
        self.session = session
        self.region = region
        self.enabled_types = list(resource_types) if resource_types else list(ResourceType)
        self.max_workers = max_workers
        self.alarm_manager = CloudWatchAlarmManager(session, region)

    def get_lister(self, resource_type: ResourceType) -> ResourceLister:
        return LISTERS[resource_type](self.session, self.region)

    def collect(self, alarm_suffix: str) -> Inventory:
        """Fetch every supported resource type and the suffix-matching alarms.

        A failed fetch never aborts the run: the type (or the alarm list)
        counts as empty and the failure is recorded on the inventory.
        """
        resources: Dict[ResourceType, Set[str]] = {}
        failures: List[str] = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # Clients are built here: boto3 sessions are not thread-safe
            _ = self.alarm_manager.client
            future_to_type = {}
            for resource_type in ResourceType:
                lister = self.get_lister(resource_type)
                _ = lister.client
                logger.info(f"Fetching {resource_type.value} resources...")
                future_to_type[executor.submit(lister.list_resources)] = resource_type

            alarms_future = executor.submit(self.alarm_manager.list_alarm_names, alarm_suffix)

            for future in as_completed(future_to_type):
                resource_type = future_to_type[future]
                try:
                    names = future.result()
                    resources[resource_type] = set(names)
                    logger.info(f"Discovered {len(names)} {resource_type.value} resources in {self.region}")
                except Exception as e:
                    resources[resource_type] = set()
                    error_msg = f"{resource_type.value} listing failed in {self.region}: {str(e)}"
                    failures.append(error_msg)
                    logger.warning(error_msg)

            try:
                alarm_names = alarms_future.result()
                logger.info(f"Discovered {len(alarm_names)} alarms ending in '{alarm_suffix}'")
            except Exception as e:
                alarm_names = []
                error_msg = f"CloudWatch alarm listing failed in {self.region}: {str(e)}"
                failures.append(error_msg)
                logger.warning(error_msg)

        return Inventory.build(resources, alarm_names, failures, enabled_types=self.enabled_types)
