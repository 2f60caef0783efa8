"""
High-level analyze and apply operations wiring config, AWS collaborators and the engine.
"""
from pathlib import Path
from typing import Optional, Union
import logging

import boto3

from .cloudwatch import CloudWatchAlarmManager
from .inventory import InventoryCollector
from .notifier import SNSNotifier
from ..core.config import ReconcilerConfig
from ..reconcile.diff import compute_plan
from ..reconcile.executor import PlanExecutor
from ..reconcile.models import Plan, RunResult
from ..reconcile.plan_io import load_plan, save_plan


logger = logging.getLogger(__name__)


class ReconcileOperations:
    """Analyze and apply stages for one configuration."""

    def __init__(self, config: ReconcilerConfig, session: boto3.Session):
        """Initialize with a resolved configuration.

        Args:
            config: Effective configuration
            session: Authenticated boto3 session
        """
        self.config = config
        self.session = session

    def analyze(self, output: Optional[Union[str, Path]] = None) -> Plan:
        """Discover resources and alarms and compute the plan.

        Args:
            output: If given, the plan is written there.

        Returns:
            The computed plan
        """
        logger.info(f"Analyzing resources in {self.config.region}")
        collector = InventoryCollector(
            self.session,
            self.config.region,
            resource_types=self.config.resource_types,
        )
        inventory = collector.collect(self.config.alarm_suffix)

        plan = compute_plan(
            inventory,
            region=self.config.region,
            suffix=self.config.alarm_suffix,
            default_thresholds=self.config.thresholds,
        )

        if output is not None:
            save_plan(plan, output)
        return plan

    def apply(self, plan: Plan, dry_run: bool = False, notify: bool = True) -> RunResult:
        """Apply a plan and send the completion notification.

        The plan's own region is used for every call, whatever the config says.

        Args:
            plan: Plan to apply
            dry_run: If True, report without calling the alarm API or notifying
            notify: If False, skip the completion notification

        Returns:
            Aggregate result of the run
        """
        if plan.region != self.config.region:
            logger.info(f"Plan targets {plan.region}; overriding configured region {self.config.region}")

        alarm_manager = CloudWatchAlarmManager(
            self.session,
            plan.region,
            topic_arn=self.config.sns_topic_arn,
            period=self.config.alarm_period,
            evaluation_periods=self.config.evaluation_periods,
        )
        if not self.config.sns_topic_arn:
            logger.warning("No SNS topic configured; alarms will be created without actions")

        executor = PlanExecutor(alarm_manager, max_workers=self.config.max_workers)
        result = executor.apply_plan(plan, dry_run=dry_run)

        if notify and not dry_run:
            SNSNotifier(self.session, plan.region, self.config.sns_topic_arn).notify(result)

        return result

    def apply_file(self, path: Union[str, Path], dry_run: bool = False, notify: bool = True) -> RunResult:
        """Load a plan file and apply it.

        Raises:
            PlanNotFoundError: If the plan file is missing or unreadable
            PlanFormatError: If the plan does not name a region
        """
        return self.apply(load_plan(path), dry_run=dry_run, notify=notify)
