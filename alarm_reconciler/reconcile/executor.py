"""
Plan execution: apply every action independently and account for outcomes.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, List, Sequence
import logging
import threading

from .models import Action, ActionOutcome, Plan, RunResult
from .policy import ResourceType
from ..core.exceptions import TotalFailureError


logger = logging.getLogger(__name__)


class OutcomeCollector:
    """Thread-safe accumulator; outcomes are kept as soon as they arrive."""

    def __init__(self):
        self._lock = threading.Lock()
        self._outcomes: List[ActionOutcome] = []

    def add(self, outcome: ActionOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def snapshot(self) -> List[ActionOutcome]:
        with self._lock:
            return list(self._outcomes)


class PlanExecutor:
    """Applies a plan against an alarm API.

    The alarm API is any object with ``create_alarm(CreateAction)`` and
    ``delete_alarm(DeleteAction)`` methods returning an ``ActionOutcome``,
    normally a ``CloudWatchAlarmManager``.
    """

    def __init__(self, alarm_api, max_workers: int = 1):
        """Initialize the executor.

        Args:
            alarm_api: Alarm create/delete collaborator
            max_workers: Concurrent calls per phase. 1 applies actions in plan order.
        """
        self.alarm_api = alarm_api
        self.max_workers = max(1, max_workers)

    def apply_plan(self, plan: Plan, dry_run: bool = False) -> RunResult:
        """Apply all creates, then all deletes.

        One action failing never stops the others. The returned result is
        the same whatever order the calls complete in.

        Args:
            plan: Plan to apply
            dry_run: If True, report what would be done without calling the API

        Returns:
            Aggregate result of the run
        """
        result = RunResult(region=plan.region, timestamp=datetime.now(), dry_run=dry_run)
        collector = OutcomeCollector()

        logger.info(f"Region: {plan.region}")
        logger.info(f"Alarms to create: {len(plan.creates)}")
        logger.info(f"Alarms to delete: {len(plan.deletes)}")

        if plan.creates:
            logger.info("Phase 1: Creating alarms")
            supported = []
            for action in plan.creates:
                if ResourceType.from_label(action.resource_type) is None:
                    logger.warning(f"Skipping {action.alarm_name}: unsupported resource type '{action.resource_type}'")
                    collector.add(ActionOutcome(
                        action=action,
                        succeeded=False,
                        error_detail=f"Unsupported resource type: {action.resource_type}",
                        skipped=True,
                    ))
                else:
                    supported.append(action)
            self._apply_phase(supported, self.alarm_api.create_alarm, collector, dry_run)

        if plan.deletes:
            logger.info("Phase 2: Deleting orphaned alarms")
            self._apply_phase(plan.deletes, self.alarm_api.delete_alarm, collector, dry_run)

        result.outcomes = collector.snapshot()

        logger.info(
            f"Deployment complete: {result.created} created, {result.deleted} deleted, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result

    def _apply_phase(
        self,
        actions: Sequence[Action],
        apply: Callable[[Action], ActionOutcome],
        collector: OutcomeCollector,
        dry_run: bool,
    ) -> None:
        if dry_run:
            for action in actions:
                logger.info(f"[DRY RUN] Would {action.kind} {action.alarm_name}")
                collector.add(ActionOutcome(action=action, succeeded=True, duration=0.0))
            return

        if self.max_workers == 1:
            for action in actions:
                collector.add(self._apply_one(action, apply))
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._apply_one, action, apply) for action in actions]
            for future in as_completed(futures):
                collector.add(future.result())

    @staticmethod
    def _apply_one(action: Action, apply: Callable[[Action], ActionOutcome]) -> ActionOutcome:
        """Run one API call, turning any unexpected exception into a failed outcome."""
        try:
            return apply(action)
        except Exception as e:
            logger.error(f"Unexpected error during {action.kind} of {action.alarm_name}: {str(e)}")
            return ActionOutcome(
                action=action,
                succeeded=False,
                error_detail=f"Unexpected error during {action.kind}: {str(e)}",
            )


def ensure_not_total_failure(result: RunResult) -> None:
    """Raise if every attempted action failed.

    Raises:
        TotalFailureError: If at least one action was attempted and none succeeded
    """
    if result.all_failed:
        details = "\n".join(
            f"{o.action.alarm_name}: {o.error_detail}" for o in result.failed_outcomes
        )
        raise TotalFailureError(result.failed, details=details)


def get_operation_summary(result: RunResult) -> dict:
    """Counts by outcome category plus the failed actions."""
    return {
        'region': result.region,
        'timestamp': result.timestamp.isoformat(),
        'dry_run': result.dry_run,
        'created': result.created,
        'deleted': result.deleted,
        'failed': result.failed,
        'skipped': result.skipped,
        'total_operations': len(result.outcomes),
        'failed_actions': [
            {
                'kind': o.action.kind,
                'alarm_name': o.action.alarm_name,
                'error_message': o.error_detail,
            }
            for o in result.failed_outcomes
        ],
    }
