"""Reconciliation engine: policy, diff, plan format and execution."""

from .models import (
    ResourceRef, AlarmSpec, CreateAction, DeleteAction, Plan, ActionOutcome, RunResult
)
from .policy import ResourceType
from .diff import Inventory, compute_plan
from .plan_io import serialize_plan, parse_plan, save_plan, load_plan
from .executor import PlanExecutor, ensure_not_total_failure

__all__ = [
    'ResourceRef',
    'AlarmSpec',
    'CreateAction',
    'DeleteAction',
    'Plan',
    'ActionOutcome',
    'RunResult',
    'ResourceType',
    'Inventory',
    'compute_plan',
    'serialize_plan',
    'parse_plan',
    'save_plan',
    'load_plan',
    'PlanExecutor',
    'ensure_not_total_failure',
]
