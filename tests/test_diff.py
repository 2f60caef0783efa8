"""Tests for the reconciliation diff."""

import logging

import pytest

from alarm_reconciler.reconcile.diff import Inventory, compute_plan
from alarm_reconciler.reconcile.models import CreateAction, DeleteAction
from alarm_reconciler.reconcile.policy import ResourceType


REGION = "us-east-1"
SUFFIX = "-cloudwatch-alarm"


def plan_for(thresholds, queues=(), functions=(), tables=(), alarms=(), failures=(), enabled=None):
    inventory = Inventory.build(
        {
            ResourceType.SQS: queues,
            ResourceType.LAMBDA: functions,
            ResourceType.DYNAMODB: tables,
        },
        alarms,
        failures,
        enabled_types=enabled,
    )
    return compute_plan(inventory, region=REGION, suffix=SUFFIX, default_thresholds=thresholds)


class TestDiffCompleteness:
    
    def test_missing_alarm_is_created(self, thresholds):
        plan = plan_for(thresholds, queues=["A", "B"], alarms=["A" + SUFFIX])
        
        assert plan.creates == (CreateAction(
            resource_type="SQS",
            resource_name="B",
            alarm_name="B" + SUFFIX,
            threshold=5.0,
            metric_name="ApproximateNumberOfMessagesVisible",
        ),)
        assert plan.deletes == ()
    
    def test_orphaned_alarm_is_deleted(self, thresholds):
        plan = plan_for(thresholds, queues=["A"], alarms=["A" + SUFFIX, "Z" + SUFFIX])
        
        assert plan.creates == ()
        assert plan.deletes == (DeleteAction(alarm_name="Z" + SUFFIX),)
    
    def test_empty_inventory_gives_empty_plan(self, thresholds):
        plan = plan_for(thresholds)
        
        assert plan.is_empty
        assert plan.region == REGION
        assert plan.alarm_suffix == SUFFIX
    
    def test_plan_carries_region_and_suffix(self, thresholds):
        plan = plan_for(thresholds, queues=["orders"])
        assert (plan.region, plan.alarm_suffix) == (REGION, SUFFIX)
    
    def test_dead_letter_queue_gets_threshold_one(self, thresholds):
        plan = plan_for(thresholds, queues=["orders", "orders-dlq"])
        by_name = {a.resource_name: a for a in plan.creates}
        
        assert by_name["orders"].threshold == 5.0
        assert by_name["orders-dlq"].threshold == 1.0
    
    def test_every_type_gets_its_metric_and_threshold(self, thresholds):
        plan = plan_for(thresholds, queues=["q"], functions=["fn"], tables=["tbl"])
        by_name = {a.resource_name: a for a in plan.creates}
        
        assert by_name["q"].resource_type == "SQS"
        assert by_name["fn"].resource_type == "LAMBDA"
        assert by_name["fn"].metric_name == "Errors"
        assert by_name["fn"].threshold == 10.0
        assert by_name["tbl"].resource_type == "DYNAMODB"
        assert by_name["tbl"].metric_name == "ConsumedReadCapacityUnits"
        assert by_name["tbl"].threshold == 80.0
    
    def test_alarm_owned_by_any_type_is_kept(self, thresholds):
        plan = plan_for(
            thresholds,
            functions=["resize"],
            tables=["users"],
            alarms=["resize" + SUFFIX, "users" + SUFFIX],
        )
        assert plan.is_empty
    
    def test_alarms_without_suffix_are_never_deleted(self, thresholds):
        plan = plan_for(thresholds, alarms=["orders-high-latency", SUFFIX])
        assert plan.deletes == ()


class TestDiffDeterminism:
    
    def test_actions_are_sorted(self, thresholds):
        plan = plan_for(
            thresholds,
            queues=["zeta", "alpha", "mid"],
            alarms=["y" + SUFFIX, "b" + SUFFIX],
        )
        assert [a.resource_name for a in plan.creates] == ["alpha", "mid", "zeta"]
        assert [a.alarm_name for a in plan.deletes] == ["b" + SUFFIX, "y" + SUFFIX]
    
    def test_repeated_analysis_is_idempotent(self, thresholds):
        kwargs = dict(queues=["a", "b-dlq"], functions=["f"], alarms=["a" + SUFFIX, "gone" + SUFFIX])
        
        assert plan_for(thresholds, **kwargs) == plan_for(thresholds, **kwargs)
    
    def test_applied_plan_converges_to_empty(self, thresholds):
        """Once creates exist and orphans are gone, the next analysis has nothing to do."""
        first = plan_for(thresholds, queues=["a", "b"], alarms=["a" + SUFFIX, "gone" + SUFFIX])
        alarms_after = {"a" + SUFFIX} | {c.alarm_name for c in first.creates}
        alarms_after -= {d.alarm_name for d in first.deletes}
        
        second = plan_for(thresholds, queues=["a", "b"], alarms=alarms_after)
        assert second.is_empty


class TestCrossTypeCollisions:
    
    def test_shared_name_creates_one_alarm(self, thresholds, caplog):
        with caplog.at_level(logging.WARNING):
            plan = plan_for(thresholds, queues=["orders"], tables=["orders"])
        
        assert len(plan.creates) == 1
        assert plan.creates[0].resource_type == "SQS"
        assert "exists as both SQS and DYNAMODB" in caplog.text
    
    def test_shared_name_keeps_alarm_if_either_exists(self, thresholds):
        plan = plan_for(thresholds, tables=["orders"], alarms=["orders" + SUFFIX])
        assert plan.is_empty


class TestFetchFailures:
    
    def test_failed_fetch_counts_as_empty(self, thresholds, caplog):
        with caplog.at_level(logging.WARNING):
            plan = plan_for(
                thresholds,
                queues=[],
                alarms=["orders" + SUFFIX],
                failures=["SQS listing failed in us-east-1: AccessDenied"],
            )
        
        assert plan.deletes == (DeleteAction(alarm_name="orders" + SUFFIX),)
        assert "Inventory incomplete" in caplog.text
    
    def test_inventory_records_failures(self):
        inventory = Inventory.build({ResourceType.SQS: []}, [], ["boom"])
        assert inventory.fetch_failures == ("boom",)
        assert inventory.resources[ResourceType.SQS] == frozenset()


class TestEnabledTypes:
    
    def test_inventory_enables_every_type_by_default(self):
        inventory = Inventory.build({ResourceType.SQS: []}, [])
        assert inventory.enabled_types == frozenset(ResourceType)
    
    def test_disabled_type_gets_no_new_alarms(self, thresholds):
        plan = plan_for(thresholds, queues=["orders"], tables=["users"], enabled=[ResourceType.SQS])
        
        assert [action.resource_name for action in plan.creates] == ["orders"]
    
    def test_disabled_type_keeps_its_existing_alarms(self, thresholds):
        plan = plan_for(
            thresholds,
            queues=["orders"],
            tables=["users"],
            alarms=["orders" + SUFFIX, "users" + SUFFIX],
            enabled=[ResourceType.SQS],
        )
        
        assert plan.is_empty
    
    def test_orphans_are_still_deleted_with_subset_enabled(self, thresholds):
        plan = plan_for(
            thresholds,
            tables=["users"],
            alarms=["users" + SUFFIX, "gone" + SUFFIX],
            enabled=[ResourceType.SQS],
        )
        
        assert plan.deletes == (DeleteAction(alarm_name="gone" + SUFFIX),)
