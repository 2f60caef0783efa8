"""
Reconciliation diff: live resources versus existing alarms.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
import logging

from .models import CreateAction, DeleteAction, Plan, ResourceRef
from .policy import (
    ResourceType,
    expected_alarm_name,
    format_threshold,
    metric_for,
    resource_name_from_alarm,
    threshold_for,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inventory:
    """Snapshot of resources and suffix-matching alarms taken once per run.

    A resource type whose listing failed is present with an empty set and
    named in ``fetch_failures``, so "no queues" and "could not list queues"
    stay distinguishable in logs while the diff treats both the same way.

    ``enabled_types`` limits which types get new alarms. Every listed type
    still owns its alarms, so narrowing the enabled set never deletes them.
    """
    resources: Mapping[ResourceType, FrozenSet[str]]
    alarm_names: FrozenSet[str]
    fetch_failures: Tuple[str, ...] = field(default=())
    enabled_types: FrozenSet[ResourceType] = field(default=frozenset(ResourceType))

    @classmethod
    def build(
        cls,
        resources: Mapping[ResourceType, Iterable[str]],
        alarm_names: Iterable[str],
        fetch_failures: Iterable[str] = (),
        enabled_types: Optional[Iterable[ResourceType]] = None,
    ) -> 'Inventory':
        return cls(
            resources={rtype: frozenset(names) for rtype, names in resources.items()},
            alarm_names=frozenset(alarm_names),
            fetch_failures=tuple(fetch_failures),
            enabled_types=frozenset(enabled_types) if enabled_types is not None else frozenset(ResourceType),
        )

    def resource_refs(self) -> List[ResourceRef]:
        refs = []
        for rtype in ResourceType:
            for name in sorted(self.resources.get(rtype, ())):
                refs.append(ResourceRef(resource_type=rtype, resource_name=name))
        return refs


def _index_resources(inventory: Inventory) -> Dict[str, ResourceType]:
    """Map bare resource name to its type.

    Names are assumed unique across types. When two types share a name the
    first type in ``ResourceType`` order owns the alarm and the collision is
    logged, since the alarm name cannot tell them apart.
    """
    owners: Dict[str, ResourceType] = {}
    for ref in inventory.resource_refs():
        existing = owners.get(ref.resource_name)
        if existing is not None:
            logger.warning(
                f"Resource name '{ref.resource_name}' exists as both {existing.value} "
                f"and {ref.resource_type.value}; alarm is attributed to {existing.value}"
            )
            continue
        owners[ref.resource_name] = ref.resource_type
    return owners


def compute_plan(
    inventory: Inventory,
    region: str,
    suffix: str,
    default_thresholds: Mapping[ResourceType, float],
) -> Plan:
    """Compute the create/delete actions that bring alarms in line with resources.

    Args:
        inventory: Resource and alarm snapshot for one region
        region: Region all actions target
        suffix: Alarm naming suffix
        default_thresholds: Default threshold per resource type

    Returns:
        Plan whose actions are sorted by resource name and alarm name
    """
    for failure in inventory.fetch_failures:
        logger.warning(f"Inventory incomplete, treated as empty: {failure}")

    owners = _index_resources(inventory)
    existing = inventory.alarm_names

    creates = []
    for name in sorted(owners):
        rtype = owners[name]
        alarm_name = expected_alarm_name(name, suffix)
        if alarm_name in existing:
            logger.debug(f"  [EXISTS] {alarm_name}")
            continue
        if rtype not in inventory.enabled_types:
            logger.debug(f"  [SKIP] {alarm_name} ({rtype.value} is not enabled)")
            continue
        threshold = threshold_for(rtype, name, default_thresholds)
        creates.append(CreateAction(
            resource_type=rtype.value,
            resource_name=name,
            alarm_name=alarm_name,
            threshold=threshold,
            metric_name=metric_for(rtype),
        ))
        logger.info(
            f"  [CREATE] {alarm_name} ({rtype.value}, threshold: {format_threshold(threshold)})"
        )

    deletes = []
    for alarm_name in sorted(existing):
        owner_name = resource_name_from_alarm(alarm_name, suffix)
        if owner_name is None:
            logger.debug(f"  [IGNORE] {alarm_name} does not follow the naming convention")
            continue
        if owner_name not in owners:
            deletes.append(DeleteAction(alarm_name=alarm_name))
            logger.info(f"  [DELETE] {alarm_name} (no matching resource)")

    for rtype in ResourceType:
        if rtype in inventory.resources:
            logger.info(f"Resources found - {rtype.value}: {len(inventory.resources[rtype])}")
    logger.info(f"Alarms to create: {len(creates)}, alarms to delete: {len(deletes)}")

    return Plan(
        region=region,
        alarm_suffix=suffix,
        creates=tuple(creates),
        deletes=tuple(deletes),
    )
