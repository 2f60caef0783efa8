"""
Data models for alarm reconciliation.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from .policy import ResourceType


@dataclass(frozen=True)
class ResourceRef:
    """One monitorable resource found during discovery."""
    resource_type: ResourceType
    resource_name: str          # Bare name, never a URL


@dataclass(frozen=True)
class AlarmSpec:
    """Expected alarm configuration for one resource."""
    alarm_name: str
    threshold: float
    metric_name: str


@dataclass(frozen=True)
class CreateAction:
    """Create the alarm guarding a resource.

    ``resource_type`` is kept as the wire label so plans written by a newer
    analyzer still load; the executor skips labels it does not recognize.
    """
    resource_type: str
    resource_name: str
    alarm_name: str
    threshold: float
    metric_name: str

    @property
    def kind(self) -> str:
        return 'create'

    @property
    def spec(self) -> AlarmSpec:
        return AlarmSpec(
            alarm_name=self.alarm_name,
            threshold=self.threshold,
            metric_name=self.metric_name,
        )


@dataclass(frozen=True)
class DeleteAction:
    """Delete an alarm whose resource no longer exists."""
    alarm_name: str

    @property
    def kind(self) -> str:
        return 'delete'


Action = Union[CreateAction, DeleteAction]


@dataclass(frozen=True)
class Plan:
    """Point-in-time set of actions bridging analysis and application."""
    region: str
    alarm_suffix: str
    creates: Tuple[CreateAction, ...] = ()
    deletes: Tuple[DeleteAction, ...] = ()

    @property
    def total_actions(self) -> int:
        return len(self.creates) + len(self.deletes)

    @property
    def is_empty(self) -> bool:
        return self.total_actions == 0


@dataclass(frozen=True)
class ActionOutcome:
    """Result of applying one action."""
    action: Action
    succeeded: bool
    error_detail: Optional[str] = None
    skipped: bool = False       # Unsupported resource type, never attempted
    duration: Optional[float] = None  # Seconds spent in the API call


@dataclass
class RunResult:
    """Aggregate of all outcomes of one executor run."""
    region: str
    timestamp: datetime
    outcomes: List[ActionOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded and o.action.kind == 'create')

    @property
    def deleted(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded and o.action.kind == 'delete')

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded and not o.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.skipped)

    @property
    def attempted(self) -> int:
        return len(self.outcomes) - self.skipped

    @property
    def all_failed(self) -> bool:
        """True when actions were attempted and none of them succeeded."""
        return self.attempted > 0 and self.failed == self.attempted

    @property
    def failed_outcomes(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if not o.succeeded and not o.skipped]
