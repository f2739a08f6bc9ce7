from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Set


class TaskStatus(Enum):
    """Task lifecycle state."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_progress(cls, progress):
        if progress >= 100:
            return cls.COMPLETED
        if progress > 0:
            return cls.IN_PROGRESS
        return cls.NOT_STARTED


class DependencyType(Enum):
    """Dependency kind. Only finish-to-start is scheduled."""
    FS = "FS"


@dataclass(frozen=True)
class Dependency:
    """Edge of the dependency graph."""
    predecessor_id: int
    successor_id: int
    type: DependencyType = DependencyType.FS


@dataclass
class ScheduleTask:
    """Task as seen by the schedule calculations."""
    id: int
    name: str
    duration_days: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    progress: float = 0.0
    status: TaskStatus = TaskStatus.NOT_STARTED
    predecessors: List[int] = field(default_factory=list)
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None

    def dependencies(self) -> List[Dependency]:
        return [Dependency(pred_id, self.id) for pred_id in dict.fromkeys(self.predecessors)]


@dataclass(frozen=True)
class TaskTiming:
    """Earliest/latest window of a task."""
    earliest_start: date
    earliest_finish: date
    latest_start: date
    latest_finish: date
    float: int

    @property
    def is_critical(self):
        return self.float <= 0


@dataclass
class CriticalPathResult:
    """Result of the forward/backward pass."""
    critical_task_ids: Set[int] = field(default_factory=set)
    schedule_data: Dict[int, TaskTiming] = field(default_factory=dict)
    project_finish: Optional[date] = None
    critical_path: List[int] = field(default_factory=list)


@dataclass
class Resource:
    """Labour, equipment or material resource."""
    id: int
    name: str
    capacity: float = 100.0
    daily_rate: float = 0.0
    hourly_rate: float = 0.0


@dataclass
class ResourceAssignment:
    """Quantity of a resource assigned to a task."""
    task_id: int
    resource_id: int
    quantity: float = 1.0


@dataclass
class CostAggregate:
    """Budget and recorded actual costs of a project."""
    bac: float = 0.0
    actual_cost_sum: float = 0.0
    cost_records: int = 0

    @property
    def has_actuals(self):
        return self.cost_records > 0


@dataclass
class ProjectSnapshot:
    """Everything a health computation reads, taken from one transaction."""
    project_id: int
    tasks: List[ScheduleTask] = field(default_factory=list)
    costs: CostAggregate = field(default_factory=CostAggregate)
    resources: List[Resource] = field(default_factory=list)
    assignments: List[ResourceAssignment] = field(default_factory=list)


@dataclass
class HealthSnapshot:
    """Derived project health. Recomputed on every request."""
    overall_score: int = 0
    schedule_score: int = 0
    cost_score: Optional[int] = None
    resource_score: Optional[int] = None
    spi: float = 0.0
    cpi: float = 0.0
    schedule_variance: float = 0.0
    cost_variance: float = 0.0
    bac: float = 0.0
    pv: float = 0.0
    ev: float = 0.0
    ac: float = 0.0
    eac: float = 0.0
    etc: float = 0.0
    vac: float = 0.0
    tcpi: float = 1.0
    task_count: int = 0

    @classmethod
    def empty(cls):
        return cls(tcpi=0.0)

    @property
    def is_empty(self):
        return self.task_count == 0

    def to_dict(self):
        return {
            'overallScore': self.overall_score,
            'scheduleScore': self.schedule_score,
            'costScore': self.cost_score,
            'resourceScore': self.resource_score,
            'spi': round(self.spi, 4),
            'cpi': round(self.cpi, 4),
            'scheduleVariance': round(self.schedule_variance, 2),
            'costVariance': round(self.cost_variance, 2),
            'bac': round(self.bac, 2),
            'pv': round(self.pv, 2),
            'ev': round(self.ev, 2),
            'ac': round(self.ac, 2),
            'eac': round(self.eac, 2),
            'etc': round(self.etc, 2),
            'vac': round(self.vac, 2),
            'tcpi': round(self.tcpi, 4),
        }
