# planning/health.py
"""
Project schedule health: EVM metrics combined into 0-100 scores.
"""
import logging
from dataclasses import dataclass

import config
from planning.evm import (
    average_actual_progress, average_planned_progress, calculate_evm_metrics,
    get_cost_estimator, resolve_actual_cost, safe_divide
)
from planning.exceptions import InsufficientDataError, ProjectNotFoundError
from planning.models import HealthSnapshot, TaskStatus
from utils.dates import to_date, today

logger = logging.getLogger(__name__)


@dataclass
class HealthSettings:
    """Tunable parameters of the health score."""
    neutral_score: float = 75.0
    score_slope: float = 100.0
    schedule_weight: float = 0.5
    cost_weight: float = 0.3
    resource_weight: float = 0.2
    cost_estimator: object = None

    def __post_init__(self):
        if self.cost_estimator is None:
            self.cost_estimator = get_cost_estimator('progress_scaled', 1.1)

    @classmethod
    def from_config(cls):
        return cls(
            neutral_score=config.SCORE_NEUTRAL,
            score_slope=config.SCORE_SLOPE,
            schedule_weight=config.SCHEDULE_WEIGHT,
            cost_weight=config.COST_WEIGHT,
            resource_weight=config.RESOURCE_WEIGHT,
            cost_estimator=get_cost_estimator(config.ACTUAL_COST_ESTIMATOR, config.ACTUAL_COST_FACTOR)
        )


def index_to_score(index, neutral=75.0, slope=100.0):
    """
    Maps a performance index to a 0-100 score.

    Index 1.0 gives `neutral`; the score rises with the index and
    saturates at 0 and 100.
    """
    score = neutral + (index - 1.0) * slope
    return int(round(min(100.0, max(0.0, score))))


def schedule_index(evm, avg_actual, avg_planned):
    """
    Schedule performance used for scoring.

    SPI when there is planned value, otherwise the budget-free ratio of
    actual to planned progress. Nothing planned yet counts as on schedule.
    """
    if evm.pv > 0:
        return evm.spi
    if avg_planned > 0:
        return avg_actual / avg_planned
    return 1.0


def utilization_score(utilization_percent):
    """Score of a single resource from its utilization percentage."""
    if utilization_percent <= 0:
        return 60
    if utilization_percent <= 70:
        return 90
    if utilization_percent <= 100:
        return 100
    if utilization_percent <= 120:
        return 70
    return 40


def calculate_resource_score(resources, assignments, tasks, now):
    """
    Average utilization score over the project's resources.

    Args:
        resources: List of Resource
        assignments: List of ResourceAssignment
        tasks: List of ScheduleTask
        now: Evaluation date

    Returns:
        Score 0-100, or None when the project has no resources
    """
    if not resources:
        return None

    now = to_date(now)
    tasks_by_id = {task.id: task for task in tasks}

    scores = []
    for resource in resources:
        resource_assignments = [a for a in assignments if a.resource_id == resource.id]
        if not resource_assignments:
            # Unused resource
            scores.append(60)
            continue

        allocated = 0.0
        for assignment in resource_assignments:
            task = tasks_by_id.get(assignment.task_id)
            if task is None:
                continue
            start = to_date(task.start_date)
            end = to_date(task.end_date)
            if start and end and start <= now <= end:
                allocated += assignment.quantity or 1

        capacity = resource.capacity or 100
        scores.append(utilization_score(allocated / capacity * 100))

    return int(round(sum(scores) / len(scores)))


def calculate_overall_score(components):
    """
    Weighted mean of the component scores that have data.

    Args:
        components: List of (score or None, weight)

    Returns:
        Integer score 0-100
    """
    total = 0.0
    total_weight = 0.0
    for score, weight in components:
        if score is None or weight <= 0:
            continue
        total += score * weight
        total_weight += weight
    return int(round(safe_divide(total, total_weight)))


def compute_health(snapshot, now=None, settings=None):
    """
    Computes the health of a project from its data snapshot.

    Args:
        snapshot: ProjectSnapshot
        now: Evaluation date (default: today)
        settings: HealthSettings (default: from config)

    Returns:
        HealthSnapshot; an empty snapshot for projects without tasks
    """
    now = to_date(now) or today()
    settings = settings or HealthSettings.from_config()

    try:
        avg_actual = average_actual_progress(snapshot.tasks)
        avg_planned = average_planned_progress(snapshot.tasks, now)
    except InsufficientDataError:
        logger.warning(f"Project {snapshot.project_id} has no tasks, returning empty health snapshot")
        return HealthSnapshot.empty()

    costs = snapshot.costs
    actual_cost = resolve_actual_cost(costs, avg_actual, settings.cost_estimator)
    evm = calculate_evm_metrics(costs.bac, avg_actual, avg_planned, actual_cost)

    schedule_score = index_to_score(
        schedule_index(evm, avg_actual, avg_planned), settings.neutral_score, settings.score_slope
    )
    cost_score = None
    if evm.ac > 0:
        cost_score = index_to_score(evm.cpi, settings.neutral_score, settings.score_slope)
    resource_score = calculate_resource_score(snapshot.resources, snapshot.assignments, snapshot.tasks, now)

    overall_score = calculate_overall_score([
        (schedule_score, settings.schedule_weight),
        (cost_score, settings.cost_weight),
        (resource_score, settings.resource_weight)
    ])

    logger.info(
        f"Health of project {snapshot.project_id}: overall={overall_score}, schedule={schedule_score}, "
        f"cost={cost_score}, resource={resource_score}, SPI={evm.spi:.2f}, CPI={evm.cpi:.2f}"
    )

    return HealthSnapshot(
        overall_score=overall_score,
        schedule_score=schedule_score,
        cost_score=cost_score,
        resource_score=resource_score,
        spi=evm.spi,
        cpi=evm.cpi,
        schedule_variance=evm.schedule_variance,
        cost_variance=evm.cost_variance,
        bac=evm.bac,
        pv=evm.pv,
        ev=evm.ev,
        ac=evm.ac,
        eac=evm.eac,
        etc=evm.etc,
        vac=evm.vac,
        tcpi=evm.tcpi,
        task_count=len(snapshot.tasks)
    )


def compute_schedule_health(project_id, loader=None, now=None, settings=None):
    """
    Loads a project's data and computes its health.

    Args:
        project_id: Project ID
        loader: Callable project_id -> ProjectSnapshot or None
            (default: database.operations.load_project_snapshot)
        now: Evaluation date
        settings: HealthSettings

    Raises:
        ProjectNotFoundError: the loader returned nothing
    """
    if loader is None:
        from database.operations import load_project_snapshot
        loader = load_project_snapshot

    snapshot = loader(project_id)
    if snapshot is None:
        raise ProjectNotFoundError(project_id)

    return compute_health(snapshot, now=now, settings=settings)


def task_statistics(tasks, now=None):
    """
    Task counts for dashboards.

    Returns:
        Dict with total, completed, in_progress, overdue and average progress (0-100)
    """
    now = to_date(now) or today()

    completed = 0
    in_progress = 0
    overdue = 0
    for task in tasks:
        if task.status == TaskStatus.COMPLETED:
            completed += 1
            continue
        if task.status == TaskStatus.IN_PROGRESS:
            in_progress += 1
        end = to_date(task.end_date)
        if end and end < now:
            overdue += 1

    average = round(sum(task.progress or 0 for task in tasks) / len(tasks)) if tasks else 0

    return {
        'total': len(tasks),
        'completed': completed,
        'in_progress': in_progress,
        'overdue': overdue,
        'average_progress': average
    }
