# planning/network.py
"""
Network model calculation and critical path detection.

Forward and backward passes run over a finish-to-start dependency graph
with Kahn's algorithm. Dates are never mutated in place.
"""
import logging
from collections import deque

from planning.exceptions import CyclicDependencyError, InvalidTaskError
from planning.models import CriticalPathResult, TaskTiming
from utils.dates import add_days, days_between, to_date

logger = logging.getLogger(__name__)


def compute_critical_path(tasks, default_start=None):
    """
    Computes earliest/latest dates, float and the critical path.

    Args:
        tasks: List of ScheduleTask with predecessor ids
        default_start: Start date for tasks without predecessors and without a start date

    Returns:
        CriticalPathResult

    Raises:
        CyclicDependencyError: the dependency graph has a cycle
        InvalidTaskError: negative duration or no start date for a root task
    """
    if not tasks:
        logger.warning("No tasks for network calculation")
        return CriticalPathResult()

    network = create_network_model(tasks, default_start)

    early = calculate_early_times(network)
    project_finish = max(finish for _, finish in early.values())
    late = calculate_late_times(network, early, project_finish)

    schedule_data = {}
    for task_id in network['order']:
        earliest_start, earliest_finish = early[task_id]
        latest_start, latest_finish = late[task_id]
        schedule_data[task_id] = TaskTiming(
            earliest_start=earliest_start,
            earliest_finish=earliest_finish,
            latest_start=latest_start,
            latest_finish=latest_finish,
            float=days_between(earliest_finish, latest_finish)
        )

    result = CriticalPathResult(schedule_data=schedule_data, project_finish=project_finish)
    identify_critical_path(result)

    logger.info(f"Network calculated: {len(schedule_data)} tasks, project finish {project_finish.isoformat()}")
    logger.info(f"Critical path: {result.critical_path}")

    return result


def create_network_model(tasks, default_start=None):
    """
    Builds the adjacency structures for the passes.

    Args:
        tasks: List of ScheduleTask
        default_start: Fallback start date for root tasks

    Returns:
        Dict with tasks by id, normalized durations and start dates,
        successor/predecessor lists and the input order
    """
    default_start = to_date(default_start)
    tasks_by_id = {}
    order = []
    for task in tasks:
        if task.id in tasks_by_id:
            raise InvalidTaskError(task.id, "duplicate task id")
        tasks_by_id[task.id] = task
        order.append(task.id)

    durations = {}
    starts = {}
    for task in tasks:
        start = to_date(task.start_date)
        end = to_date(task.end_date)
        duration = task.duration_days
        if duration is None:
            duration = max(0, days_between(start, end)) if start and end else 0
        if duration < 0:
            raise InvalidTaskError(task.id, f"negative duration {duration}")
        durations[task.id] = int(duration)
        starts[task.id] = start or default_start

    successors = {task_id: [] for task_id in order}
    predecessors = {task_id: [] for task_id in order}
    for task in tasks:
        for dependency in task.dependencies():
            if dependency.predecessor_id not in tasks_by_id:
                logger.warning(
                    f"Task {task.id} depends on unknown task {dependency.predecessor_id}, dependency ignored"
                )
                continue
            successors[dependency.predecessor_id].append(task.id)
            predecessors[task.id].append(dependency.predecessor_id)

    for task_id in order:
        if not predecessors[task_id] and starts[task_id] is None:
            raise InvalidTaskError(task_id, "no start date for a task without predecessors")

    logger.debug(f"Network model created: {len(order)} tasks")

    return {
        'tasks': tasks_by_id,
        'order': order,
        'durations': durations,
        'starts': starts,
        'successors': successors,
        'predecessors': predecessors
    }


def calculate_early_times(network):
    """
    Forward pass.

    Returns:
        Dict task id -> (earliest_start, earliest_finish)
    """
    durations = network['durations']
    successors = network['successors']
    in_degree = {task_id: len(preds) for task_id, preds in network['predecessors'].items()}

    early = {}
    queue = deque()
    for task_id in network['order']:
        if in_degree[task_id] == 0:
            start = network['starts'][task_id]
            early[task_id] = (start, add_days(start, durations[task_id]))
            queue.append(task_id)

    processed = 0
    while queue:
        task_id = queue.popleft()
        processed += 1
        finish = early[task_id][1]

        for successor_id in successors[task_id]:
            current = early.get(successor_id)
            # Successor starts after the latest of its predecessors
            if current is None or current[0] < finish:
                early[successor_id] = (finish, add_days(finish, durations[successor_id]))

            in_degree[successor_id] -= 1
            if in_degree[successor_id] == 0:
                queue.append(successor_id)

    if processed < len(network['order']):
        unresolved = [task_id for task_id, degree in in_degree.items() if degree > 0]
        logger.error(f"Cyclic dependency detected in forward pass: {unresolved}")
        raise CyclicDependencyError(unresolved)

    return early


def calculate_late_times(network, early, project_finish):
    """
    Backward pass.

    Returns:
        Dict task id -> (latest_start, latest_finish)
    """
    durations = network['durations']
    predecessors = network['predecessors']
    out_degree = {task_id: len(succs) for task_id, succs in network['successors'].items()}

    late = {}
    queue = deque()
    for task_id in network['order']:
        if out_degree[task_id] == 0:
            late[task_id] = (add_days(project_finish, -durations[task_id]), project_finish)
            queue.append(task_id)

    processed = 0
    while queue:
        task_id = queue.popleft()
        processed += 1
        latest_start = late[task_id][0]

        for predecessor_id in predecessors[task_id]:
            current = late.get(predecessor_id)
            # Predecessor must finish before the earliest of its successors' latest starts
            if current is None or latest_start < current[1]:
                late[predecessor_id] = (add_days(latest_start, -durations[predecessor_id]), latest_start)

            out_degree[predecessor_id] -= 1
            if out_degree[predecessor_id] == 0:
                queue.append(predecessor_id)

    if processed < len(network['order']):
        unresolved = [task_id for task_id, degree in out_degree.items() if degree > 0]
        logger.error(f"Cyclic dependency detected in backward pass: {unresolved}")
        raise CyclicDependencyError(unresolved)

    return late


def identify_critical_path(result):
    """
    Marks tasks with float <= 0 as critical and orders them by earliest start.

    Args:
        result: CriticalPathResult with schedule data

    Returns:
        The same result with critical_task_ids and critical_path filled
    """
    critical = [
        task_id for task_id, timing in result.schedule_data.items() if timing.is_critical
    ]
    result.critical_task_ids = set(critical)
    result.critical_path = sorted(
        critical,
        key=lambda task_id: (result.schedule_data[task_id].earliest_start, str(task_id))
    )
    return result


def find_cycle(edges):
    """
    Finds one dependency cycle.

    Args:
        edges: Iterable of (predecessor_id, successor_id) pairs

    Returns:
        List of task ids forming the cycle (first id repeated at the end), or an empty list
    """
    graph = {}
    for predecessor_id, successor_id in edges:
        graph.setdefault(predecessor_id, []).append(successor_id)
        graph.setdefault(successor_id, [])

    visited = set()
    for root in graph:
        if root in visited:
            continue
        path = [root]
        on_path = {root}
        stack = [iter(graph[root])]
        visited.add(root)
        while stack:
            successor_id = next(stack[-1], None)
            if successor_id is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if successor_id in on_path:
                return path[path.index(successor_id):] + [successor_id]
            if successor_id not in visited:
                visited.add(successor_id)
                path.append(successor_id)
                on_path.add(successor_id)
                stack.append(iter(graph[successor_id]))
    return []


def critical_path_to_dict(result):
    """Renders a CriticalPathResult as a JSON-ready dictionary."""
    return {
        'criticalTaskIds': sorted(result.critical_task_ids, key=str),
        'criticalPath': list(result.critical_path),
        'projectFinish': result.project_finish.isoformat() if result.project_finish else None,
        'scheduleData': {
            str(task_id): {
                'earliestStart': timing.earliest_start.isoformat(),
                'earliestFinish': timing.earliest_finish.isoformat(),
                'latestStart': timing.latest_start.isoformat(),
                'latestFinish': timing.latest_finish.isoformat(),
                'float': timing.float
            }
            for task_id, timing in result.schedule_data.items()
        }
    }


def get_task_dependencies_graph(tasks, result):
    """
    Creates a dependency graph for visualization.

    Args:
        tasks: List of ScheduleTask
        result: CriticalPathResult for the same tasks

    Returns:
        Dict with 'nodes' and 'edges'
    """
    tasks_by_id = {task.id: task for task in tasks}

    nodes = []
    for task in tasks:
        timing = result.schedule_data.get(task.id)
        nodes.append({
            'id': task.id,
            'label': task.name,
            'is_critical': task.id in result.critical_task_ids,
            'float': timing.float if timing else None
        })

    edges = []
    for task in tasks:
        for dependency in task.dependencies():
            if dependency.predecessor_id in tasks_by_id:
                edges.append({
                    'from': dependency.predecessor_id,
                    'to': task.id,
                    'type': dependency.type.value
                })

    return {
        'nodes': nodes,
        'edges': edges
    }
