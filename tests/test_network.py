from datetime import date

import pytest

from planning.exceptions import CyclicDependencyError, InvalidTaskError
from planning.models import ScheduleTask
from planning.network import (
    compute_critical_path, critical_path_to_dict, find_cycle, get_task_dependencies_graph
)


def test_single_task_is_critical():
    tasks = [ScheduleTask(id=1, name="Only", duration_days=4, start_date=date(2024, 3, 1))]

    result = compute_critical_path(tasks)

    timing = result.schedule_data[1]
    assert timing.earliest_start == date(2024, 3, 1)
    assert timing.earliest_finish == date(2024, 3, 5)
    assert timing.latest_finish == date(2024, 3, 5)
    assert timing.float == 0
    assert result.critical_task_ids == {1}
    assert result.project_finish == date(2024, 3, 5)


def test_chain_of_two_tasks():
    tasks = [
        ScheduleTask(id=1, name="A", duration_days=3, start_date=date(2024, 1, 1)),
        ScheduleTask(id=2, name="B", duration_days=2, predecessors=[1]),
    ]

    result = compute_critical_path(tasks)

    assert result.schedule_data[2].earliest_start == date(2024, 1, 4)
    assert result.schedule_data[2].earliest_finish == date(2024, 1, 6)
    assert result.project_finish == date(2024, 1, 6)
    assert result.critical_path == [1, 2]


def test_diamond_float_on_short_branch(diamond_tasks):
    result = compute_critical_path(diamond_tasks)

    assert result.schedule_data[4].earliest_start == date(2024, 1, 8)
    assert result.project_finish == date(2024, 1, 10)
    assert result.schedule_data[3].float == 4
    assert result.schedule_data[3].latest_start == date(2024, 1, 7)
    assert result.schedule_data[1].latest_finish == date(2024, 1, 3)
    assert result.critical_task_ids == {1, 2, 4}
    assert result.critical_path == [1, 2, 4]


def test_float_is_never_negative(diamond_tasks):
    result = compute_critical_path(diamond_tasks)

    assert all(timing.float >= 0 for timing in result.schedule_data.values())


def test_disconnected_tasks_share_project_finish():
    tasks = [
        ScheduleTask(id=1, name="Long", duration_days=4, start_date=date(2024, 1, 1)),
        ScheduleTask(id=2, name="Short", duration_days=1, start_date=date(2024, 1, 1)),
    ]

    result = compute_critical_path(tasks)

    assert result.schedule_data[2].latest_finish == date(2024, 1, 5)
    assert result.schedule_data[2].float == 3
    assert result.critical_task_ids == {1}


def test_cycle_is_reported_with_task_ids():
    tasks = [
        ScheduleTask(id=1, name="A", duration_days=1, predecessors=[2]),
        ScheduleTask(id=2, name="B", duration_days=1, predecessors=[1]),
        ScheduleTask(id=3, name="C", duration_days=1, start_date=date(2024, 1, 1)),
    ]

    with pytest.raises(CyclicDependencyError) as excinfo:
        compute_critical_path(tasks)

    assert excinfo.value.task_ids == [1, 2]


def test_self_dependency_is_a_cycle():
    tasks = [ScheduleTask(id=7, name="Loop", duration_days=1, start_date=date(2024, 1, 1), predecessors=[7])]

    with pytest.raises(CyclicDependencyError):
        compute_critical_path(tasks)


def test_negative_duration_is_rejected():
    tasks = [ScheduleTask(id=1, name="Bad", duration_days=-2, start_date=date(2024, 1, 1))]

    with pytest.raises(InvalidTaskError):
        compute_critical_path(tasks)


def test_root_task_needs_a_start_date():
    tasks = [ScheduleTask(id=1, name="Floating", duration_days=2)]

    with pytest.raises(InvalidTaskError):
        compute_critical_path(tasks)

    result = compute_critical_path(tasks, default_start=date(2024, 5, 1))
    assert result.schedule_data[1].earliest_finish == date(2024, 5, 3)


def test_duration_derived_from_dates():
    tasks = [ScheduleTask(id=1, name="Dated", start_date=date(2024, 1, 1), end_date=date(2024, 1, 6))]

    result = compute_critical_path(tasks)

    assert result.project_finish == date(2024, 1, 6)


def test_unknown_predecessor_is_ignored():
    tasks = [ScheduleTask(id=1, name="A", duration_days=2, start_date=date(2024, 1, 1), predecessors=[99])]

    result = compute_critical_path(tasks)

    assert result.critical_task_ids == {1}


def test_empty_task_list():
    result = compute_critical_path([])

    assert result.schedule_data == {}
    assert result.project_finish is None
    assert result.critical_path == []


def test_repeated_runs_give_same_result_and_keep_input(diamond_tasks):
    first = compute_critical_path(diamond_tasks)
    second = compute_critical_path(diamond_tasks)

    assert first.schedule_data == second.schedule_data
    assert first.critical_path == second.critical_path
    assert diamond_tasks[0].start_date == date(2024, 1, 1)
    assert diamond_tasks[1].start_date is None


def test_critical_path_to_dict(diamond_tasks):
    data = critical_path_to_dict(compute_critical_path(diamond_tasks))

    assert data['criticalTaskIds'] == [1, 2, 4]
    assert data['projectFinish'] == '2024-01-10'
    assert data['scheduleData']['3'] == {
        'earliestStart': '2024-01-03',
        'earliestFinish': '2024-01-04',
        'latestStart': '2024-01-07',
        'latestFinish': '2024-01-08',
        'float': 4
    }


def test_dependency_graph(diamond_tasks):
    graph = get_task_dependencies_graph(diamond_tasks, compute_critical_path(diamond_tasks))

    assert len(graph['nodes']) == 4
    assert {'from': 1, 'to': 2, 'type': 'FS'} in graph['edges']
    assert [node['is_critical'] for node in graph['nodes']] == [True, True, False, True]


def test_find_cycle():
    assert find_cycle([(1, 2), (2, 3), (3, 1)]) == [1, 2, 3, 1]
    assert find_cycle([(1, 2), (2, 3), (1, 3)]) == []
    assert find_cycle([]) == []
