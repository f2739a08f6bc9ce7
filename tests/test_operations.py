from datetime import date

import pytest
from sqlalchemy import text

from planning.exceptions import CyclicDependencyError, InvalidTaskError, ProjectNotFoundError
from planning.health import HealthSettings, compute_schedule_health
from planning.models import HealthSnapshot, TaskStatus


def _project_with_chain(ops, budget=None):
    project_id = ops.create_new_project("Warehouse", budget=budget, start_date=date(2024, 1, 1))
    first = ops.add_project_task(project_id, "Foundations", duration_days=5, start_date=date(2024, 1, 1),
                                 end_date=date(2024, 1, 6), progress=100)
    second = ops.add_project_task(project_id, "Walls", duration_days=10, start_date=date(2024, 1, 6),
                                  end_date=date(2024, 1, 16), progress=20)
    ops.add_task_dependencies(second, first)
    return project_id, first, second


def test_snapshot_contains_tasks_and_dependencies(clean_db):
    project_id, first, second = _project_with_chain(clean_db)

    snapshot = clean_db.load_project_snapshot(project_id)

    assert [task.name for task in snapshot.tasks] == ["Foundations", "Walls"]
    assert snapshot.tasks[1].predecessors == [first]
    assert snapshot.tasks[0].status == TaskStatus.COMPLETED
    assert snapshot.tasks[1].start_date == date(2024, 1, 6)


def test_missing_project(clean_db):
    assert clean_db.load_project_snapshot(999) is None
    assert clean_db.get_project_data(999) is None
    assert clean_db.list_cost_aggregates(999) is None

    with pytest.raises(ProjectNotFoundError):
        clean_db.add_project_task(999, "Orphan", duration_days=1)


def test_negative_duration_is_rejected(clean_db):
    project_id = clean_db.create_new_project("Bad")

    with pytest.raises(InvalidTaskError):
        clean_db.add_project_task(project_id, "Broken", duration_days=-1)


def test_cyclic_dependency_is_rejected(clean_db):
    project_id, first, second = _project_with_chain(clean_db)

    with pytest.raises(CyclicDependencyError):
        clean_db.add_task_dependencies(first, second)
    with pytest.raises(CyclicDependencyError):
        clean_db.add_task_dependencies(first, first)

    assert clean_db.load_project_snapshot(project_id).tasks[0].predecessors == []


def test_duplicate_dependency_is_not_stored_twice(clean_db):
    project_id, first, second = _project_with_chain(clean_db)

    clean_db.add_task_dependencies(second, first)

    assert clean_db.list_tasks(project_id)[1].predecessors == [first]


def test_dependency_across_projects_is_rejected(clean_db):
    _, first, _ = _project_with_chain(clean_db)
    other_project = clean_db.create_new_project("Other")
    other_task = clean_db.add_project_task(other_project, "Elsewhere", duration_days=1)

    with pytest.raises(InvalidTaskError):
        clean_db.add_task_dependencies(other_task, first)


def test_budget_is_bac_when_set(clean_db):
    project_id, first, _ = _project_with_chain(clean_db, budget=50000)
    resource_id = clean_db.add_resource(project_id, "Crew", capacity=4, daily_rate=800)
    clean_db.add_resource_cost(resource_id, 1000)

    costs = clean_db.list_cost_aggregates(project_id)

    assert costs.bac == 50000
    assert costs.actual_cost_sum == 1000
    assert costs.cost_records == 1


def test_recorded_costs_are_bac_without_budget(clean_db):
    project_id, _, _ = _project_with_chain(clean_db)
    resource_id = clean_db.add_resource(project_id, "Crew")
    clean_db.add_resource_cost(resource_id, 300)
    clean_db.add_resource_cost(resource_id, 200)

    costs = clean_db.list_cost_aggregates(project_id)

    assert costs.bac == 500
    assert costs.has_actuals


def test_negative_cost_is_rejected(clean_db):
    project_id, _, _ = _project_with_chain(clean_db)
    resource_id = clean_db.add_resource(project_id, "Crew")

    with pytest.raises(ValueError):
        clean_db.add_resource_cost(resource_id, -5)


def test_resources_and_assignments_in_snapshot(clean_db):
    project_id, first, second = _project_with_chain(clean_db)
    resource_id = clean_db.add_resource(project_id, "Crane", capacity=2)
    clean_db.assign_resource(second, resource_id, quantity=2)

    snapshot = clean_db.load_project_snapshot(project_id)

    assert [resource.name for resource in snapshot.resources] == ["Crane"]
    assert snapshot.assignments[0].task_id == second
    assert snapshot.assignments[0].quantity == 2


def test_update_task_progress(clean_db):
    project_id, first, second = _project_with_chain(clean_db)

    assert clean_db.update_task_progress(second, 100, actual_end_date=date(2024, 1, 15))
    assert not clean_db.update_task_progress(12345, 50)

    task = clean_db.list_tasks(project_id)[1]
    assert task.status == TaskStatus.COMPLETED
    assert task.actual_end_date == date(2024, 1, 15)


def test_project_listing(clean_db):
    project_id, _, _ = _project_with_chain(clean_db, budget=1000)

    projects = clean_db.get_user_projects()
    data = clean_db.get_project_data(project_id)

    assert projects[0]['id'] == project_id
    assert projects[0]['tasks_count'] == 2
    assert data['budget'] == 1000
    assert data['start_date'] == date(2024, 1, 1)


def test_health_from_database(clean_db):
    project_id, _, _ = _project_with_chain(clean_db, budget=10000)

    health = compute_schedule_health(project_id, now=date(2024, 1, 11), settings=HealthSettings())

    # Planned: 1.0 and 0.5, actual: 1.0 and 0.2
    assert health.pv == pytest.approx(7500)
    assert health.ev == pytest.approx(6000)
    assert health.spi == pytest.approx(0.8)
    assert health.task_count == 2


def test_health_for_unknown_project(clean_db):
    with pytest.raises(ProjectNotFoundError):
        compute_schedule_health(404)


def test_health_history_newest_first(clean_db):
    project_id, _, _ = _project_with_chain(clean_db)

    clean_db.save_health_snapshot(project_id, HealthSnapshot(overall_score=50, spi=0.9, cpi=1.1, task_count=2))
    clean_db.save_health_snapshot(project_id, HealthSnapshot(overall_score=70, spi=1.0, cpi=1.0, task_count=2))

    history = clean_db.get_health_history(project_id)

    assert [row['overall_score'] for row in history] == [70, 50]
    assert clean_db.get_health_history(project_id, limit=1)[0]['overall_score'] == 70


def test_reads_run_inside_a_transaction(clean_db):
    with clean_db.engine.connect() as connection:
        connection.execute(text("SELECT 1"))

        assert connection.connection.dbapi_connection.in_transaction
