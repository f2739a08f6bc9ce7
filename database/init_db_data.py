# init_db_data.py
from datetime import date, timedelta

from database.operations import (
    init_db, session_scope, create_new_project, add_project_task, add_task_dependencies,
    add_resource, assign_resource, add_resource_cost
)
from database.models import Project
from logger import logger

DEMO_PROJECT_NAME = "Demo: Residential Block A"

# name, duration, offset from project start, progress, predecessors (by name)
DEMO_TASKS = [
    ("Site preparation", 5, 0, 100, []),
    ("Excavation", 7, 5, 100, ["Site preparation"]),
    ("Foundations", 10, 12, 80, ["Excavation"]),
    ("Utilities rough-in", 6, 12, 50, ["Excavation"]),
    ("Structural frame", 20, 22, 20, ["Foundations"]),
    ("Roofing", 8, 42, 0, ["Structural frame"]),
    ("Facade", 12, 42, 0, ["Structural frame", "Utilities rough-in"]),
    ("Interior finishes", 15, 54, 0, ["Roofing", "Facade"]),
]

# name, capacity, daily rate, assigned tasks, recorded costs
DEMO_RESOURCES = [
    ("Excavator", 1, 900.0, ["Excavation"], [6300.0]),
    ("Concrete crew", 6, 1800.0, ["Foundations", "Structural frame"], [14400.0, 6200.0]),
    ("Electricians", 4, 1200.0, ["Utilities rough-in", "Interior finishes"], [3600.0]),
]


def init_predefined_data(start_date=None):
    """
    Seeds a demo project if it does not exist yet.

    Returns:
        ID of the demo project
    """
    init_db()

    with session_scope() as session:
        existing = session.query(Project).filter(Project.name == DEMO_PROJECT_NAME).first()
        if existing:
            logger.info("Demo data already exists")
            return existing.id

    start_date = start_date or date.today() - timedelta(days=30)
    project_id = create_new_project(DEMO_PROJECT_NAME, budget=120000.0, start_date=start_date)

    task_ids = {}
    for name, duration, offset, progress, _ in DEMO_TASKS:
        task_start = start_date + timedelta(days=offset)
        task_ids[name] = add_project_task(
            project_id, name, duration_days=duration,
            start_date=task_start, end_date=task_start + timedelta(days=duration),
            progress=progress
        )

    for name, _, _, _, predecessors in DEMO_TASKS:
        for predecessor in predecessors:
            add_task_dependencies(task_ids[name], task_ids[predecessor])

    for name, capacity, daily_rate, assigned, costs in DEMO_RESOURCES:
        resource_id = add_resource(project_id, name, capacity=capacity, daily_rate=daily_rate)
        for task_name in assigned:
            assign_resource(task_ids[task_name], resource_id)
        for cost in costs:
            add_resource_cost(resource_id, cost)

    logger.info(f"Demo data initialized, project ID {project_id}")
    return project_id


if __name__ == "__main__":
    init_predefined_data()
