from contextlib import contextmanager

from sqlalchemy import create_engine, event, func
from sqlalchemy.orm import sessionmaker
from database.models import Base, Project, Task, TaskDependency, Resource, ResourceAssignment, ResourceCost, \
    ScheduleHealth
from config import DATABASE_URL
from logger import logger
from planning.exceptions import CyclicDependencyError, InvalidTaskError, ProjectNotFoundError
from planning.models import (
    CostAggregate, ProjectSnapshot, Resource as ResourceRecord, ResourceAssignment as AssignmentRecord,
    ScheduleTask, TaskStatus
)
from planning.network import find_cycle

# Database connection
engine = create_engine(DATABASE_URL)
Session = sessionmaker(bind=engine)

if engine.dialect.name == 'sqlite':
    # pysqlite defers BEGIN until the first write, emit it for reads as well
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_sqlite_transaction(connection):
        connection.exec_driver_sql("BEGIN")


def init_db():
    """Creates the database schema."""
    logger.info(f"Initializing database with URL: {DATABASE_URL}")
    try:
        Base.metadata.create_all(engine)
        logger.info("Database initialized")

    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


@contextmanager
def session_scope():
    """
    Context manager for SQLAlchemy sessions.
    Commits on success and rolls back on any exception.
    """
    session = Session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database error: {str(e)}")
        raise
    finally:
        session.close()


def create_new_project(name, budget=None, start_date=None, end_date=None, currency='EUR'):
    """
    Creates a new project.

    Args:
        name: Project name
        budget: Budget at completion (optional)
        start_date: Planned start date (optional)
        end_date: Planned end date (optional)
        currency: Currency code

    Returns:
        ID of the created project
    """
    with session_scope() as session:
        project = Project(name=name, budget=budget, start_date=start_date, end_date=end_date, currency=currency)
        session.add(project)
        session.flush()
        logger.info(f"Created project '{name}' with ID {project.id}")
        return project.id


def add_project_task(project_id, name, duration_days=None, start_date=None, end_date=None, progress=0.0,
                     actual_start_date=None, actual_end_date=None):
    """
    Adds a task to a project.

    Args:
        project_id: Project ID
        name: Task name
        duration_days: Duration in days (derived from the dates when omitted)
        start_date: Planned start
        end_date: Planned finish
        progress: Percent complete

    Returns:
        ID of the created task
    """
    if duration_days is not None and duration_days < 0:
        raise InvalidTaskError(name, f"negative duration {duration_days}")

    progress = _clamp_progress(progress)
    with session_scope() as session:
        if session.get(Project, project_id) is None:
            raise ProjectNotFoundError(project_id)

        task = Task(
            project_id=project_id,
            name=name,
            duration_days=duration_days,
            start_date=start_date,
            end_date=end_date,
            actual_start_date=actual_start_date,
            actual_end_date=actual_end_date,
            progress=progress,
            status=TaskStatus.from_progress(progress).value
        )
        session.add(task)
        session.flush()
        return task.id


def add_task_dependencies(task_id, predecessor_id):
    """
    Adds a finish-to-start dependency between tasks.

    Args:
        task_id: ID of the dependent task
        predecessor_id: ID of the predecessor task

    Returns:
        ID of the created dependency

    Raises:
        CyclicDependencyError: the dependency would close a cycle
    """
    if task_id == predecessor_id:
        raise CyclicDependencyError([task_id], f"Task {task_id} cannot depend on itself")

    with session_scope() as session:
        task = session.get(Task, task_id)
        predecessor = session.get(Task, predecessor_id)
        if task is None or predecessor is None:
            raise InvalidTaskError(task_id if task is None else predecessor_id, "task not found")
        if task.project_id != predecessor.project_id:
            raise InvalidTaskError(task_id, "predecessor belongs to another project")

        existing = session.query(TaskDependency).filter(
            TaskDependency.task_id == task_id,
            TaskDependency.predecessor_id == predecessor_id
        ).first()
        if existing:
            return existing.id

        edges = [(dep.predecessor_id, dep.task_id) for dep in _project_dependencies(session, task.project_id)]
        cycle = find_cycle(edges + [(predecessor_id, task_id)])
        if cycle:
            logger.warning(f"Rejected dependency {predecessor_id} -> {task_id}: cycle {cycle}")
            raise CyclicDependencyError(cycle[:-1], f"Dependency would create a cycle: {' -> '.join(map(str, cycle))}")

        dependency = TaskDependency(task_id=task_id, predecessor_id=predecessor_id, dependency_type='FS')
        session.add(dependency)
        session.flush()
        return dependency.id


def update_task_progress(task_id, progress, actual_end_date=None):
    """
    Updates task progress and derives its status.

    Returns:
        True if the task exists, otherwise False
    """
    progress = _clamp_progress(progress)
    with session_scope() as session:
        task = session.get(Task, task_id)
        if not task:
            logger.error(f"Task {task_id} not found")
            return False

        task.progress = progress
        task.status = TaskStatus.from_progress(progress).value
        if actual_end_date is not None:
            task.actual_end_date = actual_end_date
        logger.info(f"Task {task_id} progress set to {progress}%")
        return True


def add_resource(project_id, name, capacity=100.0, daily_rate=0.0, hourly_rate=0.0, resource_type='labor'):
    """Adds a resource to a project and returns its ID."""
    with session_scope() as session:
        resource = Resource(
            project_id=project_id,
            name=name,
            capacity=capacity,
            daily_rate=daily_rate,
            hourly_rate=hourly_rate,
            resource_type=resource_type
        )
        session.add(resource)
        session.flush()
        return resource.id


def assign_resource(task_id, resource_id, quantity=1.0):
    """Assigns a resource to a task and returns the assignment ID."""
    with session_scope() as session:
        assignment = ResourceAssignment(task_id=task_id, resource_id=resource_id, quantity=quantity)
        session.add(assignment)
        session.flush()
        return assignment.id


def add_resource_cost(resource_id, total_cost, description=None):
    """
    Records an actual cost for a resource.

    Returns:
        ID of the cost record
    """
    if total_cost < 0:
        raise ValueError(f"Cost must be non-negative, got {total_cost}")

    with session_scope() as session:
        cost = ResourceCost(resource_id=resource_id, total_cost=total_cost, description=description)
        session.add(cost)
        session.flush()
        logger.info(f"Recorded cost {total_cost} for resource {resource_id}")
        return cost.id


def get_user_projects():
    """
    Gets the list of projects.

    Returns:
        List of dicts {'id', 'name', 'created_at', 'tasks_count'}
    """
    with session_scope() as session:
        projects = session.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).all()

        result = []
        for project in projects:
            tasks_count = session.query(Task).filter(Task.project_id == project.id).count()
            created_at = project.created_at.strftime("%d.%m.%Y %H:%M") if project.created_at else "n/a"

            result.append({
                'id': project.id,
                'name': project.name,
                'created_at': created_at,
                'tasks_count': tasks_count
            })

        return result


def list_tasks(project_id):
    """
    Gets the project's tasks with their predecessor ids.

    Returns:
        List of ScheduleTask
    """
    with session_scope() as session:
        return _load_tasks(session, project_id)


def list_cost_aggregates(project_id):
    """
    Gets the project's budget at completion and recorded actual costs.

    Returns:
        CostAggregate, or None if the project does not exist
    """
    with session_scope() as session:
        project = session.get(Project, project_id)
        if not project:
            return None
        return _load_costs(session, project)


def load_project_snapshot(project_id):
    """
    Loads tasks, dependencies, costs and resources of a project in one transaction.
    On SQLite the transaction starts with the first SELECT (see the engine listeners above).

    Args:
        project_id: Project ID

    Returns:
        ProjectSnapshot, or None if the project does not exist
    """
    with session_scope() as session:
        project = session.get(Project, project_id)
        if not project:
            logger.warning(f"Project {project_id} not found")
            return None

        tasks = _load_tasks(session, project_id)
        costs = _load_costs(session, project)

        resources = [
            ResourceRecord(
                id=resource.id,
                name=resource.name,
                capacity=resource.capacity or 100.0,
                daily_rate=resource.daily_rate or 0.0,
                hourly_rate=resource.hourly_rate or 0.0
            )
            for resource in session.query(Resource).filter(Resource.project_id == project_id).order_by(Resource.id)
        ]

        assignments = [
            AssignmentRecord(task_id=assignment.task_id, resource_id=assignment.resource_id,
                             quantity=assignment.quantity or 1.0)
            for assignment in session.query(ResourceAssignment).join(Task).filter(
                Task.project_id == project_id).order_by(ResourceAssignment.id)
        ]

        logger.debug(
            f"Snapshot of project {project_id}: {len(tasks)} tasks, {len(resources)} resources, "
            f"{costs.cost_records} cost records"
        )

        return ProjectSnapshot(
            project_id=project_id,
            tasks=tasks,
            costs=costs,
            resources=resources,
            assignments=assignments
        )


def get_project_data(project_id):
    """
    Gets basic project information.

    Returns:
        Dict with id, name, budget, currency, dates and tasks count, or None
    """
    with session_scope() as session:
        project = session.get(Project, project_id)
        if not project:
            return None

        return {
            'id': project.id,
            'name': project.name,
            'budget': project.budget,
            'currency': project.currency,
            'start_date': project.start_date,
            'end_date': project.end_date,
            'tasks_count': session.query(Task).filter(Task.project_id == project_id).count()
        }


def save_health_snapshot(project_id, health):
    """
    Stores a computed health snapshot for history charts.

    Returns:
        ID of the stored row
    """
    with session_scope() as session:
        row = ScheduleHealth(
            project_id=project_id,
            overall_score=health.overall_score,
            schedule_score=health.schedule_score,
            cost_score=health.cost_score,
            resource_score=health.resource_score,
            spi=health.spi,
            cpi=health.cpi,
            schedule_variance=health.schedule_variance,
            cost_variance=health.cost_variance,
            bac=health.bac,
            pv=health.pv,
            ev=health.ev,
            ac=health.ac,
            eac=health.eac,
            etc=health.etc,
            vac=health.vac,
            tcpi=health.tcpi
        )
        session.add(row)
        session.flush()
        logger.info(f"Saved health snapshot {row.id} for project {project_id}")
        return row.id


def get_health_history(project_id, limit=30):
    """
    Gets stored health snapshots, newest first.

    Returns:
        List of dicts with created_at, overall_score, spi and cpi
    """
    with session_scope() as session:
        rows = session.query(ScheduleHealth).filter(
            ScheduleHealth.project_id == project_id
        ).order_by(ScheduleHealth.created_at.desc(), ScheduleHealth.id.desc()).limit(limit).all()

        return [
            {
                'created_at': row.created_at,
                'overall_score': row.overall_score,
                'spi': row.spi,
                'cpi': row.cpi
            }
            for row in rows
        ]


def _load_tasks(session, project_id):
    tasks = session.query(Task).filter(Task.project_id == project_id).order_by(Task.id).all()

    predecessors = {}
    for dependency in _project_dependencies(session, project_id):
        predecessors.setdefault(dependency.task_id, []).append(dependency.predecessor_id)

    return [
        ScheduleTask(
            id=task.id,
            name=task.name,
            duration_days=task.duration_days,
            start_date=task.start_date,
            end_date=task.end_date,
            progress=task.progress or 0.0,
            status=_task_status(task),
            predecessors=predecessors.get(task.id, []),
            actual_start_date=task.actual_start_date,
            actual_end_date=task.actual_end_date
        )
        for task in tasks
    ]


def _load_costs(session, project):
    cost_query = session.query(ResourceCost).join(Resource).filter(Resource.project_id == project.id)
    cost_records = cost_query.count()
    actual_cost_sum = cost_query.with_entities(func.coalesce(func.sum(ResourceCost.total_cost), 0.0)).scalar()

    bac = project.budget if project.budget and project.budget > 0 else actual_cost_sum
    return CostAggregate(bac=float(bac or 0.0), actual_cost_sum=float(actual_cost_sum or 0.0),
                         cost_records=cost_records)


def _project_dependencies(session, project_id):
    return session.query(TaskDependency).join(
        Task, TaskDependency.task_id == Task.id
    ).filter(Task.project_id == project_id).order_by(TaskDependency.id).all()


def _task_status(task):
    try:
        return TaskStatus(task.status)
    except ValueError:
        return TaskStatus.from_progress(task.progress or 0)


def _clamp_progress(progress):
    return min(100.0, max(0.0, float(progress or 0)))
