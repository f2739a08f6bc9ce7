"""
Import of project schedules from CSV files.
"""
import csv
import io
import logging

from database.operations import create_new_project, add_project_task, add_task_dependencies
from planning.network import find_cycle
from utils.dates import to_date, today

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ['name']


class CsvImportError(ValueError):
    """The CSV content cannot be imported."""


def parse_csv_tasks(csv_data):
    """
    Parses a CSV file with tasks.

    CSV format:
    name,duration,start_date,end_date,progress,predecessors

    Dates are ISO formatted (YYYY-MM-DD). `predecessors` is a
    comma-separated list of task names from the same file. Either
    `duration` or both dates must be present.

    Args:
        csv_data: CSV content (str or file-like)

    Returns:
        List of task dicts

    Raises:
        CsvImportError: missing fields or invalid values
    """
    if isinstance(csv_data, bytes):
        csv_data = csv_data.decode('utf-8-sig')
    if isinstance(csv_data, str):
        csv_data = io.StringIO(csv_data)

    reader = csv.DictReader(csv_data)
    header = reader.fieldnames or []
    missing_fields = [field for field in REQUIRED_FIELDS if field not in header]
    if missing_fields:
        raise CsvImportError(f"Missing required CSV fields: {', '.join(missing_fields)}")

    tasks = []
    for line_number, row in enumerate(reader, start=2):
        name = (row.get('name') or '').strip()
        if not name:
            raise CsvImportError(f"Line {line_number}: task name is empty")

        try:
            duration = int(row['duration']) if (row.get('duration') or '').strip() else None
            start_date = to_date(row.get('start_date'))
            end_date = to_date(row.get('end_date'))
            progress = float(row['progress']) if (row.get('progress') or '').strip() else 0.0
        except (TypeError, ValueError) as e:
            raise CsvImportError(f"Line {line_number}: invalid value for task '{name}': {str(e)}")

        if duration is None and not (start_date and end_date):
            raise CsvImportError(f"Line {line_number}: task '{name}' needs a duration or start and end dates")
        if duration is not None and duration < 0:
            raise CsvImportError(f"Line {line_number}: task '{name}' has a negative duration")

        predecessors = []
        if (row.get('predecessors') or '').strip():
            predecessors = [pred.strip() for pred in row['predecessors'].split(',') if pred.strip()]

        tasks.append({
            'name': name,
            'duration': duration,
            'start_date': start_date,
            'end_date': end_date,
            'progress': progress,
            'predecessors': predecessors
        })

    if not tasks:
        raise CsvImportError("CSV file contains no tasks")

    names = [task['name'] for task in tasks]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise CsvImportError(f"Duplicate task names: {', '.join(duplicates)}")

    task_names = set(names)
    for task in tasks:
        for predecessor in task['predecessors']:
            if predecessor not in task_names:
                raise CsvImportError(f"Task '{task['name']}' depends on unknown task '{predecessor}'")

    cycle = find_cycle((predecessor, task['name']) for task in tasks for predecessor in task['predecessors'])
    if cycle:
        raise CsvImportError(f"Cyclic dependency: {' -> '.join(cycle)}")

    return tasks


def create_project_from_tasks(project_name, tasks, budget=None):
    """
    Creates a project from parsed tasks.

    Args:
        project_name: Name of the new project
        tasks: Output of parse_csv_tasks
        budget: Budget at completion (optional)

    Returns:
        ID of the created project
    """
    # Undated schedules start today
    start_dates = [task['start_date'] for task in tasks if task['start_date']]
    project_id = create_new_project(project_name, budget=budget, start_date=min(start_dates) if start_dates else today())

    task_name_map = {}
    for task in tasks:
        task_name_map[task['name']] = add_project_task(
            project_id,
            task['name'],
            duration_days=task['duration'],
            start_date=task['start_date'],
            end_date=task['end_date'],
            progress=task['progress']
        )

    for task in tasks:
        for predecessor in task['predecessors']:
            add_task_dependencies(task_name_map[task['name']], task_name_map[predecessor])

    logger.info(f"Imported {len(tasks)} tasks into project {project_id}")
    return project_id


def create_project_from_csv(project_name, csv_data, budget=None):
    """Parses CSV content and creates a project from it."""
    tasks = parse_csv_tasks(csv_data)
    return create_project_from_tasks(project_name, tasks, budget=budget)
