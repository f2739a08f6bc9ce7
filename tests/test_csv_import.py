from datetime import date

import pytest

from utils.csv_import import CsvImportError, create_project_from_csv, parse_csv_tasks

VALID_CSV = (
    "name,duration,start_date,end_date,progress,predecessors\n"
    "Excavation,5,2024-01-01,,100,\n"
    "Foundations,7,,,40,Excavation\n"
    "Drainage,,2024-01-06,2024-01-09,0,Excavation\n"
    'Frame,10,,,0,"Foundations, Drainage"\n'
)


def test_parse_valid_csv():
    tasks = parse_csv_tasks(VALID_CSV)

    assert [task['name'] for task in tasks] == ["Excavation", "Foundations", "Drainage", "Frame"]
    assert tasks[0]['start_date'] == date(2024, 1, 1)
    assert tasks[0]['progress'] == 100.0
    assert tasks[2]['duration'] is None
    assert tasks[3]['predecessors'] == ["Foundations", "Drainage"]


def test_parse_bytes_with_bom():
    tasks = parse_csv_tasks(("\ufeff" + VALID_CSV).encode('utf-8'))

    assert tasks[0]['name'] == "Excavation"


@pytest.mark.parametrize("content, message", [
    ("title,duration\nA,1\n", "Missing required CSV fields"),
    ("name,duration\n,1\n", "task name is empty"),
    ("name,duration\nA,\n", "needs a duration"),
    ("name,duration\nA,-3\n", "negative duration"),
    ("name,duration\nA,abc\n", "invalid value"),
    ("name,duration\n", "contains no tasks"),
    ("name,duration\nA,1\nA,2\n", "Duplicate task names"),
    ("name,duration,predecessors\nA,1,Ghost\n", "unknown task"),
    ("name,duration,predecessors\nA,1,B\nB,1,A\n", "Cyclic dependency"),
])
def test_invalid_csv(content, message):
    with pytest.raises(CsvImportError, match=message):
        parse_csv_tasks(content)


def test_create_project_from_csv(clean_db):
    project_id = create_project_from_csv("Imported", VALID_CSV, budget=20000)

    data = clean_db.get_project_data(project_id)
    tasks = {task.name: task for task in clean_db.list_tasks(project_id)}

    assert data['tasks_count'] == 4
    assert data['start_date'] == date(2024, 1, 1)
    assert data['budget'] == 20000
    assert sorted(tasks["Frame"].predecessors) == sorted([tasks["Foundations"].id, tasks["Drainage"].id])
