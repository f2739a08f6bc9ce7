from planning.models import HealthSnapshot
from planning.network import compute_critical_path
from bot.reports import format_critical_path_report, format_health_history, format_health_report, format_score


def test_empty_project_report():
    text = format_health_report("Tower", HealthSnapshot.empty())

    assert "has no tasks" in text
    assert "Tower" in text


def test_health_report_contents():
    health = HealthSnapshot(overall_score=75, schedule_score=75, cost_score=None, resource_score=None,
                            spi=1.0, cpi=0.0, bac=10000, pv=5000, ev=5000, task_count=2)
    stats = {'total': 2, 'completed': 0, 'in_progress': 2, 'overdue': 0, 'average_progress': 50}

    text = format_health_report("Tower", health, stats, currency='EUR')

    assert "Overall: 75/100 (Good)" in text
    assert "Cost: n/a" in text
    assert "BAC: 10,000.00 EUR" in text
    assert "Average progress: 50%" in text


def test_format_score():
    assert format_score(None) == "n/a"
    assert format_score(60) == "60/100"


def test_critical_path_report(diamond_tasks):
    result = compute_critical_path(diamond_tasks)

    text = format_critical_path_report(diamond_tasks, result)

    assert "Critical path: A -> B -> D" in text
    assert "- C: 4 days" in text
    assert "Duration: 9 days" in text


def test_critical_path_report_without_tasks():
    assert format_critical_path_report([], compute_critical_path([])) == "No tasks to calculate the critical path."


def test_empty_history():
    assert "No saved health snapshots" in format_health_history("Tower", [])
