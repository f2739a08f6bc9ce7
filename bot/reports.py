# bot/reports.py
"""
Text reports sent by the bot.
"""
from bot.messages import EMPTY_PROJECT_MESSAGE
from planning.alerts import health_status, risk_alerts, SEVERITY_CRITICAL


def format_score(score):
    return "n/a" if score is None else f"{score}/100"


def format_money(value, currency=''):
    text = f"{value:,.2f}"
    return f"{text} {currency}".strip()


def format_health_report(project_name, health, stats=None, currency=''):
    """
    Health dashboard text.

    Args:
        project_name: Project name
        health: HealthSnapshot
        stats: Output of task_statistics (optional)
        currency: Currency code for monetary values

    Returns:
        Report text
    """
    if health.is_empty:
        return EMPTY_PROJECT_MESSAGE.format(name=project_name)

    lines = [
        f"Schedule health: {project_name}",
        "",
        f"Overall: {health.overall_score}/100 ({health_status(health.overall_score)})",
        f"Schedule: {format_score(health.schedule_score)}",
        f"Cost: {format_score(health.cost_score)}",
        f"Resources: {format_score(health.resource_score)}",
        "",
        f"SPI: {health.spi:.2f}   CPI: {health.cpi:.2f}   TCPI: {health.tcpi:.2f}",
        f"Schedule variance: {format_money(health.schedule_variance, currency)}",
        f"Cost variance: {format_money(health.cost_variance, currency)}",
        f"BAC: {format_money(health.bac, currency)}",
        f"PV: {format_money(health.pv, currency)}   EV: {format_money(health.ev, currency)}   "
        f"AC: {format_money(health.ac, currency)}",
        f"EAC: {format_money(health.eac, currency)}   ETC: {format_money(health.etc, currency)}",
        f"VAC: {format_money(health.vac, currency)}",
    ]

    if stats:
        lines += [
            "",
            f"Tasks: {stats['total']} total, {stats['completed']} completed, "
            f"{stats['in_progress']} in progress, {stats['overdue']} overdue",
            f"Average progress: {stats['average_progress']}%",
        ]

    alerts = risk_alerts(health)
    if alerts:
        lines += ["", "Risk alerts:"]
        for alert in alerts:
            marker = "[!]" if alert.severity == SEVERITY_CRITICAL else "[*]"
            lines.append(f"{marker} {alert.title}: {alert.description}")

    return "\n".join(lines)


def format_critical_path_report(tasks, result):
    """
    Critical path and float of non-critical tasks.

    Args:
        tasks: List of ScheduleTask
        result: CriticalPathResult

    Returns:
        Report text
    """
    if not result.schedule_data:
        return "No tasks to calculate the critical path."

    names = {task.id: task.name for task in tasks}
    project_start = min(timing.earliest_start for timing in result.schedule_data.values())
    duration = (result.project_finish - project_start).days

    lines = [
        f"Project start: {project_start.strftime('%d.%m.%Y')}",
        f"Project finish: {result.project_finish.strftime('%d.%m.%Y')}",
        f"Duration: {duration} days",
        "",
        "Critical path: " + " -> ".join(names.get(task_id, str(task_id)) for task_id in result.critical_path),
        "",
        "Float of non-critical tasks:",
    ]

    non_critical = [
        (task_id, timing) for task_id, timing in result.schedule_data.items()
        if task_id not in result.critical_task_ids
    ]
    if non_critical:
        for task_id, timing in sorted(non_critical, key=lambda item: item[1].float, reverse=True):
            lines.append(
                f"- {names.get(task_id, task_id)}: {timing.float} days "
                f"(ES {timing.earliest_start.strftime('%d.%m')}, LF {timing.latest_finish.strftime('%d.%m')})"
            )
    else:
        lines.append("All tasks are critical.")

    return "\n".join(lines)


def format_health_history(project_name, history):
    """Stored health snapshots as text."""
    if not history:
        return f"No saved health snapshots for '{project_name}'."

    lines = [f"Health history: {project_name}", ""]
    for row in history:
        created_at = row['created_at'].strftime('%d.%m.%Y %H:%M') if row['created_at'] else "n/a"
        lines.append(f"{created_at}: overall {row['overall_score']}, SPI {row['spi']:.2f}, CPI {row['cpi']:.2f}")
    return "\n".join(lines)
