import pytest

from planning.alerts import SEVERITY_CRITICAL, SEVERITY_WARNING, health_status, risk_alerts
from planning.models import HealthSnapshot


def _health(**overrides):
    values = dict(overall_score=75, schedule_score=75, cost_score=75, resource_score=90,
                  spi=1.0, cpi=1.0, pv=1000, task_count=3)
    values.update(overrides)
    return HealthSnapshot(**values)


@pytest.mark.parametrize("score, label", [
    (95, 'Excellent'), (80, 'Excellent'), (60, 'Good'), (45, 'Fair'), (20, 'Poor'), (5, 'Critical')
])
def test_health_status(score, label):
    assert health_status(score) == label


def test_healthy_project_has_no_alerts():
    assert risk_alerts(_health()) == []


def test_empty_project_has_no_alerts():
    assert risk_alerts(HealthSnapshot.empty()) == []


def test_schedule_delay_levels():
    assert risk_alerts(_health(spi=0.7))[0].title == 'Critical Schedule Delay'
    assert risk_alerts(_health(spi=0.85))[0].severity == SEVERITY_WARNING


def test_no_schedule_alert_without_planned_value():
    assert risk_alerts(_health(spi=0.0, pv=0)) == []


def test_no_cost_alert_without_cost_score():
    alerts = risk_alerts(_health(cpi=0.0, cost_score=None))

    assert all('CPI' not in alert.description for alert in alerts)


def test_critical_alerts_come_first():
    alerts = risk_alerts(_health(cost_variance=-5000, cpi=0.5, resource_score=50))

    assert [alert.severity for alert in alerts] == [SEVERITY_CRITICAL, SEVERITY_WARNING, SEVERITY_WARNING]
    assert alerts[0].title == 'Budget Overrun Risk'
