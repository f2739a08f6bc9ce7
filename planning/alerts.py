"""
Health status labels and risk alerts for dashboards.
"""
from dataclasses import dataclass

SEVERITY_CRITICAL = 'critical'
SEVERITY_WARNING = 'warning'

VARIANCE_ALERT_THRESHOLD = -1000

HEALTH_STATUS_BANDS = [
    (80, 'Excellent'),
    (60, 'Good'),
    (40, 'Fair'),
    (20, 'Poor'),
]


@dataclass(frozen=True)
class RiskAlert:
    severity: str
    title: str
    description: str


def health_status(score):
    """Label for an overall score."""
    for threshold, label in HEALTH_STATUS_BANDS:
        if score >= threshold:
            return label
    return 'Critical'


def risk_alerts(health):
    """
    Builds risk alerts from a health snapshot.

    Args:
        health: HealthSnapshot

    Returns:
        List of RiskAlert, critical first
    """
    if health.is_empty:
        return []

    alerts = []

    if health.pv > 0:
        if health.spi < 0.8:
            alerts.append(RiskAlert(
                SEVERITY_CRITICAL, 'Critical Schedule Delay',
                f"SPI is {health.spi:.2f} - project is significantly behind schedule"
            ))
        elif health.spi < 0.9:
            alerts.append(RiskAlert(
                SEVERITY_WARNING, 'Schedule Delay Warning',
                f"SPI is {health.spi:.2f} - project is slightly behind schedule"
            ))

    if health.cost_score is not None:
        if health.cpi < 0.8:
            alerts.append(RiskAlert(
                SEVERITY_CRITICAL, 'Budget Overrun Risk',
                f"CPI is {health.cpi:.2f} - cost performance needs immediate attention"
            ))
        elif health.cpi < 0.9:
            alerts.append(RiskAlert(
                SEVERITY_WARNING, 'Cost Overrun Warning',
                f"CPI is {health.cpi:.2f} - costs are trending above budget"
            ))

    if health.resource_score is not None:
        if health.resource_score < 40:
            alerts.append(RiskAlert(
                SEVERITY_CRITICAL, 'Resource Allocation Critical',
                f"Resource score is {health.resource_score} - severe resource issues detected"
            ))
        elif health.resource_score < 60:
            alerts.append(RiskAlert(
                SEVERITY_WARNING, 'Resource Allocation Warning',
                f"Resource score is {health.resource_score} - resource optimization needed"
            ))

    if health.overall_score < 40:
        alerts.append(RiskAlert(
            SEVERITY_CRITICAL, 'Project Health Critical',
            f"Overall score is {health.overall_score} - multiple areas need immediate attention"
        ))

    if health.cost_variance < VARIANCE_ALERT_THRESHOLD:
        alerts.append(RiskAlert(
            SEVERITY_WARNING, 'Significant Cost Variance',
            f"Cost variance is {health.cost_variance:.0f} - project is over budget"
        ))

    if health.schedule_variance < VARIANCE_ALERT_THRESHOLD:
        alerts.append(RiskAlert(
            SEVERITY_WARNING, 'Significant Schedule Variance',
            f"Schedule variance is {health.schedule_variance:.0f} - behind planned value"
        ))

    alerts.sort(key=lambda alert: alert.severity != SEVERITY_CRITICAL)
    return alerts
