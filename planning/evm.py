# planning/evm.py
"""
Earned Value Management arithmetic.

All ratios are guarded: a zero denominator yields a defined value
(0 for SPI/CPI, 1 for TCPI) instead of NaN or infinity.
"""
import logging
from dataclasses import dataclass

from planning.exceptions import InsufficientDataError
from utils.dates import days_between, to_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvmMetrics:
    """EVM baselines, indices and forecasts."""
    bac: float
    pv: float
    ev: float
    ac: float
    spi: float
    cpi: float
    schedule_variance: float
    cost_variance: float
    eac: float
    etc: float
    vac: float
    tcpi: float


def safe_divide(numerator, denominator, default=0.0):
    """Divides, returning default when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def average_actual_progress(tasks):
    """
    Mean completion of the tasks as a fraction 0..1.

    Raises:
        InsufficientDataError: no tasks
    """
    if not tasks:
        raise InsufficientDataError("No tasks to average progress over")
    return sum(_clamp_progress(task.progress) / 100.0 for task in tasks) / len(tasks)


def planned_progress(task, now):
    """
    Fraction of a task that should be complete at `now`.

    Tasks without dates are assumed to be due already.
    """
    start = to_date(task.start_date)
    end = to_date(task.end_date)
    now = to_date(now)

    if start is None or end is None:
        return 1.0
    if now >= end:
        return 1.0
    if now >= start:
        return days_between(start, now) / days_between(start, end)
    return 0.0


def average_planned_progress(tasks, now):
    """
    Mean planned completion of the tasks at `now`.

    Raises:
        InsufficientDataError: no tasks
    """
    if not tasks:
        raise InsufficientDataError("No tasks to average planned progress over")
    return sum(planned_progress(task, now) for task in tasks) / len(tasks)


def calculate_evm_metrics(bac, avg_actual_progress, avg_planned_progress, actual_cost):
    """
    Derives PV, EV and the EVM indices and forecasts.

    Args:
        bac: Budget at completion
        avg_actual_progress: Mean actual completion, 0..1
        avg_planned_progress: Mean planned completion, 0..1
        actual_cost: Actual cost to date

    Returns:
        EvmMetrics
    """
    bac = max(0.0, float(bac))
    ac = max(0.0, float(actual_cost))

    pv = bac * avg_planned_progress
    ev = bac * avg_actual_progress

    spi = safe_divide(ev, pv)
    cpi = safe_divide(ev, ac)

    # No reforecast when cost performance is undefined or exactly on target
    eac = bac / cpi if cpi > 0 and cpi != 1 else bac
    etc = max(0.0, eac - ac)
    vac = bac - eac

    remaining_work = bac - ev
    remaining_budget = bac - ac
    tcpi = remaining_work / remaining_budget if remaining_work > 0 and remaining_budget > 0 else 1.0

    return EvmMetrics(
        bac=bac,
        pv=pv,
        ev=ev,
        ac=ac,
        spi=spi,
        cpi=cpi,
        schedule_variance=ev - pv,
        cost_variance=ev - ac,
        eac=eac,
        etc=etc,
        vac=vac,
        tcpi=tcpi
    )


class ProgressScaledCostEstimator:
    """
    Estimates actual cost as BAC * min(1, progress * factor).

    Only used when a project has no recorded costs.
    """

    name = 'progress_scaled'

    def __init__(self, factor=1.1):
        if factor < 0:
            raise ValueError(f"Cost estimation factor must be non-negative, got {factor}")
        self.factor = factor

    def __call__(self, bac, avg_actual_progress):
        return bac * min(1.0, avg_actual_progress * self.factor)

    def __repr__(self):
        return f"ProgressScaledCostEstimator(factor={self.factor})"


class ZeroCostEstimator:
    """Treats missing cost records as zero actual cost."""

    name = 'none'

    def __call__(self, bac, avg_actual_progress):
        return 0.0

    def __repr__(self):
        return "ZeroCostEstimator()"


def get_cost_estimator(name, factor=1.1):
    """
    Returns the actual-cost estimator configured by name.

    Args:
        name: 'progress_scaled' or 'none'
        factor: Multiplier for the progress scaled estimator
    """
    if name == ProgressScaledCostEstimator.name:
        return ProgressScaledCostEstimator(factor)
    if name in (ZeroCostEstimator.name, '', None):
        return ZeroCostEstimator()
    raise ValueError(f"Unknown actual cost estimator: {name}")


def resolve_actual_cost(costs, avg_actual_progress, estimator):
    """Recorded actual cost, or the estimator's figure when nothing is recorded."""
    if costs.has_actuals:
        return costs.actual_cost_sum
    estimated = estimator(costs.bac, avg_actual_progress)
    logger.info(f"No recorded costs, actual cost estimated by {estimator!r}: {estimated:.2f}")
    return estimated


def _clamp_progress(progress):
    return min(100.0, max(0.0, float(progress or 0)))
