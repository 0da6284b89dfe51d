"""Utilization classification: a total function over hours and capacity."""

from typing import Optional

from models.workload import UtilizationResult, WorkloadStatus
from config.defaults import NORMAL_MAX_PCT, FULLY_ALLOCATED_MAX_PCT


def utilization_percent(allocated_hours: float, logged_hours: float, capacity_hours: float) -> float:
    if capacity_hours <= 0:
        return 0.0
    return ((allocated_hours + logged_hours) / capacity_hours) * 100


def status_for(percent: float, rule_config: Optional[dict] = None) -> WorkloadStatus:
    """Map a utilization % to a workload band. First match wins."""
    cfg = rule_config or {}
    normal_max = cfg.get("normal_max_pct", NORMAL_MAX_PCT)
    fully_max = cfg.get("fully_allocated_max_pct", FULLY_ALLOCATED_MAX_PCT)

    if percent == 0:
        return WorkloadStatus.AVAILABLE
    if percent <= normal_max:
        return WorkloadStatus.NORMAL
    if percent <= fully_max:
        return WorkloadStatus.FULLY_ALLOCATED
    return WorkloadStatus.OVERALLOCATED


def classify(
    allocated_hours: float,
    logged_hours: float,
    capacity_hours: float,
    is_working_day: bool = True,
    rule_config: Optional[dict] = None,
) -> UtilizationResult:
    """Utilization % and status for one member over one day or period.

    Non-working days are always available at 0%, whatever was recorded on them.
    """
    if not is_working_day:
        return UtilizationResult(0.0, WorkloadStatus.AVAILABLE)

    percent = utilization_percent(allocated_hours, logged_hours, capacity_hours)
    return UtilizationResult(percent, status_for(percent, rule_config))
