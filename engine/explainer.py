"""Generates human-readable messages for conflicts and rebalance moves."""

from datetime import date
from typing import List


def _fmt_day(day: date) -> str:
    return day.strftime("%a %b ") + str(day.day)


def explain_overallocation(
    member_name: str,
    day: date,
    utilization_percent: float,
    load_hours: float,
    capacity_hours: float,
) -> str:
    excess = load_hours - capacity_hours
    return (
        f"{member_name} is overallocated at {utilization_percent:.0f}% on {_fmt_day(day)} "
        f"({load_hours:g}h committed against {capacity_hours:g}h capacity, {excess:g}h over)"
    )


def explain_overlap(
    member_name: str,
    project_a: str,
    project_b: str,
    start: date,
    end: date,
    combined_hours: float,
    capacity_hours: float,
) -> str:
    span = _fmt_day(start) if start == end else f"{_fmt_day(start)} to {_fmt_day(end)}"
    message = (
        f"{member_name} has overlapping commitments on '{project_a}' and '{project_b}' "
        f"({span})"
    )
    if combined_hours > capacity_hours:
        message += f": {combined_hours:g}h combined exceeds {capacity_hours:g}h capacity"
    return message


def explain_move(
    hours: float,
    project_id: str,
    day: date,
    donor_id: str,
    receiver_id: str,
    donor_after_pct: float,
    receiver_after_pct: float,
) -> str:
    return (
        f"Move {hours:g}h of {project_id} on {_fmt_day(day)} from {donor_id} to {receiver_id} "
        f"=> {donor_id} {donor_after_pct:.0f}%, {receiver_id} {receiver_after_pct:.0f}%"
    )


def explain_unresolved(member_id: str, day: date, excess_hours: float, reason: str) -> str:
    if reason == "iteration_cap":
        why = "iteration limit reached"
    else:
        why = "no teammate on a shared project has spare capacity"
    return f"{member_id} remains {excess_hours:g}h over the limit on {_fmt_day(day)} ({why})"


def explain_plan(moves: List[str], unresolved: List[str], converged: bool) -> List[str]:
    """Step-by-step summary for a rebalance plan."""
    steps = []
    if not moves and not unresolved:
        steps.append("No member exceeds the utilization limit, nothing to rebalance.")
        return steps

    for i, move in enumerate(moves, start=1):
        steps.append(f"Step {i} - {move}")
    steps.extend(f"Unresolved: {u}" for u in unresolved)
    if not converged:
        steps.append("Note: rebalancing stopped at the iteration limit before converging")
    return steps
