"""Member capacity: working hours per day masked by working days."""

import math
import re
from datetime import date
from typing import FrozenSet, Iterable, Union

from models.member import Member
from models.calendar import DateRange
from models.errors import InvalidCapacityConfig
from config.defaults import WEEKDAY_NAMES


def validate_member(member: Member) -> None:
    """Raise InvalidCapacityConfig if the member can never hold capacity."""
    hours = member.working_hours_per_day
    if hours is None or (isinstance(hours, float) and math.isnan(hours)) or hours <= 0:
        raise InvalidCapacityConfig(
            f"Member {member.member_id}: working hours per day must be positive, got {hours}"
        )
    if not member.working_days:
        raise InvalidCapacityConfig(
            f"Member {member.member_id}: working-day set is empty"
        )
    bad_days = [d for d in member.working_days if d not in range(7)]
    if bad_days:
        raise InvalidCapacityConfig(
            f"Member {member.member_id}: invalid weekday numbers {sorted(bad_days)}"
        )


def working_days_in(member: Member, date_range: DateRange) -> int:
    """Number of days in the range that fall on the member's working days."""
    return sum(1 for d in date_range.days() if member.works_on(d))


def capacity_on(member: Member, day: date) -> float:
    """Hours the member can work on a single day (0 outside working days)."""
    if not member.works_on(day):
        return 0.0
    return float(member.working_hours_per_day)


def capacity_for(member: Member, date_range: DateRange) -> float:
    """Total capacity hours across the range: hours/day x working days in range."""
    validate_member(member)
    return float(member.working_hours_per_day) * working_days_in(member, date_range)


def parse_working_days(days: Iterable[Union[str, int]]) -> FrozenSet[int]:
    """Accept weekday names or prefixes of at least three letters ("Monday", "mon",
    "tues") or weekday numbers (0=Monday).

    A single string is split on commas or semicolons ("Mon,Tue;Wed").
    """
    if isinstance(days, str):
        days = re.split(r"[,;]", days)
    result = set()
    for d in days:
        token = str(d).strip().lower()
        if not token:
            continue
        if token.isdigit():
            number = int(token)
            if number not in range(7):
                raise InvalidCapacityConfig(f"Invalid weekday number: {d}")
            result.add(number)
            continue
        matches = [i for i, name in enumerate(WEEKDAY_NAMES) if name.lower().startswith(token)]
        if len(token) < 3 or not matches:
            raise InvalidCapacityConfig(f"Unknown weekday name: {d!r}")
        result.add(matches[0])
    return frozenset(result)


def set_working_capacity(
    member: Member,
    working_days: Iterable[Union[str, int]],
    working_hours_per_day: float,
) -> Member:
    """Apply a working-days / working-hours setting to a member.

    Validates before mutating so a rejected setting leaves the member untouched.
    """
    candidate = Member(
        member_id=member.member_id,
        name=member.name,
        working_hours_per_day=float(working_hours_per_day),
        working_days=parse_working_days(working_days),
    )
    validate_member(candidate)
    member.working_hours_per_day = candidate.working_hours_per_day
    member.working_days = candidate.working_days
    return member
