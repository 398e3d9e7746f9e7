"""
Goal Progress Calculator

Pure functions over Goal models. No I/O, no clock reads unless the caller
omits `today`.

DESIGN DECISION: `today` may be a date or a datetime.
- date: deadlines are compared as calendar days
- datetime: the deadline is taken as midnight UTC of its day and the
  difference is rounded UP to whole days, so a deadline later today
  still counts as one day left
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional, Union

from wallet_ledger.config import GoalSettings, get_settings
from wallet_ledger.errors import InvalidAmountError
from wallet_ledger.models.goal import (
    Goal,
    GoalMilestone,
    GoalsOverview,
    GoalStatus,
    SavingsRequirement,
)
from wallet_ledger.models.ledger import to_decimal
from wallet_ledger.models.timestamps import normalize_timestamp, utc_now


DayLike = Union[date, datetime]

ZERO = Decimal("0")
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365


def _goal_settings(settings: Optional[GoalSettings]) -> GoalSettings:
    return settings or get_settings().goals


def progress(goal: Goal) -> float:
    """Saved share of the target, in [0, 1]. 0 when the target is 0."""
    if goal.target_amount <= ZERO:
        return 0.0
    ratio = goal.current_amount / goal.target_amount
    return float(min(max(ratio, ZERO), Decimal("1")))


def is_achieved(goal: Goal) -> bool:
    return progress(goal) >= 1.0


def days_until_deadline(goal: Goal, today: Optional[DayLike] = None) -> Optional[int]:
    """
    Whole days left until the deadline.

    Zero means the deadline is today, negative means it has passed.
    None when the goal has no deadline.
    """
    if goal.deadline is None:
        return None
    if today is None:
        today = utc_now()

    if isinstance(today, datetime):
        deadline_at = datetime.combine(goal.deadline, time.min, tzinfo=timezone.utc)
        seconds = (deadline_at - normalize_timestamp(today)).total_seconds()
        return math.ceil(seconds / SECONDS_PER_DAY)
    return (goal.deadline - today).days


def daily_target_needed(
    goal: Goal,
    today: Optional[DayLike] = None,
) -> SavingsRequirement:
    """
    Amount to save per day to reach the target by the deadline.

    Expired goals (deadline today or earlier) get no rate.
    """
    days = days_until_deadline(goal, today)
    if days is None:
        return SavingsRequirement(goal_id=goal.id, has_deadline=False)
    if days <= 0:
        return SavingsRequirement(
            goal_id=goal.id,
            has_deadline=True,
            expired=True,
            days_remaining=days,
        )
    return SavingsRequirement(
        goal_id=goal.id,
        has_deadline=True,
        days_remaining=days,
        per_day=goal.remaining_amount / max(days, 1),
    )


def status_class(
    goal: Goal,
    today: Optional[DayLike] = None,
    settings: Optional[GoalSettings] = None,
) -> GoalStatus:
    """
    Pace classification.

    The remaining share of the target is spread over the days left; a
    required daily share above the behind threshold (10%) is BEHIND,
    above the at-risk threshold (5%) is AT_RISK, otherwise ON_TRACK.
    """
    days = days_until_deadline(goal, today)
    if days is None:
        return GoalStatus.NO_DEADLINE
    if days <= 0:
        return GoalStatus.EXPIRED

    settings = _goal_settings(settings)
    required_daily = (1.0 - progress(goal)) / days
    if required_daily > settings.behind_threshold:
        return GoalStatus.BEHIND
    if required_daily > settings.at_risk_threshold:
        return GoalStatus.AT_RISK
    return GoalStatus.ON_TRACK


def add_to_savings(goal: Goal, amount) -> Goal:
    """
    Quick-add to a goal's savings, saturating at the target.

    Raises:
        InvalidAmountError: If amount is not a finite number > 0
    """
    try:
        value = to_decimal(amount)
    except ValueError:
        raise InvalidAmountError(amount, "Amount must be a finite number")
    if value <= ZERO:
        raise InvalidAmountError(amount)

    saved = min(goal.current_amount + value, goal.target_amount)
    return goal.model_copy(update={"current_amount": max(saved, goal.current_amount)})


def is_urgent(
    goal: Goal,
    today: Optional[DayLike] = None,
    settings: Optional[GoalSettings] = None,
) -> bool:
    """Deadline within `urgent_days` (or already passed) and not achieved."""
    days = days_until_deadline(goal, today)
    if days is None:
        return False
    return days <= _goal_settings(settings).urgent_days and not is_achieved(goal)


def is_almost_there(goal: Goal, settings: Optional[GoalSettings] = None) -> bool:
    return progress(goal) >= _goal_settings(settings).almost_there_ratio and not is_achieved(goal)


def milestone(goal: Goal) -> GoalMilestone:
    ratio = progress(goal)
    if ratio >= 1.0:
        return GoalMilestone.ACHIEVED
    if ratio >= 0.75:
        return GoalMilestone.ALMOST_THERE
    if ratio >= 0.5:
        return GoalMilestone.GREAT_PROGRESS
    if ratio >= 0.25:
        return GoalMilestone.KEEP_GOING
    return GoalMilestone.STARTING


def monthly_target(goal: Goal) -> Decimal:
    """Remaining amount spread over a 30-day month."""
    return goal.remaining_amount / DAYS_PER_MONTH


def time_remaining_label(goal: Goal, today: Optional[DayLike] = None) -> str:
    days = days_until_deadline(goal, today)
    if days is None:
        return "NO DEADLINE"
    if days <= 0:
        return "EXPIRED"
    if days == 1:
        return "1 DAY"
    if days <= DAYS_PER_MONTH:
        return f"{days} DAYS"
    if days <= DAYS_PER_YEAR:
        return f"{math.ceil(days / DAYS_PER_MONTH)} MONTHS"
    return f"{math.ceil(days / DAYS_PER_YEAR)} YEARS"


def goals_overview(
    goals: Iterable[Goal],
    today: Optional[DayLike] = None,
    settings: Optional[GoalSettings] = None,
) -> GoalsOverview:
    """Totals for the goal screen header."""
    goals = list(goals)
    total_saved = sum((g.current_amount for g in goals), ZERO)
    total_target = sum((g.target_amount for g in goals), ZERO)

    overall = 0.0
    if total_target > ZERO:
        overall = float(min(total_saved / total_target, Decimal("1")))

    return GoalsOverview(
        total_saved=total_saved,
        total_target=total_target,
        overall_progress=overall,
        completed=sum(1 for g in goals if is_achieved(g)),
        urgent=sum(1 for g in goals if is_urgent(g, today, settings)),
    )
