"""Savings goals: progress calculator and repository."""

from wallet_ledger.goals import calculator
from wallet_ledger.goals.calculator import (
    add_to_savings,
    daily_target_needed,
    days_until_deadline,
    goals_overview,
    progress,
    status_class,
)
from wallet_ledger.goals.repository import GoalRepository

__all__ = [
    "calculator",
    "add_to_savings",
    "daily_target_needed",
    "days_until_deadline",
    "goals_overview",
    "progress",
    "status_class",
    "GoalRepository",
]
