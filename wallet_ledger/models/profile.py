"""
User Profile Model

The "user" record belongs to the auth/settings screens. The ledger core
only reads it, to pick a default currency for new wallets.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """Profile and preferences stored under the "user" key."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    name: Optional[str] = None
    image: Optional[str] = None
    currency: Optional[str] = None
    savings_goal: Optional[Decimal] = Field(default=None, alias="savingsGoal")
    budget_limit: Optional[Decimal] = Field(default=None, alias="budgetLimit")
    privacy_mode: bool = Field(default=False, alias="privacyMode")
    week_start: Optional[str] = Field(default=None, alias="weekStart")
    notifications: bool = True

    @field_validator('currency', mode='before')
    @classmethod
    def blank_currency_is_none(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        return str(v).strip().upper() or None
