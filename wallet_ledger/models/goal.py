"""
Savings Goal Models

Goals are independent savings targets. They are NOT tied to a wallet:
adding to a goal's savings does not move money out of any wallet.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from wallet_ledger.models.ledger import Money, new_id, to_decimal
from wallet_ledger.models.timestamps import normalize_timestamp, utc_now


class GoalCategory(str, Enum):
    """Labels offered for new goals. Stored goals may carry others."""
    HOUSING = "Housing"
    VEHICLE = "Vehicle"
    VACATION = "Vacation"
    EDUCATION = "Education"
    WEDDING = "Wedding"
    ELECTRONICS = "Electronics"
    EMERGENCY = "Emergency"
    GENERAL = "General"


class GoalStatus(str, Enum):
    """
    Pace classification of a goal against its deadline.

    NO_DEADLINE and EXPIRED short-circuit the rate computation.
    """
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BEHIND = "behind"
    EXPIRED = "expired"
    NO_DEADLINE = "no_deadline"


class GoalMilestone(str, Enum):
    """Progress tier shown next to a goal."""
    STARTING = "starting"            # < 25%
    KEEP_GOING = "keep_going"        # >= 25%
    GREAT_PROGRESS = "great_progress"  # >= 50%
    ALMOST_THERE = "almost_there"    # >= 75%
    ACHIEVED = "achieved"            # >= 100%


class Goal(BaseModel):
    """
    A savings target with an optional deadline.

    `current_amount` may be edited downward freely (un-achieving a goal is
    allowed); only quick-add saturates at `target_amount`.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique goal ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Goal title"
    )
    category: str = Field(
        default=GoalCategory.GENERAL.value,
        max_length=100,
        description="Goal label; usually one of GoalCategory, but any label is kept"
    )
    target_amount: Money = Field(
        ...,
        alias="targetAmount",
        gt=0,
        description="Amount to save"
    )
    current_amount: Money = Field(
        default=Decimal("0"),
        alias="currentAmount",
        ge=0,
        description="Amount saved so far"
    )
    deadline: Optional[date] = Field(
        default=None,
        description="Target date, if any"
    )
    image: Optional[str] = Field(
        default=None,
        description="Opaque image reference (URI)"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="Creation timestamp"
    )

    @field_validator('target_amount', 'current_amount', mode='before')
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        if v is None or v == "":
            return Decimal("0")
        return to_decimal(v)

    @field_validator('deadline', mode='before')
    @classmethod
    def parse_deadline(cls, v: Any) -> Optional[date]:
        """The app stores "" for 'no deadline'; full timestamps keep their date."""
        if v is None or v == "":
            return None
        if isinstance(v, date) and not isinstance(v, datetime):
            return v
        return normalize_timestamp(v).date()

    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v: Any) -> Any:
        if isinstance(v, GoalCategory):
            return v.value
        return v or GoalCategory.GENERAL.value

    @field_validator('created_at', mode='before')
    @classmethod
    def parse_created_at(cls, v: Any) -> datetime:
        return normalize_timestamp(v)

    @field_validator('image', mode='before')
    @classmethod
    def empty_image_is_none(cls, v: Any) -> Any:
        return v or None

    @property
    def remaining_amount(self) -> Decimal:
        """Amount still to save (never negative)."""
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def is_achieved(self) -> bool:
        return self.current_amount >= self.target_amount

    def to_record(self) -> dict:
        """Convert to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


class SavingsRequirement(BaseModel):
    """
    Savings pace needed to hit a goal's deadline.

    When `expired` is True (deadline today or past) there is no rate.
    """

    goal_id: str
    has_deadline: bool
    expired: bool = False
    days_remaining: Optional[int] = None
    per_day: Optional[Decimal] = None


class GoalsOverview(BaseModel):
    """Totals across all goals (goal screen header)."""

    total_saved: Decimal = Decimal("0")
    total_target: Decimal = Decimal("0")
    overall_progress: float = Field(default=0.0, ge=0.0, le=1.0)
    completed: int = Field(default=0, ge=0)
    urgent: int = Field(default=0, ge=0)


class GoalCard(BaseModel):
    """One goal with everything the goal grid shows next to it."""

    goal: Goal
    progress: float = Field(ge=0.0, le=1.0)
    status: GoalStatus
    milestone: GoalMilestone
    days_remaining: Optional[int] = None
    time_label: str
    requirement: SavingsRequirement
    monthly_target: Decimal
    urgent: bool = False
    almost_there: bool = False


class GoalBoard(BaseModel):
    """Goal screen: header totals plus one card per goal, in stored order."""

    overview: GoalsOverview = Field(default_factory=GoalsOverview)
    cards: list[GoalCard] = Field(default_factory=list)
