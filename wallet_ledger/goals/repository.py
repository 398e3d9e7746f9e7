"""
Goal Repository

Persists savings goals under their own store key. Goals never touch
wallets or transactions, and this repository shares no writer (or lock)
with the ledger repository.
"""

import asyncio
from datetime import date
from typing import Any, Optional, Union

from pydantic import ValidationError

from wallet_ledger.audit import AuditLogger, create_correlation_id
from wallet_ledger.errors import (
    InvalidInputError,
    LedgerError,
    NotFoundError,
    StoreUnavailableError,
    summarize_validation_error,
)
from wallet_ledger.goals import calculator
from wallet_ledger.models.audit import AuditEventBuilder, AuditEventType
from wallet_ledger.models.goal import Goal
from wallet_ledger.models.results import OperationResult
from wallet_ledger.services.storage.collections import read_collection, write_collection
from wallet_ledger.services.storage.interface import GOALS_KEY, StoreAdapter


class GoalRepository:
    """
    CRUD for savings goals, plus quick-add.

    Like the ledger repository, every mutation re-reads the stored list,
    writes the whole list back and then refreshes `goals`.
    """

    def __init__(
        self,
        store: StoreAdapter,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._lock = asyncio.Lock()
        self._goals: list[Goal] = []
        # Stored records that failed validation, written back untouched
        self._unreadable: list = []

    @property
    def goals(self) -> list[Goal]:
        return [g.model_copy() for g in self._goals]

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        for goal in self._goals:
            if goal.id == goal_id:
                return goal.model_copy()
        return None

    async def load_goals(self) -> list[Goal]:
        """
        Read all goals. Malformed records are skipped with a warning but
        stay in the store: save_goals writes them back as they were.

        Raises:
            StoreUnavailableError: If the store raised or holds something
                other than a JSON array
        """
        goals: list[Goal] = []
        unreadable: list = []
        for index, record in enumerate(await read_collection(self._store, GOALS_KEY)):
            try:
                goals.append(Goal.model_validate(record))
            except ValidationError as e:
                await self._audit.log_record_skipped(GOALS_KEY, index, summarize_validation_error(e))
                unreadable.append(record)
        self._unreadable = unreadable
        return goals

    async def save_goals(self, goals: list[Goal]) -> None:
        await write_collection(
            self._store, GOALS_KEY, [g.to_record() for g in goals] + self._unreadable
        )

    async def reload(self) -> OperationResult[list[Goal]]:
        """Refresh `goals` from the store; an unreadable store leaves it empty."""
        async with self._lock:
            try:
                self._goals = await self.load_goals()
            except StoreUnavailableError as e:
                await self._audit.log_store_unavailable(e.key, e.message)
                self._goals = []
                return OperationResult.fail(e, value=[])
            return OperationResult.ok(self.goals)

    async def create_goal(
        self,
        title: str,
        target_amount: Any,
        current_amount: Any = 0,
        deadline: Union[date, str, None] = None,
        category: Optional[str] = None,
        image: Optional[str] = None,
    ) -> OperationResult[Goal]:
        correlation_id = create_correlation_id()
        async with self._lock:
            try:
                goal = self._validate(
                    {
                        "title": title,
                        "target_amount": target_amount,
                        "current_amount": current_amount,
                        "deadline": deadline,
                        "category": category,
                        "image": image,
                    }
                )
                goals = await self.load_goals() + [goal]
                await self.save_goals(goals)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "create_goal", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)
            self._goals = goals

        await self._audit.log(
            AuditEventBuilder.goal_changed(
                AuditEventType.GOAL_CREATED,
                goal.id,
                goal.title,
                {"target_amount": str(goal.target_amount)},
                correlation_id,
            )
        )
        return OperationResult.ok(goal.model_copy())

    async def update_goal(
        self,
        goal_id: str,
        title: Optional[str] = None,
        target_amount: Any = None,
        current_amount: Any = None,
        deadline: Union[date, str, None] = None,
        category: Optional[str] = None,
        image: Optional[str] = None,
    ) -> OperationResult[Goal]:
        """
        Edit a goal. None leaves a field unchanged; deadline="" removes
        the deadline. current_amount may be lowered freely.
        """
        correlation_id = create_correlation_id()
        changes = {
            key: value
            for key, value in {
                "title": title,
                "target_amount": target_amount,
                "current_amount": current_amount,
                "deadline": deadline,
                "category": category,
                "image": image,
            }.items()
            if value is not None
        }

        async with self._lock:
            try:
                goals = await self.load_goals()
                index = self._index_of(goals, goal_id)
                updated = self._validate({**goals[index].model_dump(), **changes})
                goals[index] = updated
                await self.save_goals(goals)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "update_goal", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)
            self._goals = goals

        await self._audit.log(
            AuditEventBuilder.goal_changed(
                AuditEventType.GOAL_UPDATED,
                updated.id,
                updated.title,
                {key: str(value) for key, value in changes.items()},
                correlation_id,
            )
        )
        return OperationResult.ok(updated.model_copy())

    async def delete_goal(self, goal_id: str) -> OperationResult:
        """Remove a goal. An unknown id succeeds and changes nothing."""
        correlation_id = create_correlation_id()
        async with self._lock:
            try:
                goals = await self.load_goals()
                remaining = [g for g in goals if g.id != goal_id]
                if len(remaining) == len(goals):
                    self._goals = goals
                    return OperationResult.ok(None)
                await self.save_goals(remaining)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "delete_goal", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)
            self._goals = remaining

        removed = next(g for g in goals if g.id == goal_id)
        await self._audit.log(
            AuditEventBuilder.goal_changed(
                AuditEventType.GOAL_DELETED, removed.id, removed.title, None, correlation_id
            )
        )
        return OperationResult.ok(None)

    async def add_to_savings(self, goal_id: str, amount: Any) -> OperationResult[Goal]:
        """Quick-add: increase current_amount, never past target_amount."""
        correlation_id = create_correlation_id()
        async with self._lock:
            try:
                goals = await self.load_goals()
                index = self._index_of(goals, goal_id)
                before = goals[index]
                after = calculator.add_to_savings(before, amount)
                goals[index] = after
                await self.save_goals(goals)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "add_to_savings", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)
            self._goals = goals

        await self._audit.log(
            AuditEventBuilder.savings_added(
                goal_id=goal_id,
                requested=str(amount),
                applied=str(after.current_amount - before.current_amount),
                current=str(after.current_amount),
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(after.model_copy())

    @staticmethod
    def _index_of(goals: list[Goal], goal_id: str) -> int:
        for index, goal in enumerate(goals):
            if goal.id == goal_id:
                return index
        raise NotFoundError("goal", goal_id)

    @staticmethod
    def _validate(data: dict) -> Goal:
        try:
            return Goal.model_validate(data)
        except ValidationError as e:
            raise InvalidInputError(summarize_validation_error(e)) from e
