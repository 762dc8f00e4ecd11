"""
Budget and Savings Goal Manager

Plain CRUD over budgets and savings goals. Neither collection has any
link to account balances; each is persisted on its own key.
"""

from typing import Optional, Union

from pydantic import BaseModel

from finance_ledger.ledger.engine import IdFactory, new_id
from finance_ledger.ledger.state import CollectionKey, LedgerState
from finance_ledger.models import (
    ActivityEventBuilder,
    Budget,
    BudgetDraft,
    BudgetUpdate,
    OperationResult,
    PartialUpdate,
    SavingsGoal,
    SavingsGoalDraft,
    SavingsGoalUpdate,
)


# entity_type -> (state attribute, store key)
_COLLECTIONS = {
    "budget": ("budgets", CollectionKey.BUDGETS),
    "savings_goal": ("savings_goals", CollectionKey.SAVINGS_GOALS),
}


class PlanningService:
    """Create, update and delete budgets and savings goals."""

    def __init__(
        self,
        state: LedgerState,
        id_factory: Optional[IdFactory] = None,
    ):
        self._state = state
        self._new_id = id_factory or new_id

    async def _add(self, entity_type: str, entity: BaseModel) -> None:
        attr, key = _COLLECTIONS[entity_type]
        setattr(self._state, attr, [*getattr(self._state, attr), entity])
        await self._state.persist(key)
        self._state.activity.log(
            ActivityEventBuilder.planning_changed(entity_type, "added", entity.id)
        )

    async def _update(
        self,
        entity_type: str,
        entity_id: str,
        update: PartialUpdate,
    ) -> OperationResult:
        attr, key = _COLLECTIONS[entity_type]
        items = getattr(self._state, attr)
        if not any(item.id == entity_id for item in items):
            self._state.activity.log_reference_not_found(
                entity_type, entity_id, f"update_{entity_type}"
            )
            return OperationResult.not_found(entity_id, entity_type.replace("_", " "))

        changes = update.changes()
        setattr(self._state, attr, [
            item.model_copy(update=changes) if item.id == entity_id else item
            for item in items
        ])
        await self._state.persist(key)
        self._state.activity.log(
            ActivityEventBuilder.planning_changed(entity_type, "updated", entity_id)
        )
        return OperationResult.success(entity_id)

    async def _delete(self, entity_type: str, entity_id: str) -> OperationResult:
        attr, key = _COLLECTIONS[entity_type]
        items = getattr(self._state, attr)
        remaining = [item for item in items if item.id != entity_id]
        if len(remaining) == len(items):
            self._state.activity.log_reference_not_found(
                entity_type, entity_id, f"delete_{entity_type}"
            )
            return OperationResult.not_found(entity_id, entity_type.replace("_", " "))

        setattr(self._state, attr, remaining)
        await self._state.persist(key)
        self._state.activity.log(
            ActivityEventBuilder.planning_changed(entity_type, "deleted", entity_id)
        )
        return OperationResult.success(entity_id)

    # Budgets

    async def add_budget(self, draft: Union[BudgetDraft, dict]) -> Budget:
        if not isinstance(draft, BudgetDraft):
            draft = BudgetDraft.model_validate(draft)
        budget = Budget(id=self._new_id(), **draft.model_dump())
        await self._add("budget", budget)
        return budget

    async def update_budget(
        self,
        budget_id: str,
        update: Union[BudgetUpdate, dict],
    ) -> OperationResult:
        if not isinstance(update, BudgetUpdate):
            update = BudgetUpdate.model_validate(update)
        return await self._update("budget", budget_id, update)

    async def delete_budget(self, budget_id: str) -> OperationResult:
        return await self._delete("budget", budget_id)

    # Savings goals

    async def add_savings_goal(self, draft: Union[SavingsGoalDraft, dict]) -> SavingsGoal:
        if not isinstance(draft, SavingsGoalDraft):
            draft = SavingsGoalDraft.model_validate(draft)
        goal = SavingsGoal(id=self._new_id(), **draft.model_dump())
        await self._add("savings_goal", goal)
        return goal

    async def update_savings_goal(
        self,
        goal_id: str,
        update: Union[SavingsGoalUpdate, dict],
    ) -> OperationResult:
        if not isinstance(update, SavingsGoalUpdate):
            update = SavingsGoalUpdate.model_validate(update)
        return await self._update("savings_goal", goal_id, update)

    async def delete_savings_goal(self, goal_id: str) -> OperationResult:
        return await self._delete("savings_goal", goal_id)
