"""
Combat action module for the descent engine.

Defines the transient queued action and the result of resolving it.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field


def new_action_id() -> str:
    return f"action_{uuid.uuid4().hex[:12]}"


class CombatAction(BaseModel):
    """An action waiting in the round queue."""

    action_id: str = Field(
        default_factory=new_action_id,
        description="Unique id assigned when the action is generated.",
    )
    ability_id: str = Field(description="The ability to resolve, or the defend sentinel.")
    actor_id: str = Field(description="The primary actor, whose initiative is used.")
    actor_ids: list[str] = Field(
        default_factory=list,
        description="Every participating actor. Combo owners for duo/trio abilities.",
    )
    target_ids: list[str] = Field(
        default_factory=list,
        description="Explicit targets. Ignored by self and area target types.",
    )
    initiative: int = Field(0, description="Initiative computed when queued.")

    def model_post_init(self, _: Any) -> None:
        if not self.actor_ids:
            self.actor_ids = [self.actor_id]


class ActionResult(BaseModel):
    """The outcome of resolving one action."""

    success: bool = Field(description="False for soft failures and fizzles.")
    log: list[str] = Field(
        default_factory=list,
        description="Human-readable lines, in the order events happened.",
    )
    damage_per_target: dict[str, int] = Field(
        default_factory=dict,
        description="HP lost per target id.",
    )
    healing_per_target: dict[str, int] = Field(
        default_factory=dict,
        description="HP restored per target id.",
    )

    def add_damage(self, target_id: str, amount: int) -> None:
        if amount > 0:
            self.damage_per_target[target_id] = self.damage_per_target.get(target_id, 0) + amount

    def add_healing(self, target_id: str, amount: int) -> None:
        if amount > 0:
            self.healing_per_target[target_id] = self.healing_per_target.get(target_id, 0) + amount

    @property
    def total_damage(self) -> int:
        return sum(self.damage_per_target.values())

    @property
    def total_healing(self) -> int:
        return sum(self.healing_per_target.values())
