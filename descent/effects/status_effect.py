"""
Status effect module for the descent engine.

Defines the status applications carried by ability effects and the active
status effects tracked on each combatant.
"""

from core.constants import (
    BUFF_STATUS_IDS,
    DAMAGE_OVER_TIME_IDS,
    DEBUFF_STATUS_IDS,
    HEALING_OVER_TIME_IDS,
)
from pydantic import BaseModel, Field


class StatusEffectApplication(BaseModel):
    """A status effect an ability applies to each of its targets."""

    status_id: str = Field(description="The id of the status, e.g. 'poison'.")
    duration: int = Field(description="Duration in rounds.")
    magnitude: int | None = Field(
        None,
        description="Strength of the status. None keeps the existing magnitude.",
    )


class ActiveStatusEffect(BaseModel):
    """A status effect currently affecting a combatant."""

    status_id: str = Field(description="The id of the status.")
    duration: int = Field(description="Remaining rounds.")
    magnitude: int = Field(0, description="Strength of the status.")
    source: str = Field("", description="The ability or item that applied it.")

    @property
    def is_buff(self) -> bool:
        return self.status_id in BUFF_STATUS_IDS

    @property
    def is_debuff(self) -> bool:
        return self.status_id in DEBUFF_STATUS_IDS

    @property
    def tick_damage(self) -> int:
        """Damage dealt by this status at the round boundary."""
        return self.magnitude if self.status_id in DAMAGE_OVER_TIME_IDS else 0

    @property
    def tick_healing(self) -> int:
        """Healing granted by this status at the round boundary."""
        return self.magnitude if self.status_id in HEALING_OVER_TIME_IDS else 0

    @property
    def color(self) -> str:
        if self.is_buff:
            return "bold green"
        if self.is_debuff:
            return "bold red"
        return "dim white"

    @property
    def colored_name(self) -> str:
        return f"[{self.color}]{self.status_id}({self.duration})[/]"
