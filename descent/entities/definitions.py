"""
Catalog record models for characters and enemies.

Defines the read-only definitions loaded from the character roster and the
enemy/boss roster, including the AI profile that drives enemy decisions.
"""

from typing import Any

from pydantic import BaseModel, Field


class BaseStats(BaseModel):
    """Unscaled stat block of a character or enemy definition."""

    hp: int = Field(description="Maximum hit points.", ge=1)
    conviction: int = Field(description="Damage and heal scaling stat (CON).", ge=0)
    speed: int = Field(description="Speed stat feeding initiative (SPD).")


class CharacterDefinition(BaseModel):
    """A playable character from the roster."""

    id: str = Field(description="Unique character id.")
    name: str = Field(description="Display name.")
    role: str = Field("", description="Party role, e.g. tank or healer.")
    base_stats: BaseStats = Field(description="Unscaled stats.")
    ability_ids: list[str] = Field(
        default_factory=list,
        description="Ids of the single-owner abilities this character knows.",
    )


class ThreatWeights(BaseModel):
    """Weights of the linear threat score used by enemy targeting."""

    current_hp: float = Field(0.3, description="Weight per point of current HP.")
    damage_dealt_last_round: float = Field(
        1.0, description="Weight per point of damage dealt last round."
    )
    healing_done_last_round: float = Field(
        1.2, description="Weight per point of healing done last round."
    )
    has_taunt: float = Field(999.0, description="Bonus when the target is taunting.")
    is_lowest_hp: float = Field(0.5, description="Bonus for the lowest-HP target.")
    buff_count: float = Field(0.2, description="Weight per active buff.")
    debuff_count: float = Field(-0.1, description="Weight subtracted per active debuff.")


class HpContext(BaseModel):
    """Triggers when a combatant's HP drops below a percentage."""

    threshold: int = Field(30, description="HP percentage that triggers the context.")


class BuffContext(BaseModel):
    """Triggers when a living player carries many buffs."""

    threshold: int = Field(2, description="Buff count that triggers the context.")


class AbilityWeights(BaseModel):
    """Contextual thresholds for enemy ability selection."""

    self_hp_low: HpContext = Field(default_factory=HpContext)
    ally_hp_low: HpContext = Field(default_factory=HpContext)
    target_many_buffs: BuffContext = Field(default_factory=BuffContext)


class AIProfile(BaseModel):
    """Targeting and ability weights of an enemy."""

    targeting_weights: ThreatWeights = Field(default_factory=ThreatWeights)
    ability_weights: AbilityWeights = Field(default_factory=AbilityWeights)


class EnemyDefinition(BaseModel):
    """A common enemy or a boss from the enemy roster."""

    id: str = Field(description="Unique enemy id.")
    name: str = Field(description="Display name.")
    base_stats: BaseStats = Field(description="Unscaled stats.")
    ability_ids: list[str] = Field(
        default_factory=list,
        description="Ids of the enemy abilities this enemy can use.",
    )
    ai_profile: AIProfile = Field(default_factory=AIProfile)
    is_boss: bool = Field(False, description="Whether this enemy guards a floor.")
    floor: int | None = Field(
        None,
        description="The floor a boss guards. None for common enemies.",
    )

    def model_post_init(self, _: Any) -> None:
        if self.is_boss and self.floor is None:
            raise ValueError(f"Boss '{self.id}' must declare the floor it guards.")
