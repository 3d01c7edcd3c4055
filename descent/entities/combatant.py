"""
Combatant module for the descent engine.

Defines the stat block and the Combatant model shared by party members and
enemies. Every HP mutation goes through the methods defined here so that the
HP bounds and the alive flag always stay consistent.
"""

from typing import Any

from core.constants import Faction
from core.utils import make_bar
from effects.status_effect import ActiveStatusEffect
from pydantic import BaseModel, Field


class CombatantStats(BaseModel):
    """Live stat block of a combatant."""

    hp: int = Field(description="Base hit points the combatant was created with.")
    max_hp: int = Field(description="Maximum hit points.")
    current_hp: int = Field(description="Current hit points.")
    conviction: int = Field(description="Damage and heal scaling stat (CON).")
    speed: int = Field(description="Speed stat feeding initiative (SPD).")


class Combatant(BaseModel):
    """A party member or an enemy taking part in combat."""

    id: str = Field(description="Unique instance id.")
    name: str = Field(description="Display name.")
    faction: Faction = Field(description="The side this combatant fights for.")
    character_id: str | None = Field(
        None, description="Roster id of the character, for party members."
    )
    enemy_id: str | None = Field(
        None, description="Roster id of the enemy or boss, for enemies."
    )
    stats: CombatantStats = Field(description="Live stats.")
    level: int = Field(1, description="Level used by the conviction coefficient.")
    status_effects: list[ActiveStatusEffect] = Field(
        default_factory=list,
        description="Active status effects, in application order.",
    )
    is_alive: bool = Field(True, description="Mirrors current_hp > 0.")
    cooldowns: dict[str, int] = Field(
        default_factory=dict,
        description="Remaining cooldown rounds per ability id.",
    )

    def model_post_init(self, _: Any) -> None:
        if self.stats.max_hp < 1:
            raise ValueError(f"Combatant '{self.id}' must have positive max HP.")
        self.set_current_hp(self.stats.current_hp)

    # ============================================================================
    # HP MANAGEMENT
    # ============================================================================

    def set_current_hp(self, value: int) -> None:
        """Sets current HP, clamped to [0, max_hp], and syncs the alive flag."""
        self.stats.current_hp = max(0, min(self.stats.max_hp, value))
        self.is_alive = self.stats.current_hp > 0

    def take_damage(self, amount: int) -> int:
        """
        Applies damage to the combatant.

        Args:
            amount (int): The damage to apply.

        Returns:
            int: The HP actually lost.

        """
        before = self.stats.current_hp
        self.set_current_hp(before - max(0, amount))
        return before - self.stats.current_hp

    def heal(self, amount: int) -> int:
        """
        Restores HP, never past the maximum. Fallen combatants are not healed.

        Args:
            amount (int): The healing to apply.

        Returns:
            int: The HP actually restored.

        """
        if not self.is_alive:
            return 0
        before = self.stats.current_hp
        self.set_current_hp(before + max(0, amount))
        return self.stats.current_hp - before

    def full_heal(self) -> int:
        return self.heal(self.stats.max_hp)

    @property
    def hp_ratio(self) -> float:
        return self.stats.current_hp / self.stats.max_hp

    @property
    def hp_percent(self) -> float:
        return self.hp_ratio * 100

    # ============================================================================
    # STATUS QUERIES
    # ============================================================================

    def get_status(self, status_id: str) -> ActiveStatusEffect | None:
        for effect in self.status_effects:
            if effect.status_id == status_id:
                return effect
        return None

    def has_status(self, status_id: str) -> bool:
        return self.get_status(status_id) is not None

    def get_status_magnitude(self, status_id: str) -> int:
        effect = self.get_status(status_id)
        return effect.magnitude if effect else 0

    # ============================================================================
    # DISPLAY
    # ============================================================================

    @property
    def colored_name(self) -> str:
        return self.faction.colorize(self.name)

    def get_status_line(self, show_bar: bool = True) -> str:
        """
        Builds a one-line rich summary of the combatant.

        Args:
            show_bar (bool): Whether to include the HP bar.

        Returns:
            str: The formatted status line.

        """
        hp = f"{self.stats.current_hp}/{self.stats.max_hp}"
        parts = [f"{self.faction.emoji} {self.colored_name:<32}"]
        if show_bar:
            parts.append(make_bar(self.stats.current_hp, self.stats.max_hp, color="green"))
        parts.append(f"HP {hp:>9}")
        if not self.is_alive:
            parts.append("[dim]defeated[/]")
        if self.status_effects:
            parts.append(" ".join(e.colored_name for e in self.status_effects))
        return " ".join(parts)
