"""
Status effect ledger for the descent engine.

Ticks, stacks and cancels the status effects of combatants, and manages the
per-ability cooldown counters stored next to them.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

from core.constants import DEBUFF_STATUS_IDS, DISPELLABLE_BUFF_IDS, OPPOSITE_STATUS_PAIRS
from core.logging import log_debug
from pydantic import BaseModel, Field

from .status_effect import ActiveStatusEffect, StatusEffectApplication

if TYPE_CHECKING:
    from entities.combatant import Combatant


class StatusTickResult(BaseModel):
    """What a round-boundary tick did to one combatant."""

    combatant_id: str = Field(description="The ticked combatant.")
    damage: int = Field(0, description="HP lost to damage-over-time statuses.")
    healing: int = Field(0, description="HP restored by healing-over-time statuses.")
    expired: list[str] = Field(
        default_factory=list,
        description="Status ids that ran out during this tick.",
    )


# =============================================================================
# Round Tick
# =============================================================================


def tick_status_effects(combatant: "Combatant") -> StatusTickResult:
    """
    Runs one round-boundary tick on a combatant.

    Passive damage and healing are summed from the pre-tick magnitudes and
    applied once each, damage first. Then every duration drops by one and
    expired effects are removed.

    Args:
        combatant (Combatant): The combatant to tick.

    Returns:
        StatusTickResult: The HP changes and expired statuses.

    """
    result = StatusTickResult(combatant_id=combatant.id)
    if not combatant.is_alive:
        return result

    total_damage = sum(e.tick_damage for e in combatant.status_effects)
    total_healing = sum(e.tick_healing for e in combatant.status_effects)

    if total_damage > 0:
        result.damage = combatant.take_damage(total_damage)
    if total_healing > 0:
        result.healing = combatant.heal(total_healing)

    remaining: list[ActiveStatusEffect] = []
    for effect in combatant.status_effects:
        effect.duration -= 1
        if effect.duration > 0:
            remaining.append(effect)
        else:
            result.expired.append(effect.status_id)
    combatant.status_effects = remaining

    if result.damage or result.healing or result.expired:
        log_debug(
            f"Status tick on {combatant.name}",
            {
                "damage": result.damage,
                "healing": result.healing,
                "expired": ",".join(result.expired) or "-",
            },
        )
    return result


def process_status_effects(combatants: Iterable["Combatant"]) -> list[StatusTickResult]:
    """Ticks every living combatant, returning one result per ticked combatant."""
    return [tick_status_effects(c) for c in combatants if c.is_alive]


# =============================================================================
# Application and Cancellation
# =============================================================================


def apply_status_effect(
    combatant: "Combatant",
    application: StatusEffectApplication,
    source: str = "",
) -> None:
    """
    Applies a status effect to a combatant.

    Reapplying a status resets its duration to the incoming value, even if
    shorter, and keeps the larger magnitude. After every application, the
    opposite pairs (haste/fractured, empowered/weakened) annihilate.

    Args:
        combatant (Combatant): The receiving combatant.
        application (StatusEffectApplication): What to apply.
        source (str): The ability or item applying it.

    """
    existing = combatant.get_status(application.status_id)
    if existing:
        existing.duration = application.duration
        incoming = application.magnitude
        if incoming is not None:
            existing.magnitude = max(existing.magnitude, incoming)
    else:
        combatant.status_effects.append(
            ActiveStatusEffect(
                status_id=application.status_id,
                duration=application.duration,
                magnitude=application.magnitude or 0,
                source=source,
            )
        )
    cancel_opposite_effects(combatant)


def cancel_opposite_effects(combatant: "Combatant") -> list[str]:
    """Removes both members of every opposite pair present on the combatant."""
    cancelled: list[str] = []
    for first, second in OPPOSITE_STATUS_PAIRS:
        if combatant.has_status(first) and combatant.has_status(second):
            cancelled.extend((first, second))
    if cancelled:
        combatant.status_effects = [
            e for e in combatant.status_effects if e.status_id not in cancelled
        ]
        log_debug(f"Cancelled opposite statuses on {combatant.name}: {cancelled}")
    return cancelled


# =============================================================================
# Removal
# =============================================================================


def remove_all_debuffs(combatant: "Combatant") -> list[str]:
    """Removes every debuff, returning the removed ids."""
    removed = [e.status_id for e in combatant.status_effects if e.status_id in DEBUFF_STATUS_IDS]
    combatant.status_effects = [
        e for e in combatant.status_effects if e.status_id not in DEBUFF_STATUS_IDS
    ]
    return removed


def remove_debuffs(combatant: "Combatant", count: int) -> list[str]:
    """Removes up to ``count`` debuffs, oldest first."""
    removed: list[str] = []
    kept: list[ActiveStatusEffect] = []
    for effect in combatant.status_effects:
        if effect.status_id in DEBUFF_STATUS_IDS and len(removed) < count:
            removed.append(effect.status_id)
        else:
            kept.append(effect)
    combatant.status_effects = kept
    return removed


def remove_all_buffs(combatant: "Combatant") -> list[str]:
    """Removes every dispellable buff, taunt included."""
    removed = [
        e.status_id for e in combatant.status_effects if e.status_id in DISPELLABLE_BUFF_IDS
    ]
    combatant.status_effects = [
        e for e in combatant.status_effects if e.status_id not in DISPELLABLE_BUFF_IDS
    ]
    return removed


def remove_buffs(combatant: "Combatant", count: int) -> list[str]:
    """Removes up to ``count`` dispellable buffs, oldest first."""
    removed: list[str] = []
    kept: list[ActiveStatusEffect] = []
    for effect in combatant.status_effects:
        if effect.status_id in DISPELLABLE_BUFF_IDS and len(removed) < count:
            removed.append(effect.status_id)
        else:
            kept.append(effect)
    combatant.status_effects = kept
    return removed


def clear_status_effects(combatant: "Combatant") -> None:
    combatant.status_effects = []


def has_status(combatant: "Combatant", status_id: str) -> bool:
    return combatant.has_status(status_id)


def get_status_magnitude(combatant: "Combatant", status_id: str) -> int:
    return combatant.get_status_magnitude(status_id)


# =============================================================================
# Cooldowns
# =============================================================================


def tick_cooldowns(combatant: "Combatant") -> None:
    """Decrements every cooldown by one and drops those reaching zero."""
    combatant.cooldowns = {
        ability_id: rounds - 1
        for ability_id, rounds in combatant.cooldowns.items()
        if rounds - 1 > 0
    }


def reduce_cooldowns(combatant: "Combatant", amount: int) -> None:
    """Decrements every cooldown by ``amount`` and drops those reaching zero."""
    combatant.cooldowns = {
        ability_id: rounds - amount
        for ability_id, rounds in combatant.cooldowns.items()
        if rounds - amount > 0
    }


def reset_all_cooldowns(combatant: "Combatant") -> None:
    combatant.cooldowns = {}


def is_on_cooldown(combatant: "Combatant", ability_id: str) -> bool:
    return combatant.cooldowns.get(ability_id, 0) > 0


def set_cooldown(combatant: "Combatant", ability_id: str, rounds: int) -> None:
    """Stores a cooldown. Values of zero or less are ignored."""
    if rounds > 0:
        combatant.cooldowns[ability_id] = rounds
