"""
Calculation library for the descent engine.

Pure functions operating on explicit inputs: scaled damage and heal values,
initiative and its tie-break order, SP regeneration, threat scoring, damage
and healing reduction, healing distribution and enemy stat scaling.

The level coefficient and enemy scaling tables are stored as integers
(tenths and hundredths) so that every result is computed exactly.
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from core.constants import (
    BASE_SP_REGEN,
    BUFF_STATUS_IDS,
    DEBUFF_STATUS_IDS,
    DEFEND_DAMAGE_REDUCTION_PERCENT,
    ENEMY_SCALING_HUNDREDTHS,
    LEVEL_VALUE_TENTHS,
    MIN_SP_REGEN,
    SP_PENALTY_PER_DEATH,
    Faction,
)
from core.utils import get_rng

if TYPE_CHECKING:
    from entities.combatant import Combatant
    from entities.definitions import BaseStats, ThreatWeights


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


# =============================================================================
# Scaling
# =============================================================================


def level_value_tenths(level: int) -> int:
    """Returns the level coefficient in tenths, extrapolating past the table."""
    if level in LEVEL_VALUE_TENTHS:
        return LEVEL_VALUE_TENTHS[level]
    # 1.0 + (level - 6) * 0.1, expressed in tenths.
    return 10 + (level - 6)


def level_value(level: int) -> float:
    """
    Returns the conviction coefficient for a level.

    Args:
        level (int): The combatant level.

    Returns:
        float: The coefficient (0.5 at level 1, 1.4 at level 10).

    """
    return level_value_tenths(level) / 10


def final_value(set_value: int, conviction: int, level: int) -> int:
    """
    Computes the final damage or heal number of an effect.

    The result is ``set_value + ceil(conviction * level_value(level))``,
    computed with integer arithmetic.

    Args:
        set_value (int): The base value of the effect.
        conviction (int): The conviction used for the roll.
        level (int): The level of the acting combatant.

    Returns:
        int: The final value.

    """
    return set_value + _ceil_div(conviction * level_value_tenths(level), 10)


def combo_conviction(participants: Sequence[Combatant]) -> int:
    """
    Computes the conviction used by a duo or trio ability.

    Args:
        participants (Sequence[Combatant]): The combo owners taking part.

    Returns:
        int: The ceiling of the mean conviction, 0 for no participants.

    """
    if not participants:
        return 0
    total = sum(p.stats.conviction for p in participants)
    return _ceil_div(total, len(participants))


# =============================================================================
# Initiative
# =============================================================================


def calculate_initiative(combatant: Combatant, speed_mod: int) -> int:
    """
    Computes the initiative of an action.

    Args:
        combatant (Combatant): The acting combatant.
        speed_mod (int): The speed modifier of the ability.

    Returns:
        int: Speed, plus haste, minus fractured, plus the ability modifier.

    """
    initiative = combatant.stats.speed
    if combatant.has_status("haste"):
        initiative += combatant.get_status_magnitude("haste")
    if combatant.has_status("fractured"):
        initiative -= combatant.get_status_magnitude("fractured")
    return initiative + speed_mod


def initiative_order_key(
    initiative: int,
    actor_id: str,
    actor: Combatant | None,
) -> tuple[int, int, int, str]:
    """
    Builds the sort key implementing the initiative total order.

    Higher initiative first, then players before enemies, then higher
    current HP, then actor id in lexicographic order. A missing actor
    sorts as a player with zero HP.

    Args:
        initiative (int): The action initiative.
        actor_id (str): The id of the acting combatant.
        actor (Combatant | None): The acting combatant, if still present.

    Returns:
        tuple[int, int, int, str]: An ascending sort key.

    """
    faction = actor.faction if actor else Faction.PLAYER
    current_hp = actor.stats.current_hp if actor else 0
    faction_rank = 0 if faction == Faction.PLAYER else 1
    return (-initiative, faction_rank, -current_hp, actor_id)


def compare_initiative(
    first: tuple[int, str, Combatant | None],
    second: tuple[int, str, Combatant | None],
) -> int:
    """
    Compares two (initiative, actor_id, actor) triples.

    Returns:
        int: Negative if ``first`` acts before ``second``, positive if after.

    """
    key_a = initiative_order_key(*first)
    key_b = initiative_order_key(*second)
    return (key_a > key_b) - (key_a < key_b)


# =============================================================================
# Resources
# =============================================================================


def calculate_sp_regen(total_active_members: int, dead_active_members: int) -> int:
    """
    Computes the SP regenerated at the start of each round.

    Args:
        total_active_members (int): Size of the active party. Accepted for
            future scaling, it does not change the result.
        dead_active_members (int): How many active members are dead.

    Returns:
        int: ``max(1, 6 - 3 * dead)``.

    """
    return max(MIN_SP_REGEN, BASE_SP_REGEN - SP_PENALTY_PER_DEATH * dead_active_members)


# =============================================================================
# Threat
# =============================================================================


def count_buffs(combatant: Combatant) -> int:
    return sum(1 for e in combatant.status_effects if e.status_id in BUFF_STATUS_IDS)


def count_debuffs(combatant: Combatant) -> int:
    return sum(1 for e in combatant.status_effects if e.status_id in DEBUFF_STATUS_IDS)


def calculate_threat(
    target: Combatant,
    weights: ThreatWeights,
    damage_dealt_last_round: Mapping[str, int],
    healing_done_last_round: Mapping[str, int],
    candidates: Sequence[Combatant],
) -> float:
    """
    Scores how attractive a target is to an enemy.

    Args:
        target (Combatant): The candidate target.
        weights (ThreatWeights): The enemy's targeting weights.
        damage_dealt_last_round (Mapping[str, int]): Damage per combatant id.
        healing_done_last_round (Mapping[str, int]): Healing per combatant id.
        candidates (Sequence[Combatant]): Every living candidate, used for
            the lowest-HP bonus.

    Returns:
        float: The weighted threat score.

    """
    threat = target.stats.current_hp * weights.current_hp
    threat += damage_dealt_last_round.get(target.id, 0) * weights.damage_dealt_last_round
    threat += healing_done_last_round.get(target.id, 0) * weights.healing_done_last_round
    if target.has_status("taunt"):
        threat += weights.has_taunt
    living = [c for c in candidates if c.is_alive]
    if living and target.stats.current_hp == min(c.stats.current_hp for c in living):
        threat += weights.is_lowest_hp
    threat += count_buffs(target) * weights.buff_count
    threat -= count_debuffs(target) * weights.debuff_count
    return threat


# =============================================================================
# Damage and Healing
# =============================================================================


def apply_damage_reduction(
    damage: int,
    target: Combatant,
    defend_active: bool,
    ignore_armor: bool = False,
) -> int:
    """
    Reduces incoming damage by armor and by the team-wide defend.

    Args:
        damage (int): The raw damage.
        target (Combatant): The combatant being hit.
        defend_active (bool): Whether the target's team is defending.
        ignore_armor (bool): Whether to skip the armor subtraction.

    Returns:
        int: The reduced damage, never negative.

    """
    reduced = damage
    if not ignore_armor and target.has_status("armor"):
        reduced = max(0, reduced - target.get_status_magnitude("armor"))
    if defend_active:
        reduced = reduced * (100 - DEFEND_DAMAGE_REDUCTION_PERCENT) // 100
    return reduced


def check_evasion(target: Combatant, rng: random.Random | None = None) -> bool:
    """
    Rolls the target's evasion status, if any.

    Args:
        target (Combatant): The combatant being attacked.
        rng (random.Random | None): An optional injected random source.

    Returns:
        bool: True if the attack is evaded.

    """
    if not target.has_status("evasion"):
        return False
    return get_rng(rng).random() < target.get_status_magnitude("evasion") / 100


def apply_healing_reduction(healing: int, target: Combatant) -> int:
    """Halves healing on terrified targets, then floors."""
    if target.has_status("terrified"):
        return healing // 2
    return healing


def distribute_healing(total: int, targets: Sequence[Combatant]) -> dict[str, int]:
    """
    Splits a healing pool across targets.

    Every target receives ``total // len(targets)``, and the remainder goes
    entirely to the first target found with the lowest current HP.

    Args:
        total (int): The healing pool.
        targets (Sequence[Combatant]): The targets, in iteration order.

    Returns:
        dict[str, int]: Healing per target id.

    """
    if not targets:
        return {}
    base, remainder = divmod(total, len(targets))
    distribution = {t.id: base for t in targets}
    if remainder > 0:
        lowest = targets[0]
        for candidate in targets[1:]:
            if candidate.stats.current_hp < lowest.stats.current_hp:
                lowest = candidate
        distribution[lowest.id] += remainder
    return distribution


def scale_enemy_stats(base: BaseStats, floor: int) -> BaseStats:
    """
    Scales enemy base stats for a floor.

    Args:
        base (BaseStats): The unscaled stats.
        floor (int): The floor number. Unknown floors use floor 1.

    Returns:
        BaseStats: A new stat block, each stat floored independently.

    """
    hp_mult, con_mult, spd_mult = ENEMY_SCALING_HUNDREDTHS.get(
        floor, ENEMY_SCALING_HUNDREDTHS[1]
    )
    return base.model_copy(
        update={
            "hp": base.hp * hp_mult // 100,
            "conviction": base.conviction * con_mult // 100,
            "speed": base.speed * spd_mult // 100,
        }
    )
