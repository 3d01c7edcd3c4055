"""
Enemy AI module for the descent engine.

Chooses an ability for each living enemy through tag-based contextual
weights, then picks its target by threat score.
"""

import random
from collections.abc import Mapping, Sequence

from actions.ability import Ability
from actions.combat_action import CombatAction
from core.calculations import calculate_initiative, calculate_threat, count_buffs
from core.constants import TargetType
from core.content import ContentRepository
from core.logging import log_debug
from core.utils import weighted_choice
from effects.status_ledger import is_on_cooldown
from entities.combatant import Combatant
from entities.definitions import AIProfile
from pydantic import BaseModel, Field

# Multipliers applied to ability weights when a context is active.
SELF_LOW_DEFENSIVE_MULT = 3.0
SELF_LOW_HEALING_MULT = 4.0
ALLY_LOW_HEALING_MULT = 5.0
ALLY_LOW_BUFF_MULT = 2.0
MANY_BUFFS_DEBUFF_MULT = 3.0
MANY_BUFFS_HIGH_DAMAGE_MULT = 2.0

HIGH_DAMAGE_TAGS: tuple[str, ...] = ("burst", "ultimate")


# =============================================================================
# Support Functions
# =============================================================================


class AbilityContext(BaseModel):
    """The battlefield conditions an enemy weighs its abilities against."""

    self_hp_low: bool = Field(False, description="The enemy is below its HP threshold.")
    ally_hp_low: bool = Field(
        False, description="Another living enemy is below the HP threshold."
    )
    target_many_buffs: bool = Field(
        False, description="Some living player carries many buffs."
    )


def _profile_of(enemy: Combatant) -> AIProfile:
    if enemy.enemy_id is None:
        return AIProfile()
    return ContentRepository().get_enemy(enemy.enemy_id).ai_profile


def read_context(
    enemy: Combatant,
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
    profile: AIProfile,
) -> AbilityContext:
    """
    Evaluates the three contexts that bias ability selection.

    Args:
        enemy (Combatant): The enemy choosing an action.
        players (Sequence[Combatant]): The party roster.
        enemies (Sequence[Combatant]): The enemy roster.
        profile (AIProfile): The enemy's AI profile, for thresholds.

    Returns:
        AbilityContext: Which contexts are active.

    """
    weights = profile.ability_weights
    self_threshold = weights.self_hp_low.threshold
    ally_threshold = weights.ally_hp_low.threshold
    buff_threshold = weights.target_many_buffs.threshold
    return AbilityContext(
        self_hp_low=enemy.hp_percent < self_threshold,
        ally_hp_low=any(
            e.is_alive and e.id != enemy.id and e.hp_percent < ally_threshold
            for e in enemies
        ),
        target_many_buffs=any(
            p.is_alive and count_buffs(p) >= buff_threshold for p in players
        ),
    )


def ability_weight(ability: Ability, context: AbilityContext) -> float:
    """
    Computes the selection weight of one ability.

    Args:
        ability (Ability): The candidate ability.
        context (AbilityContext): The active contexts.

    Returns:
        float: The weight, starting at 1.0.

    """
    weight = 1.0
    if context.self_hp_low:
        if ability.has_tag("defensive"):
            weight *= SELF_LOW_DEFENSIVE_MULT
        if ability.has_tag("healing"):
            weight *= SELF_LOW_HEALING_MULT
    if context.ally_hp_low:
        if ability.has_tag("healing"):
            weight *= ALLY_LOW_HEALING_MULT
        if ability.has_tag("buff"):
            weight *= ALLY_LOW_BUFF_MULT
    if context.target_many_buffs:
        if ability.has_tag("debuff", "dispel"):
            weight *= MANY_BUFFS_DEBUFF_MULT
        if ability.has_tag(*HIGH_DAMAGE_TAGS):
            weight *= MANY_BUFFS_HIGH_DAMAGE_MULT
    return weight


# =============================================================================
# Public API
# =============================================================================


def get_available_enemy_abilities(enemy: Combatant) -> list[Ability]:
    """Returns the enemy's own abilities that are off cooldown."""
    if enemy.enemy_id is None:
        return []
    repo = ContentRepository()
    definition = repo.get_enemy(enemy.enemy_id)
    return [
        repo.get_enemy_ability(ability_id)
        for ability_id in definition.ability_ids
        if not is_on_cooldown(enemy, ability_id)
    ]


def choose_enemy_ability(
    enemy: Combatant,
    abilities: Sequence[Ability],
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
    rng: random.Random | None = None,
) -> Ability:
    """
    Picks an ability by weighted random choice.

    Args:
        enemy (Combatant): The enemy choosing an action.
        abilities (Sequence[Ability]): Its available abilities, non-empty.
        players (Sequence[Combatant]): The party roster.
        enemies (Sequence[Combatant]): The enemy roster.
        rng (random.Random | None): An optional injected random source.

    Returns:
        Ability: The chosen ability.

    """
    context = read_context(enemy, players, enemies, _profile_of(enemy))
    weights = [ability_weight(ability, context) for ability in abilities]
    return weighted_choice(abilities, weights, rng)


def choose_enemy_target(
    enemy: Combatant,
    ability: Ability,
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
    damage_last_round: Mapping[str, int],
    healing_last_round: Mapping[str, int],
) -> Combatant | None:
    """
    Picks the target of an enemy ability.

    Ally-targeting abilities go to the living ally with the lowest HP ratio,
    the enemy itself included. Everything else goes to the living player
    with the highest threat score; the first maximum found wins.

    Args:
        enemy (Combatant): The acting enemy.
        ability (Ability): The chosen ability.
        players (Sequence[Combatant]): The party roster.
        enemies (Sequence[Combatant]): The enemy roster.
        damage_last_round (Mapping[str, int]): Damage dealt per combatant id
            during the previous round.
        healing_last_round (Mapping[str, int]): Healing done per combatant id
            during the previous round.

    Returns:
        Combatant | None: The target, or None when no player is alive.

    """
    living_players = [p for p in players if p.is_alive]
    if not living_players:
        return None

    if ability.target_type == TargetType.SINGLE_ALLY:
        living_allies = [e for e in enemies if e.is_alive] or [enemy]
        return min(living_allies, key=lambda e: e.hp_ratio)

    weights = _profile_of(enemy).targeting_weights
    best: Combatant | None = None
    best_threat = float("-inf")
    for player in living_players:
        threat = calculate_threat(
            player,
            weights,
            damage_last_round,
            healing_last_round,
            living_players,
        )
        if threat > best_threat:
            best, best_threat = player, threat
    return best


def plan_enemy_action(
    enemy: Combatant,
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
    damage_last_round: Mapping[str, int],
    healing_last_round: Mapping[str, int],
    rng: random.Random | None = None,
) -> CombatAction | None:
    """
    Builds the action a living enemy takes this round.

    Args:
        enemy (Combatant): The acting enemy.
        players (Sequence[Combatant]): The party roster.
        enemies (Sequence[Combatant]): The enemy roster.
        damage_last_round (Mapping[str, int]): Damage per combatant id.
        healing_last_round (Mapping[str, int]): Healing per combatant id.
        rng (random.Random | None): An optional injected random source.

    Returns:
        CombatAction | None: The action, or None when the enemy has nothing
        to use or nobody to use it on.

    """
    abilities = get_available_enemy_abilities(enemy)
    if not abilities:
        log_debug("Enemy has no ability off cooldown", {"enemy": enemy.id})
        return None
    ability = choose_enemy_ability(enemy, abilities, players, enemies, rng)
    target = choose_enemy_target(
        enemy, ability, players, enemies, damage_last_round, healing_last_round
    )
    if target is None:
        return None
    explicit_target = not ability.target_type.is_area and ability.target_type != TargetType.SELF
    return CombatAction(
        ability_id=ability.id,
        actor_id=enemy.id,
        target_ids=[target.id] if explicit_target else [],
        initiative=calculate_initiative(enemy, ability.speed_mod),
    )
