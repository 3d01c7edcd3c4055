"""
Combat engine module for the descent engine.

Stateless orchestration over explicit rosters: the per-round action offer,
enemy action generation, initiative sorting of the merged queue and the
combat end check.
"""

import random
from collections.abc import Mapping, Sequence

from actions.ability import Ability
from actions.combat_action import CombatAction
from core.calculations import initiative_order_key
from core.constants import ACTIONS_OFFERED_PER_ROUND, CombatOutcome
from core.content import ContentRepository
from core.utils import get_rng
from effects.status_ledger import is_on_cooldown
from entities.combatant import Combatant

from .npc_ai import plan_enemy_action


def _living(combatants: Sequence[Combatant]) -> list[Combatant]:
    return [c for c in combatants if c.is_alive]


def get_available_abilities(players: Sequence[Combatant]) -> list[Ability]:
    """
    Enumerates every ability the living party could use this round.

    Single-owner abilities come first, in party order, followed by the combos
    whose whole owner set is alive and present and off cooldown for every
    owner.

    Args:
        players (Sequence[Combatant]): The party roster.

    Returns:
        list[Ability]: The available abilities.

    """
    repo = ContentRepository()
    living = [p for p in _living(players) if p.character_id is not None]
    by_character = {p.character_id: p for p in living}

    pool: list[Ability] = []
    for member in living:
        for ability in repo.get_character_abilities(member.character_id):
            if len(ability.owners) == 1 and not is_on_cooldown(member, ability.id):
                pool.append(ability)

    for combo in repo.list_combos():
        owners = [by_character.get(owner) for owner in combo.owners]
        if any(owner is None for owner in owners):
            continue
        if any(is_on_cooldown(owner, combo.id) for owner in owners):
            continue
        pool.append(combo)
    return pool


def generate_action_offer(
    players: Sequence[Combatant],
    rng: random.Random | None = None,
) -> list[Ability]:
    """
    Builds the abilities offered to the party this round.

    Args:
        players (Sequence[Combatant]): The party roster.
        rng (random.Random | None): An optional injected random source.

    Returns:
        list[Ability]: The whole pool when it fits in the offer, otherwise a
        uniform sample without replacement.

    """
    pool = get_available_abilities(players)
    if len(pool) <= ACTIONS_OFFERED_PER_ROUND:
        return pool
    return get_rng(rng).sample(pool, ACTIONS_OFFERED_PER_ROUND)


def generate_enemy_actions(
    enemies: Sequence[Combatant],
    players: Sequence[Combatant],
    damage_last_round: Mapping[str, int],
    healing_last_round: Mapping[str, int],
    rng: random.Random | None = None,
) -> list[CombatAction]:
    """
    Plans one action for every living enemy.

    Args:
        enemies (Sequence[Combatant]): The enemy roster.
        players (Sequence[Combatant]): The party roster.
        damage_last_round (Mapping[str, int]): Damage per combatant id.
        healing_last_round (Mapping[str, int]): Healing per combatant id.
        rng (random.Random | None): An optional injected random source.

    Returns:
        list[CombatAction]: The planned actions, in roster order.

    """
    actions: list[CombatAction] = []
    for enemy in _living(enemies):
        action = plan_enemy_action(
            enemy, players, enemies, damage_last_round, healing_last_round, rng
        )
        if action is not None:
            actions.append(action)
    return actions


def sort_action_queue(
    actions: Sequence[CombatAction],
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
) -> list[CombatAction]:
    """
    Orders the merged queue by initiative.

    Higher initiative first, then players before enemies, then higher
    current HP, then actor id. The sort is stable.

    Args:
        actions (Sequence[CombatAction]): The merged player and enemy actions.
        players (Sequence[Combatant]): The party roster.
        enemies (Sequence[Combatant]): The enemy roster.

    Returns:
        list[CombatAction]: A new, sorted list.

    """
    by_id = {c.id: c for c in [*players, *enemies]}
    return sorted(
        actions,
        key=lambda a: initiative_order_key(a.initiative, a.actor_id, by_id.get(a.actor_id)),
    )


def check_combat_end(
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
) -> CombatOutcome:
    """
    Checks whether either side has been wiped out.

    Returns:
        CombatOutcome: PLAYER_DEFEAT when no player lives, PLAYER_VICTORY
        when no enemy lives, ONGOING otherwise.

    """
    if not _living(players):
        return CombatOutcome.PLAYER_DEFEAT
    if not _living(enemies):
        return CombatOutcome.PLAYER_VICTORY
    return CombatOutcome.ONGOING
