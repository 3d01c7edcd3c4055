"""
Action resolver module for the descent engine.

Executes one queued action end to end: actor validation, the defend
sentinel, ability lookup, target resolution, effect processing with
special-mechanic dispatch, and cooldown bookkeeping.
"""

import random
from collections.abc import Sequence

from catchery import log_warning
from core.calculations import combo_conviction, final_value
from core.constants import DEFEND_ABILITY_ID, DEFEND_DAMAGE_REDUCTION_PERCENT, Faction, TargetType
from core.content import ContentRepository
from core.error_handling import ERROR_HANDLER, ErrorSeverity, UnimplementedMechanicError
from effects.status_ledger import set_cooldown
from entities.combatant import Combatant

from .ability import Ability
from .combat_action import ActionResult, CombatAction
from .effect_context import EffectContext, resolve_standard_effect
from .special_mechanics import dispatch_special_mechanic


def find_combatant(
    combatant_id: str,
    *sides: Sequence[Combatant],
) -> Combatant | None:
    """Looks up a combatant by id across any number of rosters."""
    for side in sides:
        for combatant in side:
            if combatant.id == combatant_id:
                return combatant
    return None


def _sides_for(
    actor: Combatant,
    player_side: Sequence[Combatant],
    enemy_side: Sequence[Combatant],
) -> tuple[list[Combatant], list[Combatant]]:
    """Returns (allies, opponents) from the actor's point of view."""
    if actor.faction == Faction.PLAYER:
        return list(player_side), list(enemy_side)
    return list(enemy_side), list(player_side)


def resolve_targets(
    ability: Ability,
    actor: Combatant,
    target_ids: Sequence[str],
    player_side: Sequence[Combatant],
    enemy_side: Sequence[Combatant],
) -> list[Combatant]:
    """
    Resolves the combatants an ability reaches.

    Single-target types keep only living combatants matching the supplied
    ids. Area types expand to whole living rosters and ignore the ids.

    Args:
        ability (Ability): The ability being used.
        actor (Combatant): The acting combatant.
        target_ids (Sequence[str]): The explicitly chosen targets.
        player_side (Sequence[Combatant]): The party roster.
        enemy_side (Sequence[Combatant]): The enemy roster.

    Returns:
        list[Combatant]: The resolved targets, possibly empty.

    """
    allies, opponents = _sides_for(actor, player_side, enemy_side)
    target_type = ability.target_type
    if target_type == TargetType.SELF:
        return [actor]
    if target_type == TargetType.SINGLE_ENEMY:
        return [c for c in opponents if c.is_alive and c.id in target_ids]
    if target_type == TargetType.SINGLE_ALLY:
        return [c for c in allies if c.is_alive and c.id in target_ids]
    if target_type == TargetType.ALL_ENEMIES:
        return [c for c in opponents if c.is_alive]
    if target_type == TargetType.ALL_ALLIES:
        return [c for c in allies if c.is_alive]
    return [c for c in [*player_side, *enemy_side] if c.is_alive]


def resolve_ability(
    ability: Ability,
    actor: Combatant,
    target_ids: Sequence[str],
    player_side: Sequence[Combatant],
    enemy_side: Sequence[Combatant],
    defend_active: bool,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Resolves every effect of an ability for a living actor.

    Args:
        ability (Ability): The ability being used.
        actor (Combatant): The acting combatant.
        target_ids (Sequence[str]): The explicitly chosen targets.
        player_side (Sequence[Combatant]): The party roster.
        enemy_side (Sequence[Combatant]): The enemy roster.
        defend_active (bool): Whether the party is defending this round.
        rng (random.Random | None): An optional injected random source.

    Returns:
        ActionResult: The log and per-target HP deltas. Fails when no
        target could be resolved.

    """
    result = ActionResult(success=True)
    targets = resolve_targets(ability, actor, target_ids, player_side, enemy_side)
    if not targets:
        result.success = False
        result.log.append(f"{actor.name} uses {ability.name}, but no valid targets!")
        return result

    result.log.append(f"{actor.name} uses {ability.name}!")

    allies, opponents = _sides_for(actor, player_side, enemy_side)
    owners: list[Combatant] = []
    conviction = actor.stats.conviction
    if ability.is_combo:
        owners = [p for p in player_side if p.character_id in ability.owners]
        conviction = combo_conviction([o for o in owners if o.is_alive])

    for effect in ability.effects:
        ctx = EffectContext(
            actor=actor,
            ability=ability,
            effect=effect,
            targets=list(targets),
            allies=allies,
            opponents=opponents,
            value=final_value(effect.set_value, conviction, actor.level),
            conviction=conviction,
            defend_active=defend_active,
            result=result,
            owners=owners,
            rng=rng,
        )
        if effect.special_mechanic is None:
            resolve_standard_effect(ctx)
            continue
        try:
            dispatch_special_mechanic(ctx)
        except UnimplementedMechanicError as e:
            result.log.append(f"  {e}")
            log_warning(
                f"Falling back to standard '{effect.kind.value}' handling.",
                {"ability": ability.id, "mechanic": e.tag},
            )
            resolve_standard_effect(ctx)
    return result


def _apply_cooldown(
    ability: Ability,
    actor: Combatant,
    player_side: Sequence[Combatant],
) -> None:
    if ability.cooldown <= 0:
        return
    if ability.is_combo:
        for owner in player_side:
            if owner.character_id in ability.owners:
                set_cooldown(owner, ability.id, ability.cooldown)
    else:
        set_cooldown(actor, ability.id, ability.cooldown)


def resolve_action(
    action: CombatAction,
    player_side: Sequence[Combatant],
    enemy_side: Sequence[Combatant],
    defend_active: bool,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Resolves one queued action.

    A missing or dead actor, an unknown ability id and an ability without
    valid targets are soft failures: the result is unsuccessful, carries an
    explanatory log line, and nothing is mutated.

    Args:
        action (CombatAction): The action to resolve.
        player_side (Sequence[Combatant]): The party roster.
        enemy_side (Sequence[Combatant]): The enemy roster.
        defend_active (bool): Whether the party is defending this round.
        rng (random.Random | None): An optional injected random source.

    Returns:
        ActionResult: The outcome of the action.

    """
    actor = find_combatant(action.actor_id, player_side, enemy_side)
    if actor is None or not actor.is_alive:
        ERROR_HANDLER.handle(
            "Action canceled, actor is not alive",
            ErrorSeverity.LOW,
            {"actor_id": action.actor_id, "ability_id": action.ability_id},
        )
        return ActionResult(success=False, log=["Action canceled - actor is not alive"])

    if action.ability_id == DEFEND_ABILITY_ID:
        return ActionResult(
            success=True,
            log=[
                f"{actor.name} defends! "
                f"({DEFEND_DAMAGE_REDUCTION_PERCENT}% damage reduction for team)"
            ],
        )

    ability = ContentRepository().find_ability(action.ability_id)
    if ability is None:
        ERROR_HANDLER.handle(
            f"Ability {action.ability_id} not found",
            ErrorSeverity.MEDIUM,
            {"actor_id": action.actor_id},
        )
        return ActionResult(success=False, log=[f"Ability {action.ability_id} not found"])

    result = resolve_ability(
        ability,
        actor,
        action.target_ids,
        player_side,
        enemy_side,
        defend_active,
        rng,
    )
    if result.success:
        _apply_cooldown(ability, actor, player_side)
    return result
