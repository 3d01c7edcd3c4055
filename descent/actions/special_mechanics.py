"""
Special mechanics module for the descent engine.

Maps every member of the closed SpecialMechanic set to a handler. Members
without bespoke behaviour map to a handler raising UnimplementedMechanicError,
so the dispatcher is exhaustive by construction and checked at import time.
"""

from collections.abc import Callable

from core.calculations import count_debuffs, final_value
from core.constants import DEBUFF_STATUS_IDS
from core.error_handling import UnimplementedMechanicError
from core.utils import get_rng
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import (
    remove_all_buffs,
    remove_all_debuffs,
    remove_buffs,
    remove_debuffs,
    reset_all_cooldowns,
)
from entities.combatant import Combatant

from .ability import SpecialMechanic
from .effect_context import (
    EffectContext,
    apply_status,
    apply_statuses,
    damage_targets,
    distribute_and_restore,
    full_restore,
    resolve_standard_effect,
    restore,
    roll_evasion,
    strike,
)

# Critical hits deal 150% damage.
CRIT_MULTIPLIER_PERCENT = 150
# Share of the primary hit carried by a chain.
CHAIN_DAMAGE_PERCENT = 50
# Debuffs drawn by apply_random_debuff, each for 2 rounds at magnitude 2.
RANDOM_DEBUFF_POOL: tuple[str, ...] = ("poison", "burn", "weakened", "fractured", "terrified")
PERMANENT_DURATION = 99

MechanicHandler = Callable[[EffectContext], None]


def _stun(ctx: EffectContext, target: Combatant) -> None:
    apply_status(ctx, target, StatusEffectApplication(status_id="stunned", duration=1, magnitude=1))


def _log_removed(ctx: EffectContext, target: Combatant, removed: list[str], verb: str) -> None:
    for status_id in removed:
        ctx.log(f"  {target.name} {verb} {status_id}!")


# =============================================================================
# Damage Shapes
# =============================================================================


def _hit_twice(ctx: EffectContext) -> None:
    # One evasion roll covers both strikes.
    for target in ctx.targets:
        if roll_evasion(ctx, target):
            continue
        for _ in range(2):
            if not target.is_alive:
                break
            strike(ctx, target, ctx.value)
        apply_statuses(ctx, target)


def _cast_twice(ctx: EffectContext) -> None:
    for _ in range(2):
        damage_targets(ctx, targets=[t for t in ctx.targets if t.is_alive])


def _chain_50_percent(ctx: EffectContext) -> None:
    primary = ctx.targets[0]
    if roll_evasion(ctx, primary):
        return
    dealt = strike(ctx, primary, ctx.value)
    apply_statuses(ctx, primary)
    others = [c for c in ctx.living_opponents if c.id != primary.id]
    if not others:
        return
    secondary = get_rng(ctx.rng).choice(others)
    chained = dealt * CHAIN_DAMAGE_PERCENT // 100
    secondary.take_damage(chained)
    ctx.result.add_damage(secondary.id, chained)
    ctx.log(f"  Lightning chains to {secondary.name} for {chained} damage!")
    if not secondary.is_alive:
        ctx.log(f"  {secondary.name} has been defeated!")


def _ignore_armor(ctx: EffectContext) -> None:
    damage_targets(ctx, ignore_armor=True)


def _double_if_target_full_hp(ctx: EffectContext) -> None:
    def amount_for(target: Combatant) -> int:
        full = target.stats.current_hp == target.stats.max_hp
        return ctx.value * 2 if full else ctx.value

    damage_targets(ctx, amount_for=amount_for)


def _guarantee_crit(ctx: EffectContext) -> None:
    ctx.log("  Critical hit!")
    damage_targets(ctx, amount_for=lambda _: ctx.value * CRIT_MULTIPLIER_PERCENT // 100)


def _crit_if_target_debuffed(ctx: EffectContext) -> None:
    def amount_for(target: Combatant) -> int:
        if count_debuffs(target) > 0:
            ctx.log(f"  Critical hit on {target.name}!")
            return ctx.value * CRIT_MULTIPLIER_PERCENT // 100
        return ctx.value

    damage_targets(ctx, amount_for=amount_for)


def _damage_scales_with_missing_hp(ctx: EffectContext) -> None:
    def amount_for(target: Combatant) -> int:
        # value * (1 + missing / max)
        max_hp = target.stats.max_hp
        return ctx.value * (2 * max_hp - target.stats.current_hp) // max_hp

    damage_targets(ctx, amount_for=amount_for)


def _retarget_and_resolve(ctx: EffectContext, pick: Callable[[list[Combatant]], Combatant]) -> None:
    candidates = ctx.living_opponents
    if candidates:
        ctx.targets = [pick(candidates)]
    resolve_standard_effect(ctx)


def _target_lowest_hp(ctx: EffectContext) -> None:
    _retarget_and_resolve(ctx, lambda cs: min(cs, key=lambda c: c.stats.current_hp))


def _target_highest_spd(ctx: EffectContext) -> None:
    _retarget_and_resolve(ctx, lambda cs: max(cs, key=lambda c: c.stats.speed))


# =============================================================================
# Healing Shapes
# =============================================================================


def _heal_lowest_ally_50_percent_damage(ctx: EffectContext) -> None:
    total = damage_targets(ctx)
    allies = ctx.living_allies
    if total <= 0 or not allies:
        return
    lowest = min(allies, key=lambda c: c.stats.current_hp)
    restore(ctx, lowest, total // 2)


def _heal_party_50_percent_total_damage(ctx: EffectContext) -> None:
    total = damage_targets(ctx)
    distribute_and_restore(ctx, total // 2, ctx.living_allies)


def _damage_all_enemies_heal_all_allies_same_amount(ctx: EffectContext) -> None:
    damage_targets(ctx, targets=ctx.living_opponents)
    for ally in ctx.living_allies:
        restore(ctx, ally, ctx.value)


def _damage_30_heal_party_15(ctx: EffectContext) -> None:
    damage_targets(ctx, targets=ctx.living_opponents)
    heal_value = final_value(ctx.effect.set_value // 2, ctx.conviction, ctx.actor.level)
    for ally in ctx.living_allies:
        restore(ctx, ally, heal_value)


def _heal_users_half_damage(ctx: EffectContext) -> None:
    total = damage_targets(ctx)
    users = [o for o in ctx.owners if o.is_alive] or [ctx.actor]
    distribute_and_restore(ctx, total // 2, users)


def _heal_party_if_kill_overkill(ctx: EffectContext) -> None:
    for target in ctx.targets:
        if roll_evasion(ctx, target):
            continue
        hp_before = target.stats.current_hp
        dealt = strike(ctx, target, ctx.value)
        apply_statuses(ctx, target)
        overkill = dealt - hp_before
        if not target.is_alive and overkill > 0:
            ctx.log(f"  Overkill! {overkill} excess damage mends the party.")
            distribute_and_restore(ctx, overkill, ctx.living_allies)


def _heal_self_same_amount(ctx: EffectContext) -> None:
    damage_targets(ctx, after_hit=lambda *_: restore(ctx, ctx.actor, ctx.value))


def _heal_self_damage_dealt(ctx: EffectContext) -> None:
    damage_targets(ctx, after_hit=lambda _, dealt: restore(ctx, ctx.actor, dealt))


def _full_heal_all_remove_debuffs_regen(ctx: EffectContext) -> None:
    for target in ctx.targets:
        full_restore(ctx, target)
        _log_removed(ctx, target, remove_all_debuffs(target), "is cleansed of")
        apply_statuses(ctx, target)


def _damage_all_full_heal_self_once(ctx: EffectContext) -> None:
    damage_targets(ctx, targets=[t for t in ctx.opposing_targets if t.is_alive])
    if ctx.actor.is_alive:
        full_restore(ctx, ctx.actor)


# =============================================================================
# Status Shapes
# =============================================================================


def _remove_1_debuff(ctx: EffectContext) -> None:
    for target in ctx.targets:
        _log_removed(ctx, target, remove_debuffs(target, 1), "is cleansed of")
    resolve_standard_effect(ctx)


def _remove_all_debuffs(ctx: EffectContext) -> None:
    for target in ctx.targets:
        _log_removed(ctx, target, remove_all_debuffs(target), "is cleansed of")
    resolve_standard_effect(ctx)


def _reset_all_cooldowns(ctx: EffectContext) -> None:
    for target in ctx.targets:
        reset_all_cooldowns(target)
        ctx.log(f"  {target.name}'s cooldowns reset!")
        restore(ctx, target, ctx.value)


def _stun_1_round(ctx: EffectContext) -> None:
    damage_targets(ctx, after_hit=lambda target, _: _stun(ctx, target) if target.is_alive else None)


def _stun_if_below_30_percent_hp(ctx: EffectContext) -> None:
    def after_hit(target: Combatant, _: int) -> None:
        if target.is_alive and target.hp_percent < 30:
            _stun(ctx, target)

    damage_targets(ctx, after_hit=after_hit)


def _gain_3_con_if_below_50_percent_hp(ctx: EffectContext) -> None:
    for target in ctx.targets:
        apply_statuses(ctx, target)
    if ctx.actor.hp_percent < 50:
        current = ctx.actor.get_status_magnitude("empowered")
        duration = next(
            (a.duration for a in ctx.effect.status_effects if a.status_id == "empowered"),
            3,
        )
        apply_status(
            ctx,
            ctx.actor,
            StatusEffectApplication(status_id="empowered", duration=duration, magnitude=current + 3),
        )
        ctx.log(f"  {ctx.actor.name}'s empowerment deepens! (+3)")


def _remove_1_buff_each(ctx: EffectContext) -> None:
    damage_targets(
        ctx,
        after_hit=lambda target, _: _log_removed(ctx, target, remove_buffs(target, 1), "loses"),
    )


def _remove_all_buffs(ctx: EffectContext) -> None:
    for target in ctx.targets:
        _log_removed(ctx, target, remove_all_buffs(target), "loses")
        apply_statuses(ctx, target)


def _apply_random_debuff(ctx: EffectContext) -> None:
    rng = get_rng(ctx.rng)

    def after_hit(target: Combatant, _: int) -> None:
        status_id = rng.choice(RANDOM_DEBUFF_POOL)
        apply_status(ctx, target, StatusEffectApplication(status_id=status_id, duration=2, magnitude=2))

    damage_targets(ctx, after_hit=after_hit)


def _apply_all_debuffs_permanent(ctx: EffectContext) -> None:
    for target in ctx.targets:
        for status_id in DEBUFF_STATUS_IDS:
            apply_status(
                ctx,
                target,
                StatusEffectApplication(status_id=status_id, duration=PERMANENT_DURATION, magnitude=1),
            )


def _swap_hp_percentages(ctx: EffectContext) -> None:
    target = ctx.targets[0]
    actor = ctx.actor
    actor_hp, target_hp = actor.stats.current_hp, target.stats.current_hp
    # Round up so a living combatant never drops to zero.
    new_actor_hp = -(-target_hp * actor.stats.max_hp // target.stats.max_hp)
    new_target_hp = -(-actor_hp * target.stats.max_hp // actor.stats.max_hp)
    actor.set_current_hp(new_actor_hp)
    target.set_current_hp(new_target_hp)
    for combatant, before in ((actor, actor_hp), (target, target_hp)):
        delta = combatant.stats.current_hp - before
        if delta > 0:
            ctx.result.add_healing(combatant.id, delta)
        else:
            ctx.result.add_damage(combatant.id, -delta)
    ctx.log(
        f"  {actor.name} and {target.name} swap fates! "
        f"({actor.stats.current_hp}/{actor.stats.max_hp} HP, "
        f"{target.stats.current_hp}/{target.stats.max_hp} HP)"
    )


def _unimplemented(ctx: EffectContext) -> None:
    raise UnimplementedMechanicError(ctx.effect.special_mechanic)


# =============================================================================
# Dispatcher
# =============================================================================

MECHANIC_HANDLERS: dict[SpecialMechanic, MechanicHandler] = {
    SpecialMechanic.HIT_TWICE: _hit_twice,
    SpecialMechanic.CHAIN_50_PERCENT: _chain_50_percent,
    SpecialMechanic.REVEAL_ENEMY_NEXT_ACTION: _unimplemented,
    SpecialMechanic.REMOVE_1_DEBUFF: _remove_1_debuff,
    SpecialMechanic.REMOVE_ALL_DEBUFFS: _remove_all_debuffs,
    SpecialMechanic.RESET_ALL_COOLDOWNS: _reset_all_cooldowns,
    SpecialMechanic.STUN_IF_BELOW_30_PERCENT_HP: _stun_if_below_30_percent_hp,
    SpecialMechanic.GAIN_3_CON_IF_BELOW_50_PERCENT_HP: _gain_3_con_if_below_50_percent_hp,
    SpecialMechanic.HEAL_LOWEST_ALLY_50_PERCENT_DAMAGE: _heal_lowest_ally_50_percent_damage,
    SpecialMechanic.IGNORE_ARMOR: _ignore_armor,
    SpecialMechanic.HEAL_PARTY_IF_KILL_OVERKILL: _heal_party_if_kill_overkill,
    SpecialMechanic.DOUBLE_IF_TARGET_FULL_HP: _double_if_target_full_hp,
    SpecialMechanic.CAST_TWICE: _cast_twice,
    SpecialMechanic.HEAL_USERS_HALF_DAMAGE: _heal_users_half_damage,
    SpecialMechanic.GUARANTEE_CRIT: _guarantee_crit,
    SpecialMechanic.DAMAGE_SCALES_WITH_MISSING_HP: _damage_scales_with_missing_hp,
    SpecialMechanic.DAMAGE_ALL_ENEMIES_HEAL_ALL_ALLIES_SAME_AMOUNT: _damage_all_enemies_heal_all_allies_same_amount,
    SpecialMechanic.FULL_HEAL_ALL_REMOVE_DEBUFFS_REGEN: _full_heal_all_remove_debuffs_regen,
    SpecialMechanic.STUN_1_ROUND: _stun_1_round,
    SpecialMechanic.HEAL_PARTY_50_PERCENT_TOTAL_DAMAGE: _heal_party_50_percent_total_damage,
    SpecialMechanic.CRIT_IF_TARGET_DEBUFFED: _crit_if_target_debuffed,
    SpecialMechanic.DAMAGE_30_HEAL_PARTY_15: _damage_30_heal_party_15,
    SpecialMechanic.RESET_SP_TO_10_NEXT_ROUND: _unimplemented,
    SpecialMechanic.HEAL_SELF_SAME_AMOUNT: _heal_self_same_amount,
    SpecialMechanic.REMOVE_1_BUFF_EACH: _remove_1_buff_each,
    SpecialMechanic.APPLY_RANDOM_DEBUFF: _apply_random_debuff,
    SpecialMechanic.PUSH_TURN_ORDER_BACK: _unimplemented,
    SpecialMechanic.HEAL_SELF_DAMAGE_DEALT: _heal_self_damage_dealt,
    SpecialMechanic.RESET_TARGET_COOLDOWNS_NEGATIVE: _unimplemented,
    SpecialMechanic.TARGET_HIGHEST_SPD: _target_highest_spd,
    SpecialMechanic.TARGET_LOWEST_HP: _target_lowest_hp,
    SpecialMechanic.INCREASE_BY_5_EACH_USE: _unimplemented,
    SpecialMechanic.SWAP_HP_PERCENTAGES: _swap_hp_percentages,
    SpecialMechanic.DAMAGE_ON_ABILITY_USE: _unimplemented,
    SpecialMechanic.PIERCE_THROUGH_LINE: _ignore_armor,
    SpecialMechanic.SET_ALL_SPD_TO_1: _unimplemented,
    SpecialMechanic.REMOVE_ALL_BUFFS: _remove_all_buffs,
    SpecialMechanic.DISABLE_1_ABILITY_THIS_COMBAT: _unimplemented,
    SpecialMechanic.REPEAT_LAST_ROUND: _unimplemented,
    SpecialMechanic.DAMAGE_ALL_FULL_HEAL_SELF_ONCE: _damage_all_full_heal_self_once,
    SpecialMechanic.APPLY_ALL_DEBUFFS_PERMANENT: _apply_all_debuffs_permanent,
    SpecialMechanic.DISABLE_ALL_ABILITIES_EXCEPT_RETREAT: _unimplemented,
}

_missing = [m.value for m in SpecialMechanic if m not in MECHANIC_HANDLERS]
if _missing:
    raise RuntimeError(f"Special mechanics without a handler: {_missing}")


def is_implemented(mechanic: SpecialMechanic) -> bool:
    return MECHANIC_HANDLERS[mechanic] is not _unimplemented


def dispatch_special_mechanic(ctx: EffectContext) -> None:
    """
    Runs the bespoke behaviour of the effect's special mechanic.

    Args:
        ctx (EffectContext): The resolution context. Its effect must carry
            a special mechanic.

    Raises:
        UnimplementedMechanicError: If the mechanic has no bespoke behaviour.

    """
    mechanic = ctx.effect.special_mechanic
    if mechanic is None:
        raise ValueError(f"Effect of ability '{ctx.ability.id}' has no special mechanic.")
    MECHANIC_HANDLERS[mechanic](ctx)
