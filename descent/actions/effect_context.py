"""
Effect context module for the descent engine.

Bundles everything needed to resolve one ability effect, and provides the
primitives shared by the standard effect-kind handling and the special
mechanics: evasion rolls, strikes, heals and status application.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass, field

from core.calculations import (
    apply_damage_reduction,
    apply_healing_reduction,
    check_evasion,
    distribute_healing,
)
from core.constants import FULL_HEAL_SENTINEL, EffectKind, Faction, is_opponent
from core.logging import log_debug
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect
from entities.combatant import Combatant

from .ability import Ability, AbilityEffect
from .combat_action import ActionResult


@dataclass
class EffectContext:
    """The state one ability effect is resolved against."""

    actor: Combatant
    ability: Ability
    effect: AbilityEffect
    targets: list[Combatant]
    allies: list[Combatant]
    opponents: list[Combatant]
    value: int
    conviction: int
    defend_active: bool
    result: ActionResult
    owners: list[Combatant] = field(default_factory=list)
    rng: random.Random | None = None

    @property
    def living_allies(self) -> list[Combatant]:
        return [c for c in self.allies if c.is_alive]

    @property
    def living_opponents(self) -> list[Combatant]:
        return [c for c in self.opponents if c.is_alive]

    @property
    def opposing_targets(self) -> list[Combatant]:
        """Resolved targets fighting against the actor."""
        return [t for t in self.targets if is_opponent(t.faction, self.actor.faction)]

    def log(self, line: str) -> None:
        self.result.log.append(line)


# =============================================================================
# Primitives
# =============================================================================


def _hp_suffix(target: Combatant) -> str:
    return f"({target.stats.current_hp}/{target.stats.max_hp} HP)"


def roll_evasion(ctx: EffectContext, target: Combatant) -> bool:
    """Rolls evasion for one target, logging the dodge. True means evaded."""
    if check_evasion(target, ctx.rng):
        ctx.log(f"  {target.name} evades!")
        return True
    return False


def strike(
    ctx: EffectContext,
    target: Combatant,
    amount: int,
    ignore_armor: bool = False,
) -> int:
    """
    Deals one hit of damage to a target.

    Armor is subtracted unless ignored. The defend reduction only protects
    the party while the team-wide defend is active.

    Args:
        ctx (EffectContext): The resolution context.
        target (Combatant): The combatant being hit.
        amount (int): The raw damage.
        ignore_armor (bool): Whether to skip the armor subtraction.

    Returns:
        int: The damage after reduction, as logged and tracked.

    """
    defending = ctx.defend_active and target.faction == Faction.PLAYER
    damage = apply_damage_reduction(amount, target, defending, ignore_armor)
    target.take_damage(damage)
    ctx.result.add_damage(target.id, damage)
    ctx.log(f"  {target.name} takes {damage} damage! {_hp_suffix(target)}")
    if not target.is_alive:
        ctx.log(f"  {target.name} has been defeated!")
    return damage


def restore(ctx: EffectContext, target: Combatant, amount: int) -> int:
    """
    Heals a target, halving the amount on terrified targets.

    Returns:
        int: The healing after reduction, as logged and tracked.

    """
    healing = apply_healing_reduction(amount, target)
    target.heal(healing)
    ctx.result.add_healing(target.id, healing)
    ctx.log(f"  {target.name} heals {healing} HP! {_hp_suffix(target)}")
    return healing


def full_restore(ctx: EffectContext, target: Combatant) -> int:
    """Restores a target to full HP, ignoring healing reduction."""
    healed = target.full_heal()
    ctx.result.add_healing(target.id, healed)
    ctx.log(f"  {target.name} fully restored! {_hp_suffix(target)}")
    return healed


def distribute_and_restore(
    ctx: EffectContext,
    total: int,
    recipients: list[Combatant],
) -> int:
    """Splits a healing pool across recipients and heals each share."""
    if total <= 0 or not recipients:
        return 0
    shares = distribute_healing(total, recipients)
    healed = 0
    for recipient in recipients:
        healed += restore(ctx, recipient, shares[recipient.id])
    return healed


_STATUS_VERBS: dict[EffectKind, str] = {
    EffectKind.DAMAGE: "is afflicted with",
    EffectKind.HEAL: "gains",
}


def apply_status(
    ctx: EffectContext,
    target: Combatant,
    application: StatusEffectApplication,
) -> None:
    """Applies a single status to a target and logs it."""
    apply_status_effect(target, application, source=ctx.ability.id)
    verb = _STATUS_VERBS.get(ctx.effect.kind, "is affected by")
    ctx.log(f"  {target.name} {verb} {application.status_id}!")


def apply_statuses(ctx: EffectContext, target: Combatant) -> None:
    """Applies the effect's status list to a target."""
    for application in ctx.effect.status_effects:
        apply_status(ctx, target, application)


def damage_targets(
    ctx: EffectContext,
    targets: list[Combatant] | None = None,
    amount_for: Callable[[Combatant], int] | None = None,
    ignore_armor: bool = False,
    after_hit: Callable[[Combatant, int], None] | None = None,
    with_statuses: bool = True,
) -> int:
    """
    Runs the standard damage loop over a set of targets.

    Each target rolls evasion. Hit targets take damage and then receive the
    effect's statuses.

    Args:
        ctx (EffectContext): The resolution context.
        targets (list[Combatant] | None): Defaults to the resolved targets.
        amount_for (Callable | None): Raw damage per target. Defaults to the
            effect's final value.
        ignore_armor (bool): Whether to skip the armor subtraction.
        after_hit (Callable | None): Called with each hit target and the
            damage it took.
        with_statuses (bool): Whether to apply the effect's statuses.

    Returns:
        int: The total damage dealt.

    """
    total = 0
    for target in ctx.targets if targets is None else targets:
        if roll_evasion(ctx, target):
            continue
        amount = amount_for(target) if amount_for else ctx.value
        dealt = strike(ctx, target, amount, ignore_armor=ignore_armor)
        total += dealt
        if with_statuses:
            apply_statuses(ctx, target)
        if after_hit:
            after_hit(target, dealt)
    return total


# =============================================================================
# Standard Effect-Kind Handling
# =============================================================================


def _resolve_damage(ctx: EffectContext) -> None:
    damage_targets(ctx)


def _resolve_heal(ctx: EffectContext) -> None:
    if ctx.effect.set_value == FULL_HEAL_SENTINEL:
        for target in ctx.targets:
            full_restore(ctx, target)
    else:
        distribute_and_restore(ctx, ctx.value, ctx.targets)
    for target in ctx.targets:
        apply_statuses(ctx, target)


def _resolve_status_only(ctx: EffectContext) -> None:
    for target in ctx.targets:
        apply_statuses(ctx, target)


def _resolve_without_generic_handling(ctx: EffectContext) -> None:
    log_debug(
        f"Effect of kind '{ctx.effect.kind.value}' has no generic handling",
        {"ability": ctx.ability.id},
    )


STANDARD_HANDLERS: dict[EffectKind, Callable[[EffectContext], None]] = {
    EffectKind.DAMAGE: _resolve_damage,
    EffectKind.HEAL: _resolve_heal,
    EffectKind.BUFF: _resolve_status_only,
    EffectKind.DEBUFF: _resolve_status_only,
    EffectKind.MIXED: _resolve_without_generic_handling,
    EffectKind.SPECIAL: _resolve_without_generic_handling,
}


def resolve_standard_effect(ctx: EffectContext) -> None:
    """Applies the default handling of the effect's kind."""
    STANDARD_HANDLERS[ctx.effect.kind](ctx)
