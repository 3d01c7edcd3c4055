"""
Item effects module for the descent engine.

Applies consumables during combat and permanent upgrades between fights.
Effects that touch session state (SP, the free-ability flag) are reported
back in the result for the owning session to apply.
"""

from collections.abc import Callable, Sequence

from catchery import log_warning
from core.constants import ItemType
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect, remove_all_debuffs, reset_all_cooldowns
from entities.combatant import Combatant
from pydantic import BaseModel, Field

from .item import Item

HEALING_POTION_AMOUNT = 30
SP_POTION_AMOUNT = 3
SMOKE_BOMB_EVASION = 30
SMOKE_BOMB_DURATION = 2
BERSERKER_CONVICTION = 5
BERSERKER_SPEED_PENALTY = 3
BERSERKER_DURATION = 3
REVIVE_HP_PERCENT = 25
VITALITY_MAX_HP_BONUS = 10
CONVICTION_BONUS = 1


class ItemUseResult(BaseModel):
    """The outcome of using an item."""

    success: bool = Field(description="False when the item could not be used.")
    log: list[str] = Field(default_factory=list, description="Human-readable lines.")
    sp_gained: int = Field(0, description="SP the session should add.")
    free_next_ability: bool = Field(
        False, description="Whether the next queued ability costs no SP."
    )
    revived: bool = Field(False, description="Whether a fallen ally was revived.")


def _fail(message: str) -> ItemUseResult:
    return ItemUseResult(success=False, log=[message])


def _needs_living(item: Item, target: Combatant | None) -> ItemUseResult | None:
    if target is None:
        return _fail(f"{item.name} needs a target!")
    if not target.is_alive:
        return _fail(f"{target.name} cannot use {item.name}!")
    return None


# =============================================================================
# Combat Items
# =============================================================================


def _healing_potion(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    failure = _needs_living(item, target)
    if failure:
        return failure
    healed = target.heal(HEALING_POTION_AMOUNT)
    return ItemUseResult(
        success=True,
        log=[
            f"{target.name} drinks {item.name} and heals {healed} HP! "
            f"({target.stats.current_hp}/{target.stats.max_hp} HP)"
        ],
    )


def _stamina_draught(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    return ItemUseResult(
        success=True,
        log=[f"{item.name} restores {SP_POTION_AMOUNT} SP!"],
        sp_gained=SP_POTION_AMOUNT,
    )


def _smoke_bomb(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    result = ItemUseResult(success=True, log=[f"{item.name} shrouds the party!"])
    for member in party:
        if member.is_alive:
            apply_status_effect(
                member,
                StatusEffectApplication(
                    status_id="evasion",
                    duration=SMOKE_BOMB_DURATION,
                    magnitude=SMOKE_BOMB_EVASION,
                ),
                source=item.id,
            )
            result.log.append(f"  {member.name} gains evasion!")
    return result


def _cleansing_salve(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    failure = _needs_living(item, target)
    if failure:
        return failure
    removed = remove_all_debuffs(target)
    if not removed:
        return ItemUseResult(success=True, log=[f"{target.name} has nothing to cleanse."])
    return ItemUseResult(
        success=True,
        log=[f"{target.name} is cleansed of {', '.join(removed)}!"],
    )


def _berserker_brew(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    failure = _needs_living(item, target)
    if failure:
        return failure
    apply_status_effect(
        target,
        StatusEffectApplication(
            status_id="empowered",
            duration=BERSERKER_DURATION,
            magnitude=BERSERKER_CONVICTION,
        ),
        source=item.id,
    )
    apply_status_effect(
        target,
        StatusEffectApplication(
            status_id="fractured",
            duration=BERSERKER_DURATION,
            magnitude=BERSERKER_SPEED_PENALTY,
        ),
        source=item.id,
    )
    return ItemUseResult(success=True, log=[f"{target.name} drinks {item.name} and rages!"])


def _temporal_crystal(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    failure = _needs_living(item, target)
    if failure:
        return failure
    reset_all_cooldowns(target)
    return ItemUseResult(success=True, log=[f"{target.name}'s cooldowns reset!"])


def _void_shard(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    return ItemUseResult(
        success=True,
        log=[f"{item.name} hums. The next ability costs 0 SP!"],
        free_next_ability=True,
    )


def _phoenix_feather(item: Item, target: Combatant | None, party: Sequence[Combatant]) -> ItemUseResult:
    if target is None:
        return _fail(f"{item.name} needs a target!")
    if target.is_alive:
        return _fail(f"{target.name} is not fallen!")
    target.set_current_hp(max(1, target.stats.max_hp * REVIVE_HP_PERCENT // 100))
    return ItemUseResult(
        success=True,
        log=[
            f"{target.name} rises from the ashes! "
            f"({target.stats.current_hp}/{target.stats.max_hp} HP)"
        ],
        revived=True,
    )


ItemHandler = Callable[[Item, Combatant | None, Sequence[Combatant]], ItemUseResult]

COMBAT_ITEM_HANDLERS: dict[str, ItemHandler] = {
    "healing_potion": _healing_potion,
    "stamina_draught": _stamina_draught,
    "smoke_bomb": _smoke_bomb,
    "cleansing_salve": _cleansing_salve,
    "berserker_brew": _berserker_brew,
    "temporal_crystal": _temporal_crystal,
    "void_shard": _void_shard,
    "phoenix_feather": _phoenix_feather,
}


def apply_combat_item(
    item: Item,
    target: Combatant | None,
    party: Sequence[Combatant],
) -> ItemUseResult:
    """
    Uses a consumable during combat.

    Args:
        item (Item): The item being used.
        target (Combatant | None): The chosen party member, if the item
            needs one.
        party (Sequence[Combatant]): The party roster.

    Returns:
        ItemUseResult: The outcome. SP and free-ability effects are left for
        the caller to apply.

    """
    if not item.usable_in_combat:
        return _fail(f"{item.name} cannot be used in combat!")
    handler = COMBAT_ITEM_HANDLERS.get(item.id)
    if handler is None:
        log_warning(
            f"Item '{item.id}' has no combat effect.",
            {"item_type": item.item_type.value},
        )
        return _fail(f"{item.name} has no effect.")
    return handler(item, target, party)


# =============================================================================
# Permanent Items
# =============================================================================


def apply_permanent_item(item: Item, target: Combatant) -> ItemUseResult:
    """
    Applies a permanent upgrade to a party member.

    Args:
        item (Item): A permanent_buff item.
        target (Combatant): The party member to upgrade.

    Returns:
        ItemUseResult: The outcome.

    """
    if item.item_type != ItemType.PERMANENT_BUFF:
        return _fail(f"{item.name} is not a permanent upgrade!")
    if item.id == "vitality_charm":
        target.stats.hp += VITALITY_MAX_HP_BONUS
        target.stats.max_hp += VITALITY_MAX_HP_BONUS
        if target.is_alive:
            target.heal(VITALITY_MAX_HP_BONUS)
        return ItemUseResult(
            success=True,
            log=[f"{target.name}'s max HP increases by {VITALITY_MAX_HP_BONUS}!"],
        )
    if item.id == "conviction_ring":
        target.stats.conviction += CONVICTION_BONUS
        return ItemUseResult(
            success=True,
            log=[f"{target.name}'s conviction increases by {CONVICTION_BONUS}!"],
        )
    log_warning(f"Item '{item.id}' has no permanent effect.", {"target": target.id})
    return _fail(f"{item.name} has no effect.")
