"""
Node resolver module for the descent engine.

Resolves what happens when the party enters a node and applies the
party-wide effects of memory, rest and hazard nodes.
"""

import random
from collections.abc import Sequence

from core.calculations import distribute_healing
from core.constants import (
    HAZARD_BASE_DAMAGE,
    HAZARD_DAMAGE_PER_FLOOR,
    HAZARD_ITEM_MIN_COST,
    MEMORY_GOLD_REWARD,
    MEMORY_HEAL_PERCENT,
    REST_COOLDOWN_REDUCTION,
    REST_HEAL_PERCENT,
    STORY_FRAGMENT_REWARD,
    NodeType,
    RestChoice,
)
from core.content import ContentRepository
from core.utils import get_rng
from effects.status_ledger import reduce_cooldowns, remove_all_debuffs
from entities.combatant import Combatant
from entities.combatant_factory import create_boss_combatant, create_enemy_combatant
from items.item import Item
from items.shop import generate_shop_inventory
from pydantic import BaseModel, Field

from .map_generator import Node

# Chance, in percent, that a hazard leaves a rare item behind.
HAZARD_ITEM_CHANCE_PERCENT = 50

REST_CHOICE_DESCRIPTIONS: dict[RestChoice, str] = {
    RestChoice.HEAL: f"Heal {REST_HEAL_PERCENT}% max HP for the party",
    RestChoice.CLEANSE: "Remove all debuffs from all party members",
    RestChoice.COOLDOWNS: f"Reduce all cooldowns by {REST_COOLDOWN_REDUCTION}",
}


class NodeRewards(BaseModel):
    """What a resolved node hands to the run."""

    gold: int = Field(0, description="Gold gained.")
    items: list[Item] = Field(default_factory=list, description="Items gained.")
    lore_id: str | None = Field(None, description="Lore unlocked.")
    damage: int = Field(0, description="Total damage dealt to the party.")
    memory_fragments: int = Field(0, description="Meta-progression currency gained.")


class NodeResult(BaseModel):
    """The result of entering a node."""

    node_type: NodeType = Field(description="The type of the entered node.")
    completed: bool = Field(False, description="Whether the node resolved on entry.")
    combat_required: bool = Field(False, description="Whether a fight must be won first.")
    rewards: NodeRewards = Field(default_factory=NodeRewards)
    choices: list[RestChoice] = Field(
        default_factory=list,
        description="Options the player must pick from, for rest nodes.",
    )
    shop_stock: list[Item] = Field(
        default_factory=list,
        description="Items on sale, for shop nodes.",
    )


# =============================================================================
# Entering Nodes
# =============================================================================


def hazard_damage_for_floor(floor: int) -> int:
    return HAZARD_BASE_DAMAGE + HAZARD_DAMAGE_PER_FLOOR * floor


def _roll_hazard_item(rng: random.Random) -> list[Item]:
    if rng.random() * 100 >= HAZARD_ITEM_CHANCE_PERCENT:
        return []
    rare = [i for i in ContentRepository().list_items() if i.cost >= HAZARD_ITEM_MIN_COST]
    if not rare:
        return []
    return [rng.choice(rare).model_copy()]


def enter_node(node: Node, floor: int, rng: random.Random | None = None) -> NodeResult:
    """
    Resolves the encounter of a node.

    Combat and boss nodes only flag that a fight is required. The other
    types resolve immediately and report their rewards; hazard damage is
    reported, not applied.

    Args:
        node (Node): The entered node.
        floor (int): The floor number.
        rng (random.Random | None): An optional injected random source.

    Returns:
        NodeResult: What the node does.

    """
    rng = get_rng(rng)
    node_type = node.node_type
    if node_type in (NodeType.COMBAT, NodeType.BOSS):
        return NodeResult(node_type=node_type, combat_required=True)
    if node_type == NodeType.MEMORY:
        return NodeResult(
            node_type=node_type,
            completed=True,
            rewards=NodeRewards(
                gold=MEMORY_GOLD_REWARD,
                lore_id=node.encounter.lore_id or f"Memory Fragment - Floor {floor}",
            ),
        )
    if node_type == NodeType.SHOP:
        return NodeResult(
            node_type=node_type,
            completed=True,
            shop_stock=generate_shop_inventory(floor, node.encounter.shop_seed, rng),
        )
    if node_type == NodeType.REST:
        return NodeResult(node_type=node_type, completed=True, choices=list(RestChoice))
    if node_type == NodeType.HAZARD:
        return NodeResult(
            node_type=node_type,
            completed=True,
            rewards=NodeRewards(
                damage=hazard_damage_for_floor(floor),
                items=_roll_hazard_item(rng),
            ),
        )
    return NodeResult(
        node_type=node_type,
        completed=True,
        rewards=NodeRewards(
            lore_id=node.encounter.lore_id or "A fragment of forgotten history...",
            memory_fragments=STORY_FRAGMENT_REWARD,
        ),
    )


# =============================================================================
# Party Effects
# =============================================================================


def _heal_percent_of_party(party: Sequence[Combatant], percent: int) -> dict[str, int]:
    living = [c for c in party if c.is_alive]
    if not living:
        return {}
    total = sum(c.stats.max_hp for c in living) * percent // 100
    shares = distribute_healing(total, living)
    return {c.id: c.heal(shares[c.id]) for c in living}


def apply_memory_healing(party: Sequence[Combatant]) -> dict[str, int]:
    """
    Heals the party by 20% of the living members' total max HP.

    Returns:
        dict[str, int]: HP actually restored per combatant id.

    """
    return _heal_percent_of_party(party, MEMORY_HEAL_PERCENT)


def apply_rest_choice(choice: RestChoice, party: Sequence[Combatant]) -> list[str]:
    """
    Applies the option picked at a rest node.

    Args:
        choice (RestChoice): The chosen option.
        party (Sequence[Combatant]): The whole party.

    Returns:
        list[str]: Log lines describing the effect.

    """
    log: list[str] = [f"Rest: {REST_CHOICE_DESCRIPTIONS[choice]}"]
    if choice == RestChoice.HEAL:
        healed = _heal_percent_of_party(party, REST_HEAL_PERCENT)
        for member in party:
            if member.id in healed:
                log.append(f"  {member.name} heals {healed[member.id]} HP!")
    elif choice == RestChoice.CLEANSE:
        for member in party:
            removed = remove_all_debuffs(member)
            if removed:
                log.append(f"  {member.name} is cleansed of {', '.join(removed)}!")
    else:
        for member in party:
            reduce_cooldowns(member, REST_COOLDOWN_REDUCTION)
    return log


def apply_hazard_damage(party: Sequence[Combatant], damage: int) -> dict[str, int]:
    """
    Splits hazard damage evenly over the living party, flooring each share.

    Returns:
        dict[str, int]: HP actually lost per combatant id.

    """
    living = [c for c in party if c.is_alive]
    if not living:
        return {}
    share = damage // len(living)
    return {c.id: c.take_damage(share) for c in living}


def get_combat_enemies(node: Node, floor: int) -> list[Combatant]:
    """
    Builds the enemies of a combat or boss node.

    Returns:
        list[Combatant]: The floor boss for a boss node, the scaled enemies
        of the encounter for a combat node, nothing otherwise.

    """
    if node.node_type == NodeType.BOSS:
        return [create_boss_combatant(floor)]
    if node.node_type != NodeType.COMBAT:
        return []
    return [create_enemy_combatant(enemy_id, floor) for enemy_id in node.encounter.enemy_ids]
