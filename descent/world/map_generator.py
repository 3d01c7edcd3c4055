"""
Map generator module for the descent engine.

Builds the node graph of a floor and grows it as nodes are completed:
each completion opens 1 to 3 paths into hidden nodes, and once enough of
the floor is exposed the boss is revealed with at least two paths into it.
"""

import random
from typing import Any

from catchery import log_warning
from core.constants import (
    BOSS_REVEAL_THRESHOLD_PERCENT,
    ENTRANCE_NODE_ID,
    FLOOR_COMPOSITION,
    MAX_COMBAT_ENEMIES,
    MIN_COMBAT_ENEMIES,
    PATH_COUNT_WEIGHTS,
    SHOP_SEED_LIMIT,
    STORY_VARIANTS,
    NodeStatus,
    NodeType,
)
from core.content import ContentRepository
from core.logging import log_debug
from core.utils import get_rng
from pydantic import BaseModel, Field

# Number of available nodes wired into the boss when it is revealed.
BOSS_PATHS = 2


class EncounterData(BaseModel):
    """The type-specific payload of a node."""

    enemy_ids: list[str] = Field(
        default_factory=list,
        description="Enemies of a combat node, or the boss of a boss node.",
    )
    lore_id: str | None = Field(None, description="Lore of a memory or story node.")
    shop_seed: int | None = Field(None, description="Seed of a shop node's stock.")


class Node(BaseModel):
    """One vertex of a floor graph."""

    id: str = Field(description="Unique node id within the floor.")
    node_type: NodeType = Field(description="What the node holds.")
    status: NodeStatus = Field(NodeStatus.HIDDEN, description="Visibility of the node.")
    connections: list[str] = Field(
        default_factory=list,
        description="Ids of the nodes this node unlocked (directed edges).",
    )
    encounter: EncounterData = Field(default_factory=EncounterData)

    def advance_to(self, status: NodeStatus) -> bool:
        """
        Moves the node forward to a status. Never moves it backwards.

        Args:
            status (NodeStatus): The requested status.

        Returns:
            bool: True if the status changed.

        """
        if status.rank <= self.status.rank:
            return False
        self.status = status
        return True

    def connect(self, node_id: str) -> None:
        if node_id not in self.connections:
            self.connections.append(node_id)


class FloorMap(BaseModel):
    """The node graph of one floor, owned by the run session."""

    floor: int = Field(description="The floor number.")
    nodes: dict[str, Node] = Field(default_factory=dict, description="Nodes by id.")
    current_node_id: str | None = Field(None, description="The node being visited.")

    def model_post_init(self, _: Any) -> None:
        bosses = [n for n in self.nodes.values() if n.node_type == NodeType.BOSS]
        if self.nodes and len(bosses) != 1:
            raise ValueError(f"Floor {self.floor} must hold exactly one boss node.")

    @property
    def boss_node(self) -> Node:
        return next(n for n in self.nodes.values() if n.node_type == NodeType.BOSS)

    def nodes_with_status(self, status: NodeStatus) -> list[Node]:
        return [n for n in self.nodes.values() if n.status == status]


# =============================================================================
# Generation
# =============================================================================


def generate_encounter_data(
    node_type: NodeType,
    floor: int,
    rng: random.Random | None = None,
) -> EncounterData:
    """
    Builds the payload of a node.

    Args:
        node_type (NodeType): The node type.
        floor (int): The floor number.
        rng (random.Random | None): An optional injected random source.

    Returns:
        EncounterData: Random common enemies for combat, the floor boss for
        boss, a lore id for memory and story, a seed for shop.

    """
    rng = get_rng(rng)
    if node_type == NodeType.COMBAT:
        pool = ContentRepository().list_common_enemy_ids()
        count = rng.randint(MIN_COMBAT_ENEMIES, MAX_COMBAT_ENEMIES)
        return EncounterData(enemy_ids=[rng.choice(pool) for _ in range(count)])
    if node_type == NodeType.BOSS:
        return EncounterData(enemy_ids=[ContentRepository().get_boss_for_floor(floor).id])
    if node_type == NodeType.MEMORY:
        return EncounterData(lore_id=f"lore_floor_{floor}_memory")
    if node_type == NodeType.STORY:
        variant = rng.randrange(STORY_VARIANTS)
        return EncounterData(lore_id=f"lore_floor_{floor}_story_{variant}")
    if node_type == NodeType.SHOP:
        return EncounterData(shop_seed=rng.randint(1, SHOP_SEED_LIMIT - 1))
    return EncounterData()


def generate_floor_map(floor: int, rng: random.Random | None = None) -> FloorMap:
    """
    Generates the node graph of a floor.

    The entrance is always a combat node, available from the start, and
    takes one of the floor's combat slots. The remaining node types are
    shuffled and hidden behind it, so every floor holds exactly one boss.

    Args:
        floor (int): The floor number. Unknown floors use floor 1's layout.
        rng (random.Random | None): An optional injected random source.

    Returns:
        FloorMap: The new floor map.

    """
    rng = get_rng(rng)
    composition = dict(FLOOR_COMPOSITION.get(floor, FLOOR_COMPOSITION[1]))
    composition[NodeType.COMBAT] -= 1

    node_types = [t for t, count in composition.items() for _ in range(count)]
    rng.shuffle(node_types)

    entrance = Node(
        id=ENTRANCE_NODE_ID,
        node_type=NodeType.COMBAT,
        status=NodeStatus.AVAILABLE,
        encounter=generate_encounter_data(NodeType.COMBAT, floor, rng),
    )
    nodes = {entrance.id: entrance}
    for index, node_type in enumerate(node_types, start=1):
        node = Node(
            id=f"node_{index}",
            node_type=node_type,
            encounter=generate_encounter_data(node_type, floor, rng),
        )
        nodes[node.id] = node

    log_debug("Generated floor map", {"floor": floor, "nodes": len(nodes)})
    return FloorMap(floor=floor, nodes=nodes)


# =============================================================================
# Progression
# =============================================================================


def roll_path_count(rng: random.Random | None = None) -> int:
    """Draws how many new paths a completed node opens (1: 40%, 2: 40%, 3: 20%)."""
    roll = get_rng(rng).random() * 100
    cumulative = 0
    for count, weight in PATH_COUNT_WEIGHTS:
        cumulative += weight
        if roll < cumulative:
            return count
    return PATH_COUNT_WEIGHTS[-1][0]


def _reveal_boss(floor_map: FloorMap, rng: random.Random) -> None:
    boss = floor_map.boss_node
    if not boss.advance_to(NodeStatus.AVAILABLE):
        return
    connectors = [
        n
        for n in floor_map.nodes_with_status(NodeStatus.AVAILABLE)
        if n.node_type != NodeType.BOSS
    ]
    for connector in rng.sample(connectors, min(BOSS_PATHS, len(connectors))):
        connector.connect(boss.id)
    log_debug("Boss revealed", {"floor": floor_map.floor, "paths": len(connectors)})


def unlock_paths_from_node(
    node_id: str,
    floor_map: FloorMap,
    rng: random.Random | None = None,
) -> FloorMap:
    """
    Completes a node and opens new paths from it.

    Args:
        node_id (str): The node that was just completed.
        floor_map (FloorMap): The floor map, updated in place.
        rng (random.Random | None): An optional injected random source.

    Returns:
        FloorMap: The same floor map, for chaining.

    """
    rng = get_rng(rng)
    source = floor_map.nodes.get(node_id)
    if source is None or source.status == NodeStatus.HIDDEN:
        log_warning(
            "Cannot complete a node that is unknown or hidden.",
            {"node_id": node_id, "floor": floor_map.floor},
        )
        return floor_map

    source.advance_to(NodeStatus.COMPLETED)
    path_count = roll_path_count(rng)

    hidden = floor_map.nodes_with_status(NodeStatus.HIDDEN)
    if not hidden:
        floor_map.boss_node.advance_to(NodeStatus.AVAILABLE)
        return floor_map

    for target in rng.sample(hidden, min(path_count, len(hidden))):
        source.connect(target.id)
        target.advance_to(NodeStatus.AVAILABLE)

    exposed = len(floor_map.nodes) - len(floor_map.nodes_with_status(NodeStatus.HIDDEN))
    if exposed * 100 >= BOSS_REVEAL_THRESHOLD_PERCENT * len(floor_map.nodes):
        _reveal_boss(floor_map, rng)
    return floor_map


def is_floor_complete(floor_map: FloorMap) -> bool:
    """True once the floor's boss node is completed."""
    return floor_map.boss_node.status == NodeStatus.COMPLETED


def get_available_nodes(floor_map: FloorMap) -> list[Node]:
    return floor_map.nodes_with_status(NodeStatus.AVAILABLE)
