"""
World module for the descent engine.

Contains the floor map generator, the node resolver and the explicit run
session that carries the party from floor to floor.
"""

from .map_generator import (
    EncounterData,
    FloorMap,
    Node,
    generate_floor_map,
    get_available_nodes,
    is_floor_complete,
    unlock_paths_from_node,
)
from .node_resolver import (
    NodeResult,
    NodeRewards,
    apply_hazard_damage,
    apply_memory_healing,
    apply_rest_choice,
    enter_node,
    get_combat_enemies,
)
from .run_session import RunCheckpoint, RunSession

__all__ = [
    # Import from map_generator.py
    "EncounterData",
    "FloorMap",
    "Node",
    "generate_floor_map",
    "get_available_nodes",
    "is_floor_complete",
    "unlock_paths_from_node",
    # Import from node_resolver.py
    "NodeResult",
    "NodeRewards",
    "apply_hazard_damage",
    "apply_memory_healing",
    "apply_rest_choice",
    "enter_node",
    "get_combat_enemies",
    # Import from run_session.py
    "RunCheckpoint",
    "RunSession",
]
