"""
Combat module for the descent engine.

Contains the stateless combat engine functions, the enemy AI and the
explicit combat session that drives an encounter round by round.
"""

from .combat_engine import (
    check_combat_end,
    generate_action_offer,
    generate_enemy_actions,
    get_available_abilities,
    sort_action_queue,
)
from .combat_session import CombatSession, initialize_combat
from .npc_ai import (
    choose_enemy_ability,
    choose_enemy_target,
    get_available_enemy_abilities,
    plan_enemy_action,
)

__all__ = [
    # Import from combat_engine.py
    "check_combat_end",
    "generate_action_offer",
    "generate_enemy_actions",
    "get_available_abilities",
    "sort_action_queue",
    # Import from combat_session.py
    "CombatSession",
    "initialize_combat",
    # Import from npc_ai.py
    "choose_enemy_ability",
    "choose_enemy_target",
    "get_available_enemy_abilities",
    "plan_enemy_action",
]
