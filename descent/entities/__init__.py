"""
Entities module for the descent engine.

Contains the catalog definitions of characters and enemies, the Combatant
model that takes part in fights, and the factories that build combatants.
"""

from .combatant import Combatant, CombatantStats
from .combatant_factory import (
    create_boss_combatant,
    create_enemy_combatant,
    create_player_combatant,
)
from .definitions import (
    AIProfile,
    AbilityWeights,
    BaseStats,
    CharacterDefinition,
    EnemyDefinition,
    ThreatWeights,
)

__all__ = [
    # Import from combatant.py
    "Combatant",
    "CombatantStats",
    # Import from combatant_factory.py
    "create_boss_combatant",
    "create_enemy_combatant",
    "create_player_combatant",
    # Import from definitions.py
    "AIProfile",
    "AbilityWeights",
    "BaseStats",
    "CharacterDefinition",
    "EnemyDefinition",
    "ThreatWeights",
]
