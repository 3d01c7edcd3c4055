"""
Combatant factory module for the descent engine.

Builds combatants from roster ids: party members at a given level, common
enemies scaled for a floor, and the unscaled boss of a floor.
"""

import uuid

from core.calculations import scale_enemy_stats
from core.constants import Faction
from core.content import ContentRepository
from core.error_handling import ensure_int_in_range, require_non_empty_string

from .combatant import Combatant, CombatantStats
from .definitions import BaseStats, EnemyDefinition


def _instance_id(prefix: str, source_id: str) -> str:
    return f"{prefix}_{source_id}_{uuid.uuid4().hex[:8]}"


def _stats_from(base: BaseStats) -> CombatantStats:
    return CombatantStats(
        hp=base.hp,
        max_hp=base.hp,
        current_hp=base.hp,
        conviction=base.conviction,
        speed=base.speed,
    )


def create_player_combatant(
    character_id: str,
    level: int = 1,
    instance_id: str | None = None,
) -> Combatant:
    """
    Creates a party member at full HP.

    Args:
        character_id (str): The roster id of the character.
        level (int): The character level. Defaults to 1.
        instance_id (str | None): An explicit combatant id.

    Returns:
        Combatant: The new party member.

    Raises:
        CatalogLookupError: If the character id is unknown.

    """
    require_non_empty_string(character_id, "character_id")
    level = ensure_int_in_range(level, "level", 1, context={"character_id": character_id})
    character = ContentRepository().get_character(character_id)
    return Combatant(
        id=instance_id or _instance_id("player", character_id),
        name=character.name,
        faction=Faction.PLAYER,
        character_id=character.id,
        stats=_stats_from(character.base_stats),
        level=level,
    )


def _enemy_combatant(
    definition: EnemyDefinition,
    base: BaseStats,
    level: int,
    instance_id: str | None,
) -> Combatant:
    return Combatant(
        id=instance_id or _instance_id("enemy", definition.id),
        name=definition.name,
        faction=Faction.ENEMY,
        enemy_id=definition.id,
        stats=_stats_from(base),
        level=level,
    )


def create_enemy_combatant(
    enemy_id: str,
    floor: int,
    instance_id: str | None = None,
) -> Combatant:
    """
    Creates a common enemy with stats scaled for the floor.

    Args:
        enemy_id (str): The roster id of the enemy.
        floor (int): The floor number, also used as the enemy level.
        instance_id (str | None): An explicit combatant id.

    Returns:
        Combatant: The new enemy.

    Raises:
        CatalogLookupError: If the enemy id is unknown.

    """
    require_non_empty_string(enemy_id, "enemy_id")
    definition = ContentRepository().get_enemy(enemy_id)
    scaled = scale_enemy_stats(definition.base_stats, floor)
    return _enemy_combatant(definition, scaled, floor, instance_id)


def create_boss_combatant(floor: int, instance_id: str | None = None) -> Combatant:
    """
    Creates the boss guarding a floor. Bosses are not scaled.

    Args:
        floor (int): The floor number, also used as the boss level.
        instance_id (str | None): An explicit combatant id.

    Returns:
        Combatant: The new boss.

    Raises:
        CatalogLookupError: If no boss guards the floor.

    """
    definition = ContentRepository().get_boss_for_floor(floor)
    return _enemy_combatant(definition, definition.base_stats, floor, instance_id)
