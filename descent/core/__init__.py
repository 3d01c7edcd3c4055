"""
Core system module for the descent engine.

This module contains the fundamental components of the engine, including
game constants, the calculation library, content loading, logging, error
handling and console utilities.
"""

from .calculations import (
    apply_damage_reduction,
    apply_healing_reduction,
    calculate_initiative,
    calculate_sp_regen,
    calculate_threat,
    check_evasion,
    combo_conviction,
    compare_initiative,
    distribute_healing,
    final_value,
    initiative_order_key,
    level_value,
    scale_enemy_stats,
)
from .constants import (
    AbilityClass,
    CombatOutcome,
    CombatStatus,
    EffectKind,
    Faction,
    ItemType,
    NodeStatus,
    NodeType,
    RestChoice,
    TargetType,
    is_opponent,
)
from .content import ContentRepository
from .error_handling import (
    ERROR_HANDLER,
    CatalogLookupError,
    CombatStateError,
    DescentError,
    ErrorHandler,
    ErrorSeverity,
    UnimplementedMechanicError,
)
from .logging import get_logger, setup_logging
from .utils import Singleton, cprint, crule, get_rng, make_bar, weighted_choice

__all__ = [
    # Import from calculations.py
    "apply_damage_reduction",
    "apply_healing_reduction",
    "calculate_initiative",
    "calculate_sp_regen",
    "calculate_threat",
    "check_evasion",
    "combo_conviction",
    "compare_initiative",
    "distribute_healing",
    "final_value",
    "initiative_order_key",
    "level_value",
    "scale_enemy_stats",
    # Import from constants.py
    "AbilityClass",
    "CombatOutcome",
    "CombatStatus",
    "EffectKind",
    "Faction",
    "ItemType",
    "NodeStatus",
    "NodeType",
    "RestChoice",
    "TargetType",
    "is_opponent",
    # Import from content.py
    "ContentRepository",
    # Import from error_handling.py
    "ERROR_HANDLER",
    "CatalogLookupError",
    "CombatStateError",
    "DescentError",
    "ErrorHandler",
    "ErrorSeverity",
    "UnimplementedMechanicError",
    # Import from logging.py
    "get_logger",
    "setup_logging",
    # Import from utils.py
    "Singleton",
    "cprint",
    "crule",
    "get_rng",
    "make_bar",
    "weighted_choice",
]
