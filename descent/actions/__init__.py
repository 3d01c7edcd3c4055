"""
Actions module for the descent engine.

Contains ability definitions, the closed set of special mechanics and their
dispatcher, and the resolver that executes queued combat actions.
"""

from .ability import Ability, AbilityEffect, SpecialMechanic
from .action_resolver import find_combatant, resolve_ability, resolve_action, resolve_targets
from .combat_action import ActionResult, CombatAction
from .effect_context import EffectContext, resolve_standard_effect
from .special_mechanics import MECHANIC_HANDLERS, dispatch_special_mechanic, is_implemented

__all__ = [
    # Import from ability.py
    "Ability",
    "AbilityEffect",
    "SpecialMechanic",
    # Import from action_resolver.py
    "find_combatant",
    "resolve_ability",
    "resolve_action",
    "resolve_targets",
    # Import from combat_action.py
    "ActionResult",
    "CombatAction",
    # Import from effect_context.py
    "EffectContext",
    "resolve_standard_effect",
    # Import from special_mechanics.py
    "MECHANIC_HANDLERS",
    "dispatch_special_mechanic",
    "is_implemented",
]
