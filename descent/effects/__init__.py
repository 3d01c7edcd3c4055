"""
Status effects module for the descent engine.

This module contains the status effect models and the ledger that ticks,
stacks and cancels them, together with the per-ability cooldown counters.
"""

from .status_effect import ActiveStatusEffect, StatusEffectApplication
from .status_ledger import (
    StatusTickResult,
    apply_status_effect,
    cancel_opposite_effects,
    clear_status_effects,
    is_on_cooldown,
    process_status_effects,
    reduce_cooldowns,
    remove_all_buffs,
    remove_all_debuffs,
    reset_all_cooldowns,
    set_cooldown,
    tick_cooldowns,
    tick_status_effects,
)

__all__ = [
    # Import from status_effect.py
    "ActiveStatusEffect",
    "StatusEffectApplication",
    # Import from status_ledger.py
    "StatusTickResult",
    "apply_status_effect",
    "cancel_opposite_effects",
    "clear_status_effects",
    "is_on_cooldown",
    "process_status_effects",
    "reduce_cooldowns",
    "remove_all_buffs",
    "remove_all_debuffs",
    "reset_all_cooldowns",
    "set_cooldown",
    "tick_cooldowns",
    "tick_status_effects",
]
