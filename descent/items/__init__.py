"""
Items module for the descent engine.

Contains the item catalog model, seeded shop inventories and the effects of
using items in and out of combat.
"""

from .item import Item
from .item_effects import ItemUseResult, apply_combat_item, apply_permanent_item
from .shop import generate_shop_inventory, price_for_floor

__all__ = [
    # Import from item.py
    "Item",
    # Import from item_effects.py
    "ItemUseResult",
    "apply_combat_item",
    "apply_permanent_item",
    # Import from shop.py
    "generate_shop_inventory",
    "price_for_floor",
]
