"""
Shop module for the descent engine.

Generates the stock of a shop node. A seeded shop always offers the same
items at the same prices, so a shop can be re-entered or restored from a
checkpoint without rerolling.
"""

import random

from core.constants import SHOP_INVENTORY_SIZE
from core.content import ContentRepository
from core.utils import get_rng

from .item import Item

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class SeededShopRandom:
    """Linear congruential generator used for shop stock."""

    def __init__(self, seed: int):
        self.state = seed

    def random(self) -> float:
        """Advances the generator and returns a float in [0, 1)."""
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS


def price_for_floor(cost: int, floor: int) -> int:
    """
    Scales a catalog price for a floor.

    Args:
        cost (int): The catalog price.
        floor (int): The floor number.

    Returns:
        int: ``floor(cost * (1 + (floor - 1) * 0.1))``, computed exactly.

    """
    return cost * (10 + floor - 1) // 10


def generate_shop_inventory(
    floor: int,
    seed: int | None = None,
    rng: random.Random | None = None,
) -> list[Item]:
    """
    Picks the distinct items a shop offers, priced for the floor.

    Args:
        floor (int): The floor the shop is on.
        seed (int | None): The shop seed. Without one, the injected or
            process-wide random source is used.
        rng (random.Random | None): An optional injected random source,
            ignored when a seed is given.

    Returns:
        list[Item]: Independent priced copies of catalog items.

    """
    source = SeededShopRandom(seed) if seed else get_rng(rng)
    remaining = ContentRepository().list_items()
    stock: list[Item] = []
    while remaining and len(stock) < SHOP_INVENTORY_SIZE:
        index = int(source.random() * len(remaining))
        item = remaining.pop(index)
        stock.append(item.priced_copy(price_for_floor(item.cost, floor)))
    return stock
