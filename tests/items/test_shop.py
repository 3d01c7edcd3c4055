"""
Tests for shop stock generation.
"""

import pytest
from items.shop import SeededShopRandom, generate_shop_inventory, price_for_floor


def test_seeded_generator_sequence():
    """
    Test the linear congruential sequence of the shop generator.
    """
    source = SeededShopRandom(1)
    assert source.random() == pytest.approx(58598 / 233280)
    assert source.state == 58598
    values = [source.random() for _ in range(100)]
    assert all(0 <= v < 1 for v in values)


@pytest.mark.parametrize("cost, floor, expected", [(50, 1, 50), (50, 2, 55), (75, 5, 105), (125, 10, 237)])
def test_price_for_floor(cost, floor, expected):
    assert price_for_floor(cost, floor) == expected


def test_same_seed_same_stock():
    """
    Test that a seeded shop always offers the same items at the same prices.
    """
    first = generate_shop_inventory(3, seed=424242)
    second = generate_shop_inventory(3, seed=424242)
    assert [(i.id, i.cost) for i in first] == [(i.id, i.cost) for i in second]


def test_stock_is_distinct_and_priced(repo):
    stock = generate_shop_inventory(4, seed=17)
    assert len(stock) == 6
    assert len({i.id for i in stock}) == 6
    for item in stock:
        assert item.cost == price_for_floor(repo.get_item(item.id).cost, 4)


def test_stock_items_are_independent_copies(repo):
    stock = generate_shop_inventory(2, seed=5)
    original = repo.get_item(stock[0].id).cost
    stock[0].cost = original + 1
    assert repo.get_item(stock[0].id).cost == original


def test_unseeded_stock_uses_the_random_source(fixed_rng):
    stock = generate_shop_inventory(1, rng=fixed_rng(0.0))
    assert len(stock) == 6
    # Always popping index 0 walks the catalog in order.
    assert [i.id for i in stock][:2] == ["healing_potion", "stamina_draught"]
