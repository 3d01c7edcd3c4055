"""
Tests for the calculation library.
"""

import pytest
from core.calculations import (
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
from core.constants import Faction
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect
from entities.definitions import BaseStats, ThreatWeights


def _status(combatant, status_id, magnitude, duration=3):
    apply_status_effect(
        combatant,
        StatusEffectApplication(status_id=status_id, duration=duration, magnitude=magnitude),
    )


@pytest.mark.parametrize(
    "set_value, conviction, level, expected",
    [
        (12, 9, 1, 17),
        (20, 10, 5, 29),
        (15, 8, 10, 27),
        (0, 9, 3, 7),
        (10, 0, 4, 10),
    ],
)
def test_final_value_matches_level_table(set_value, conviction, level, expected):
    """
    Test that final values use the exact per-level coefficient table.
    """
    assert final_value(set_value, conviction, level) == expected


@pytest.mark.parametrize(
    "level, coefficient, expected_by_conviction",
    [
        (1, 0.5, {7: 16, 9: 17, 10: 17}),
        (2, 0.6, {7: 17, 9: 18, 10: 18}),
        (3, 0.7, {7: 17, 9: 19, 10: 19}),
        (4, 0.8, {7: 18, 9: 20, 10: 20}),
        (5, 0.9, {7: 19, 9: 21, 10: 21}),
        (6, 1.0, {7: 19, 9: 21, 10: 22}),
        (7, 1.1, {7: 20, 9: 22, 10: 23}),
        (8, 1.2, {7: 21, 9: 23, 10: 24}),
        (9, 1.3, {7: 22, 9: 24, 10: 25}),
        (10, 1.4, {7: 22, 9: 25, 10: 26}),
    ],
)
def test_final_value_for_every_table_level(level, coefficient, expected_by_conviction):
    """
    Test every level of the coefficient table against several convictions.
    """
    assert level_value(level) == pytest.approx(coefficient)
    for conviction, expected in expected_by_conviction.items():
        assert final_value(12, conviction, level) == expected


def test_level_value_extrapolates_past_table():
    """
    Test that levels beyond 10 grow by 0.1 per level from level 6.
    """
    assert level_value(1) == 0.5
    assert level_value(10) == 1.4
    assert level_value(12) == pytest.approx(1.6)
    assert final_value(0, 10, 12) == 16


def test_combo_conviction_rounds_mean_up(make_combatant):
    """
    Test that combo conviction is the ceiling of the owners' mean conviction.
    """
    a = make_combatant("a", conviction=9)
    b = make_combatant("b", conviction=8)
    c = make_combatant("c", conviction=6)
    assert combo_conviction([a, b]) == 9
    assert combo_conviction([a, b, c]) == 8
    assert combo_conviction([]) == 0


def test_initiative_includes_haste_and_fractured(make_combatant):
    """
    Test that haste adds and fractured subtracts from initiative.
    """
    hero = make_combatant("hero", speed=5)
    assert calculate_initiative(hero, 2) == 7
    _status(hero, "haste", 3)
    assert calculate_initiative(hero, 2) == 10

    other = make_combatant("other", speed=5)
    _status(other, "fractured", 2)
    assert calculate_initiative(other, 0) == 3


def test_initiative_tie_break_prefers_players(make_combatant):
    """
    Test that on equal initiative a player acts before an enemy.
    """
    player = make_combatant("z_player", hp=10)
    enemy = make_combatant("a_enemy", faction=Faction.ENEMY, hp=500)
    assert compare_initiative((5, player.id, player), (5, enemy.id, enemy)) < 0
    assert compare_initiative((5, enemy.id, enemy), (5, player.id, player)) > 0


def test_initiative_tie_break_prefers_higher_hp(make_combatant):
    """
    Test that within a faction the combatant with more HP acts first.
    """
    healthy = make_combatant("b_healthy", hp=80)
    hurt = make_combatant("a_hurt", hp=80, current_hp=20)
    assert compare_initiative((5, healthy.id, healthy), (5, hurt.id, hurt)) < 0


def test_initiative_tie_break_falls_back_to_id(make_combatant):
    """
    Test that identical initiative, faction and HP sort by actor id.
    """
    first = make_combatant("alpha")
    second = make_combatant("beta")
    assert initiative_order_key(4, first.id, first) < initiative_order_key(4, second.id, second)
    assert compare_initiative((4, first.id, first), (4, first.id, first)) == 0


def test_higher_initiative_always_first(make_combatant):
    """
    Test that higher initiative wins regardless of faction or HP.
    """
    enemy = make_combatant("enemy", faction=Faction.ENEMY, hp=1)
    player = make_combatant("player", hp=999)
    assert compare_initiative((6, enemy.id, enemy), (5, player.id, player)) < 0


@pytest.mark.parametrize("dead, expected", [(0, 6), (1, 3), (2, 1), (3, 1)])
def test_sp_regen_drops_with_deaths(dead, expected):
    """
    Test that SP regeneration loses 3 per dead member, never below 1.
    """
    assert calculate_sp_regen(3, dead) == expected


def test_distribute_healing_gives_remainder_to_lowest(make_combatant):
    """
    Test that the remainder of a healing pool goes to the lowest-HP target.
    """
    a = make_combatant("a", current_hp=50)
    b = make_combatant("b", current_hp=20)
    c = make_combatant("c", current_hp=20)
    shares = distribute_healing(10, [a, b, c])
    assert shares == {"a": 3, "b": 4, "c": 3}
    assert distribute_healing(10, []) == {}


def test_damage_reduction_armor_then_defend(make_combatant):
    """
    Test that armor is subtracted before the defend reduction is applied.
    """
    target = make_combatant("target")
    _status(target, "armor", 5)
    assert apply_damage_reduction(20, target, defend_active=False) == 15
    assert apply_damage_reduction(20, target, defend_active=True) == 10
    assert apply_damage_reduction(20, target, defend_active=True, ignore_armor=True) == 14
    assert apply_damage_reduction(3, target, defend_active=False) == 0


def test_healing_reduction_on_terrified(make_combatant):
    """
    Test that terrified targets receive half healing, floored.
    """
    target = make_combatant("target")
    assert apply_healing_reduction(15, target) == 15
    _status(target, "terrified", 1)
    assert apply_healing_reduction(15, target) == 7


def test_check_evasion_rolls_only_with_status(make_combatant, low_rng, mid_rng):
    """
    Test that evasion only triggers when the status is present and the roll succeeds.
    """
    target = make_combatant("target")
    assert not check_evasion(target, low_rng)
    _status(target, "evasion", 30)
    assert check_evasion(target, low_rng)
    assert not check_evasion(target, mid_rng)


def test_threat_prefers_taunting_target(make_combatant):
    """
    Test that taunt dominates the threat score.
    """
    weights = ThreatWeights()
    tank = make_combatant("tank", hp=200)
    mage = make_combatant("mage", hp=60)
    _status(tank, "taunt", 1)
    candidates = [tank, mage]
    tank_threat = calculate_threat(tank, weights, {}, {}, candidates)
    mage_threat = calculate_threat(mage, weights, {"mage": 40}, {}, candidates)
    assert tank_threat > mage_threat


def test_threat_counts_damage_and_lowest_hp(make_combatant):
    """
    Test the linear threat terms for damage dealt and the lowest-HP bonus.
    """
    weights = ThreatWeights()
    low = make_combatant("low", hp=10)
    high = make_combatant("high", hp=20)
    threat = calculate_threat(low, weights, {"low": 5}, {}, [low, high])
    assert threat == pytest.approx(10 * 0.3 + 5 * 1.0 + 0.5)


@pytest.mark.parametrize(
    "floor, expected",
    [
        (1, (40, 6, 5)),
        (5, (88, 9, 5)),
        (10, (160, 15, 7)),
        (42, (40, 6, 5)),
    ],
)
def test_scale_enemy_stats_floors_each_stat(floor, expected):
    """
    Test that enemy scaling floors each stat independently.
    """
    scaled = scale_enemy_stats(BaseStats(hp=40, conviction=6, speed=5), floor)
    assert (scaled.hp, scaled.conviction, scaled.speed) == expected
