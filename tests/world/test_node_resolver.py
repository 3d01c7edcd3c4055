"""
Tests for node resolution and the party-wide node effects.
"""

import pytest
from core.constants import Faction, NodeType, RestChoice
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect, set_cooldown
from world.map_generator import EncounterData, Node
from world.node_resolver import (
    apply_hazard_damage,
    apply_memory_healing,
    apply_rest_choice,
    enter_node,
    get_combat_enemies,
    hazard_damage_for_floor,
)


@pytest.fixture
def party(make_combatant):
    return [
        make_combatant("hero", hp=100, current_hp=50),
        make_combatant("ally", hp=80, current_hp=40),
        make_combatant("fallen", hp=60, current_hp=0),
    ]


def _node(node_type, **encounter):
    return Node(id="n", node_type=node_type, encounter=EncounterData(**encounter))


@pytest.mark.parametrize("node_type", [NodeType.COMBAT, NodeType.BOSS])
def test_fight_nodes_require_combat(node_type):
    result = enter_node(_node(node_type), 1)
    assert result.combat_required
    assert not result.completed


def test_memory_node():
    result = enter_node(_node(NodeType.MEMORY, lore_id="lore_floor_2_memory"), 2)
    assert result.completed
    assert result.rewards.gold == 50
    assert result.rewards.lore_id == "lore_floor_2_memory"


def test_story_node():
    result = enter_node(_node(NodeType.STORY), 4)
    assert result.rewards.memory_fragments == 10
    assert result.rewards.lore_id


def test_rest_node_offers_every_choice():
    result = enter_node(_node(NodeType.REST), 1)
    assert result.completed
    assert result.choices == [RestChoice.HEAL, RestChoice.CLEANSE, RestChoice.COOLDOWNS]


def test_shop_node_uses_its_seed():
    first = enter_node(_node(NodeType.SHOP, shop_seed=99), 3)
    second = enter_node(_node(NodeType.SHOP, shop_seed=99), 3)
    assert len(first.shop_stock) == 6
    assert [i.id for i in first.shop_stock] == [i.id for i in second.shop_stock]


@pytest.mark.parametrize("floor, expected", [(1, 17), (3, 21), (10, 35)])
def test_hazard_damage_for_floor(floor, expected):
    assert hazard_damage_for_floor(floor) == expected


def test_hazard_node_reports_damage_and_rare_item(fixed_rng):
    """
    Test that a hazard reports its damage and, on a low roll, a rare item.
    """
    result = enter_node(_node(NodeType.HAZARD), 3, fixed_rng(0.0))
    assert result.rewards.damage == 21
    assert len(result.rewards.items) == 1
    assert result.rewards.items[0].cost >= 100

    empty = enter_node(_node(NodeType.HAZARD), 3, fixed_rng(0.5))
    assert empty.rewards.items == []


def test_hazard_damage_is_split_over_the_living(party):
    lost = apply_hazard_damage(party, 21)
    assert lost == {"hero": 10, "ally": 10}
    assert party[0].stats.current_hp == 40
    assert party[2].stats.current_hp == 0


def test_hazard_damage_without_survivors(make_combatant):
    assert apply_hazard_damage([make_combatant("gone", current_hp=0)], 30) == {}


def test_memory_healing(party):
    """
    Test that memory healing draws on the living members' max HP only.
    """
    healed = apply_memory_healing(party)
    assert healed == {"hero": 18, "ally": 18}
    assert party[0].stats.current_hp == 68
    assert party[1].stats.current_hp == 58
    assert not party[2].is_alive


def test_rest_heal(party):
    log = apply_rest_choice(RestChoice.HEAL, party)
    assert log[0] == "Rest: Heal 40% max HP for the party"
    assert party[0].stats.current_hp == 86
    assert party[1].stats.current_hp == 76
    assert "  Hero heals 36 HP!" in log


def test_rest_cleanse(party):
    apply_status_effect(party[0], StatusEffectApplication(status_id="poison", duration=3, magnitude=2))
    apply_status_effect(party[0], StatusEffectApplication(status_id="empowered", duration=3, magnitude=2))
    log = apply_rest_choice(RestChoice.CLEANSE, party)
    assert [e.status_id for e in party[0].status_effects] == ["empowered"]
    assert len(log) == 2


def test_rest_cooldowns(party):
    """
    Test that resting takes one round off every cooldown.
    """
    set_cooldown(party[0], "final_vow", 3)
    set_cooldown(party[0], "bonebreaker_mace", 1)
    log = apply_rest_choice(RestChoice.COOLDOWNS, party)
    assert log[0] == "Rest: Reduce all cooldowns by 1"
    assert party[0].cooldowns == {"final_vow": 2}


def test_get_combat_enemies(repo):
    """
    Test that combat nodes build scaled enemies and boss nodes the floor boss.
    """
    enemies = get_combat_enemies(_node(NodeType.COMBAT, enemy_ids=["void_archer", "void_archer"]), 5)
    assert [e.enemy_id for e in enemies] == ["void_archer", "void_archer"]
    assert len({e.id for e in enemies}) == 2
    assert all(e.faction == Faction.ENEMY and e.level == 5 for e in enemies)

    boss = get_combat_enemies(_node(NodeType.BOSS), 7)
    assert [b.enemy_id for b in boss] == [repo.get_boss_for_floor(7).id]

    assert get_combat_enemies(_node(NodeType.SHOP), 1) == []
