"""
Tests for the run session flow across nodes and floors.
"""

import random

import pytest
from core.constants import NodeStatus, NodeType, RestChoice
from core.error_handling import CombatStateError
from world.run_session import RunSession


@pytest.fixture
def session():
    run = RunSession(random.Random(7))
    assert run.start_run(["dranick", "eline", "grim"])
    return run


def _open_node(run, node_type):
    """Makes the first node of a type available and returns its id."""
    node = next(n for n in run.floor_map.nodes.values() if n.node_type == node_type and n.id != "node_0")
    node.status = NodeStatus.AVAILABLE
    return node.id


def _repurpose_node(run, node_type):
    """Turns a hidden non-boss node into an available node of another type."""
    node = next(
        n
        for n in run.floor_map.nodes.values()
        if n.status == NodeStatus.HIDDEN and n.node_type != NodeType.BOSS
    )
    node.node_type = node_type
    node.status = NodeStatus.AVAILABLE
    return node.id


def test_start_run(session):
    """
    Test the state of a freshly started run.
    """
    assert session.is_active
    assert session.floor == 1
    assert [m.id for m in session.party] == ["player_dranick", "player_eline", "player_grim"]
    assert all(m.level == 1 for m in session.party)
    assert session.gold == 0
    assert session.run_log[0] == "Run started!"
    assert session.checkpoint is not None
    assert session.checkpoint.floor == 1


@pytest.mark.parametrize("ids", [["dranick", "eline"], ["dranick", "dranick", "eline"], []])
def test_start_run_needs_three_distinct_characters(ids):
    run = RunSession()
    assert not run.start_run(ids)
    assert not run.is_active
    assert run.run_log[-1] == "Must select exactly 3 characters"


def test_enter_unavailable_node(session):
    hidden = next(n for n in session.floor_map.nodes.values() if n.status == NodeStatus.HIDDEN)
    assert session.enter_node(hidden.id) is None
    assert session.run_log[-1] == f"Node not available: {hidden.id}"
    assert session.enter_node("node_404") is None


def test_combat_node_victory(session):
    """
    Test that winning a fight pays gold, clears statuses and completes the node.
    """
    result = session.enter_node("node_0")
    assert result.combat_required
    assert session.combat is not None
    enemy_count = len(session.combat.enemies)
    with pytest.raises(CombatStateError):
        session.enter_node("node_0")

    session.party[0].cooldowns["final_vow"] = 2
    session.complete_combat(victory=True)
    reward = 10 + 5 * enemy_count
    assert session.gold == reward
    assert f"Victory! Earned {reward} gold." in session.run_log
    assert session.combat is None
    assert session.party[0].cooldowns == {}
    assert session.floor_map.nodes["node_0"].status == NodeStatus.COMPLETED
    assert session.floor_map.nodes_with_status(NodeStatus.AVAILABLE)


def test_combat_defeat_ends_the_run(session):
    session.enter_node("node_0")
    session.complete_combat(victory=False)
    assert not session.is_active
    assert session.victory is False
    assert "Combat failed!" in session.run_log
    assert session.run_log[-1] == "=== RUN OVER ==="


def test_complete_combat_without_a_fight(session):
    with pytest.raises(CombatStateError):
        session.complete_combat()


def test_boss_victory_and_floor_advance(session):
    """
    Test the boss reward and the level up that follows it.
    """
    assert not session.advance_floor()
    assert session.run_log[-1] == "Defeat the floor boss first!"

    boss_id = _open_node(session, NodeType.BOSS)
    session.enter_node(boss_id)
    assert len(session.combat.enemies) == 1
    session.party[1].take_damage(30)
    session.complete_combat(victory=True)
    assert session.gold == 10 + 5 + 100
    assert "=== FLOOR COMPLETE ===" in session.run_log

    assert session.advance_floor()
    assert session.floor == 2
    assert session.floor_map.floor == 2
    assert all(m.level == 2 for m in session.party)
    assert session.party[1].stats.current_hp == session.party[1].stats.max_hp
    assert "Party is now level 2!" in session.run_log
    assert session.checkpoint.floor == 2


def test_finishing_the_last_floor_wins(session):
    session.floor = 10
    session.floor_map.boss_node.status = NodeStatus.COMPLETED
    assert session.advance_floor()
    assert not session.is_active
    assert session.victory is True
    assert session.run_log[-1] == "=== RUN COMPLETE ==="


def test_memory_node(session):
    node_id = _open_node(session, NodeType.MEMORY)
    session.party[0].take_damage(50)
    session.enter_node(node_id)
    assert session.gold == 50
    assert session.party[0].stats.current_hp > 70
    assert session.floor_map.nodes[node_id].status == NodeStatus.COMPLETED


def test_rest_waits_for_a_choice(session):
    """
    Test that a rest node blocks travel until an option is picked.
    """
    node_id = _open_node(session, NodeType.REST)
    result = session.enter_node(node_id)
    assert result.choices == list(RestChoice)
    assert session.pending_rest_choices
    assert session.floor_map.nodes[node_id].status == NodeStatus.AVAILABLE

    assert session.enter_node("node_0") is None
    assert session.run_log[-1] == "Choose a rest option first!"

    session.party[0].take_damage(60)
    assert session.make_rest_choice(RestChoice.HEAL)
    assert session.pending_rest_choices == []
    assert session.party[0].stats.current_hp > 60
    assert session.floor_map.nodes[node_id].status == NodeStatus.COMPLETED
    assert not session.make_rest_choice(RestChoice.HEAL)


def test_hazard_that_wipes_the_party_ends_the_run(session):
    for member in session.party:
        member.set_current_hp(1)
    node_id = _repurpose_node(session, NodeType.HAZARD)
    session.enter_node(node_id)
    assert not session.living_party
    assert not session.is_active
    assert session.victory is False


def test_shop_purchases(repo, session):
    """
    Test gold and inventory checks when buying.
    """
    potion = repo.get_item("healing_potion")
    assert not session.purchase_item(potion)
    assert session.run_log[-1] == f"Not enough gold! Need {potion.cost}, have 0"

    session.gold = 1000
    assert session.purchase_item(potion)
    assert session.gold == 1000 - potion.cost
    assert session.run_log[-1] == f"Purchased {potion.name} for {potion.cost} gold"

    session.inventory = [potion.model_copy() for _ in range(6)]
    assert not session.purchase_item(potion)
    assert session.run_log[-1] == "Inventory full! (Max 6 items)"


def test_shop_node_stocks_the_session(session):
    node_id = _open_node(session, NodeType.SHOP)
    session.enter_node(node_id)
    assert len(session.shop_stock) == 6
    session.gold = 10_000
    bought = session.shop_stock[0]
    assert session.purchase_item(bought)
    assert bought not in session.shop_stock


def test_use_item_outside_combat(repo, session):
    session.inventory = [repo.get_item("healing_potion").model_copy()]
    result = session.use_item(0, "player_dranick")
    assert not result.success
    assert result.log[-1].endswith("can only be used in combat!")
    assert len(session.inventory) == 1

    assert not session.use_item(3).success
    assert session.run_log[-1] == "No item in slot 3"


def test_use_item_in_combat(repo, session):
    session.inventory = [repo.get_item("stamina_draught").model_copy()]
    session.enter_node("node_0")
    sp = session.combat.current_sp
    assert session.use_item(0).success
    assert session.combat.current_sp == sp + 3
    assert session.inventory == []


def test_permanent_item(repo, session):
    session.inventory = [repo.get_item("vitality_charm").model_copy()]
    assert not session.use_item(0).success
    assert session.use_item(0, "player_dranick").success
    assert session.party[0].stats.max_hp == 130
    assert session.inventory == []


def test_skip_node_item(repo, session):
    """
    Test that a skip item completes an available node but never the boss.
    """
    compass = repo.get_item("path_compass")
    session.inventory = [compass.model_copy()]
    boss_id = _open_node(session, NodeType.BOSS)
    assert not session.use_item(0, boss_id).success

    assert session.use_item(0, "node_0").success
    assert session.floor_map.nodes["node_0"].status == NodeStatus.COMPLETED
    assert session.inventory == []


def test_checkpoint_restore(session):
    """
    Test that restoring rolls the run back to the start of the floor.
    """
    session.enter_node("node_0")
    session.complete_combat(victory=False)
    assert not session.is_active

    assert session.restore_checkpoint()
    assert session.is_active
    assert session.victory is None
    assert session.gold == 0
    assert session.combat is None
    assert session.floor_map.nodes["node_0"].status == NodeStatus.AVAILABLE
    assert all(m.stats.current_hp == m.stats.max_hp for m in session.party)
    assert "=== CHECKPOINT ===" in session.run_log

    # The snapshot survives changes made after the restore.
    session.party[0].take_damage(10)
    assert session.checkpoint.party[0].stats.current_hp == session.checkpoint.party[0].stats.max_hp


def test_restore_without_checkpoint():
    run = RunSession()
    assert not run.restore_checkpoint()
