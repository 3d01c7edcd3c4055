"""
Tests for the action resolver.
"""

import pytest
from actions.ability import Ability, AbilityEffect, SpecialMechanic
from actions.action_resolver import resolve_ability, resolve_action, resolve_targets
from actions.combat_action import CombatAction
from core.constants import DEFEND_ABILITY_ID, AbilityClass, EffectKind, Faction, TargetType
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect


def _ability(
    target_type=TargetType.SINGLE_ENEMY,
    kind=EffectKind.DAMAGE,
    set_value=10,
    mechanic=None,
    statuses=(),
    ability_class=AbilityClass.STANDARD,
    owners=("hero",),
    cooldown=0,
    ability_id="test_ability",
):
    return Ability(
        id=ability_id,
        name="Test Ability",
        ability_class=ability_class,
        owners=owners,
        cooldown=cooldown,
        target_type=target_type,
        effects=(
            AbilityEffect(
                kind=kind,
                set_value=set_value,
                special_mechanic=mechanic,
                status_effects=statuses,
            ),
        ),
    )


@pytest.fixture
def party(make_combatant):
    return [
        make_combatant("p1", conviction=10, current_hp=80),
        make_combatant("p2", conviction=8, current_hp=40),
    ]


@pytest.fixture
def foes(make_combatant):
    return [
        make_combatant("e1", faction=Faction.ENEMY, hp=100),
        make_combatant("e2", faction=Faction.ENEMY, hp=100),
        make_combatant("e3", faction=Faction.ENEMY, hp=100, current_hp=0),
    ]


def test_resolve_targets_by_type(party, foes):
    """
    Test target resolution relative to the actor's faction.
    """
    actor = party[0]
    single = _ability(TargetType.SINGLE_ENEMY)
    assert resolve_targets(single, actor, ["e2", "e3", "p2"], party, foes) == [foes[1]]
    area = _ability(TargetType.ALL_ENEMIES)
    assert resolve_targets(area, actor, ["e1"], party, foes) == foes[:2]
    assert resolve_targets(_ability(TargetType.SELF), actor, [], party, foes) == [actor]
    assert resolve_targets(_ability(TargetType.ALL), actor, [], party, foes) == [*party, *foes[:2]]

    # An enemy's "enemy" is the party.
    assert resolve_targets(single, foes[0], ["p2"], party, foes) == [party[1]]
    assert resolve_targets(_ability(TargetType.ALL_ALLIES), foes[0], [], party, foes) == foes[:2]


def test_no_valid_targets_aborts(party, foes):
    """
    Test that an empty target list fails without mutating anything.
    """
    result = resolve_ability(_ability(), party[0], ["e3"], party, foes, False)
    assert not result.success
    assert result.log == ["P1 uses Test Ability, but no valid targets!"]
    assert all(f.stats.current_hp == f.stats.max_hp for f in foes[:2])


def test_damage_effect_applies_damage_and_statuses(party, foes, mid_rng):
    """
    Test the standard damage handling with a status rider.
    """
    ability = _ability(
        statuses=(StatusEffectApplication(status_id="poison", duration=2, magnitude=3),)
    )
    result = resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    # 10 + ceil(10 * 0.5)
    assert foes[0].stats.current_hp == 85
    assert foes[0].has_status("poison")
    assert result.damage_per_target == {"e1": 15}
    assert result.log[0] == "P1 uses Test Ability!"
    assert "  E1 takes 15 damage! (85/100 HP)" in result.log


def test_evaded_target_takes_nothing(party, foes, low_rng):
    """
    Test that an evaded attack skips damage and statuses for that target.
    """
    apply_status_effect(foes[0], StatusEffectApplication(status_id="evasion", duration=2, magnitude=50))
    ability = _ability(
        statuses=(StatusEffectApplication(status_id="burn", duration=2, magnitude=3),)
    )
    result = resolve_ability(ability, party[0], ["e1"], party, foes, False, low_rng)
    assert result.success
    assert foes[0].stats.current_hp == 100
    assert not foes[0].has_status("burn")
    assert "  E1 evades!" in result.log


def test_defend_protects_only_the_party(party, foes, mid_rng):
    """
    Test that the team-wide defend reduces damage taken by party members.
    """
    ability = _ability(set_value=20)
    # Enemy at level 1 with CON 10: 20 + 5 = 25, reduced to 17.
    resolve_ability(ability, foes[0], ["p1"], party, foes, True, mid_rng)
    assert party[0].stats.current_hp == 80 - 17
    resolve_ability(ability, party[0], ["e2"], party, foes, True, mid_rng)
    assert foes[1].stats.current_hp == 75


def test_heal_effect_distributes(party, foes):
    """
    Test that heal effects split their total across the targets.
    """
    ability = _ability(TargetType.ALL_ALLIES, EffectKind.HEAL, set_value=6)
    # 6 + ceil(10 * 0.5) = 11 over 2 targets: 5 each, remainder to p2.
    result = resolve_ability(ability, party[0], [], party, foes, False)
    assert result.healing_per_target == {"p1": 5, "p2": 6}
    assert party[1].stats.current_hp == 46


def test_full_heal_sentinel(party, foes):
    """
    Test that a set value of 999 restores targets to full HP.
    """
    ability = _ability(TargetType.SINGLE_ALLY, EffectKind.HEAL, set_value=999)
    resolve_ability(ability, party[0], ["p2"], party, foes, False)
    assert party[1].stats.current_hp == party[1].stats.max_hp


def test_unimplemented_mechanic_falls_back(party, foes, mid_rng):
    """
    Test that a mechanic without bespoke behaviour logs a notice and still
    applies the standard handling of its kind.
    """
    ability = _ability(mechanic=SpecialMechanic.REVEAL_ENEMY_NEXT_ACTION)
    result = resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    assert result.success
    assert "  Special mechanic 'reveal_enemy_next_action' not yet implemented" in result.log
    assert foes[0].stats.current_hp == 85


def test_combo_uses_owner_conviction(make_combatant, foes, mid_rng):
    """
    Test that combos roll with the ceiling of the living owners' mean conviction.
    """
    owners = [
        make_combatant("pa", conviction=9, character_id="dranick"),
        make_combatant("pb", conviction=8, character_id="eline"),
    ]
    combo = _ability(
        ability_class=AbilityClass.DUO,
        owners=("dranick", "eline"),
        set_value=0,
    )
    resolve_ability(combo, owners[0], ["e1"], owners, foes, False, mid_rng)
    # ceil(8.5) = 9, then ceil(9 * 0.5) = 5.
    assert foes[0].stats.current_hp == 95


def test_resolve_action_soft_failures(party, foes):
    """
    Test the soft failures of resolve_action.
    """
    party[1].set_current_hp(0)
    dead = resolve_action(CombatAction(ability_id="bonebreaker_mace", actor_id="p2"), party, foes, False)
    assert not dead.success
    assert dead.log == ["Action canceled - actor is not alive"]

    missing = resolve_action(CombatAction(ability_id="nope", actor_id="p1"), party, foes, False)
    assert not missing.success
    assert missing.log == ["Ability nope not found"]


def test_resolve_action_defend(party, foes):
    """
    Test that defend succeeds without touching anyone.
    """
    result = resolve_action(CombatAction(ability_id=DEFEND_ABILITY_ID, actor_id="p1"), party, foes, False)
    assert result.success
    assert result.log == ["P1 defends! (30% damage reduction for team)"]
    assert result.damage_per_target == {}


def test_resolve_action_sets_actor_cooldown(party, foes):
    """
    Test that a successful action puts the ability on cooldown for its actor.
    """
    result = resolve_action(CombatAction(ability_id="final_vow", actor_id="p1"), party, foes, False)
    assert result.success
    assert party[0].cooldowns == {"final_vow": 2}
    assert party[0].has_status("aegis")
    assert party[0].has_status("taunt")


def test_resolve_action_sets_cooldown_on_every_combo_owner(monkeypatch, repo, make_combatant, foes, mid_rng):
    """
    Test that combo cooldowns land on every owner in the party.
    """
    combo = _ability(
        ability_class=AbilityClass.DUO,
        owners=("dranick", "eline"),
        cooldown=3,
        ability_id="test_duo",
    )
    monkeypatch.setitem(repo.combos, "test_duo", combo)
    owners = [
        make_combatant("pa", character_id="dranick"),
        make_combatant("pb", character_id="eline"),
        make_combatant("pc", character_id="grim"),
    ]
    action = CombatAction(ability_id="test_duo", actor_id="pa", actor_ids=["pa", "pb"], target_ids=["e1"])
    result = resolve_action(action, owners, foes, False, mid_rng)
    assert result.success
    assert owners[0].cooldowns == {"test_duo": 3}
    assert owners[1].cooldowns == {"test_duo": 3}
    assert owners[2].cooldowns == {}
