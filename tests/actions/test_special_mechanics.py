"""
Tests for the special-mechanic dispatcher and its handlers.
"""

import pytest
from actions.ability import Ability, AbilityEffect, SpecialMechanic
from actions.action_resolver import resolve_ability
from actions.combat_action import ActionResult
from actions.effect_context import EffectContext
from actions.special_mechanics import MECHANIC_HANDLERS, dispatch_special_mechanic, is_implemented
from core.constants import AbilityClass, EffectKind, Faction, TargetType
from core.error_handling import UnimplementedMechanicError
from effects.status_effect import StatusEffectApplication
from effects.status_ledger import apply_status_effect, set_cooldown


def _ability(mechanic, target_type=TargetType.SINGLE_ENEMY, kind=EffectKind.DAMAGE, set_value=10):
    return Ability(
        id=f"test_{mechanic.value}",
        name="Test",
        ability_class=AbilityClass.STANDARD,
        owners=("hero",),
        target_type=target_type,
        effects=(AbilityEffect(kind=kind, set_value=set_value, special_mechanic=mechanic),),
    )


@pytest.fixture
def party(make_combatant):
    # CON 10 at level 1: a set value of 10 rolls 15.
    return [
        make_combatant("hero", conviction=10, current_hp=50),
        make_combatant("ally", conviction=10, current_hp=30),
    ]


@pytest.fixture
def foes(make_combatant):
    return [
        make_combatant("e1", faction=Faction.ENEMY, hp=100, speed=2),
        make_combatant("e2", faction=Faction.ENEMY, hp=100, current_hp=60, speed=9),
    ]


def test_every_mechanic_has_a_handler():
    """
    Test that the dispatcher covers the whole closed set.
    """
    assert set(MECHANIC_HANDLERS) == set(SpecialMechanic)


def test_dispatch_raises_for_unimplemented(party, foes):
    """
    Test that unimplemented mechanics raise a dedicated error.
    """
    mechanic = SpecialMechanic.SET_ALL_SPD_TO_1
    assert not is_implemented(mechanic)
    ability = _ability(mechanic)
    ctx = EffectContext(
        actor=party[0],
        ability=ability,
        effect=ability.effects[0],
        targets=[foes[0]],
        allies=party,
        opponents=foes,
        value=15,
        conviction=10,
        defend_active=False,
        result=ActionResult(success=True),
    )
    with pytest.raises(UnimplementedMechanicError) as error:
        dispatch_special_mechanic(ctx)
    assert str(error.value) == "Special mechanic 'set_all_spd_to_1' not yet implemented"


def test_hit_twice(party, foes, mid_rng):
    resolve_ability(_ability(SpecialMechanic.HIT_TWICE), party[0], ["e1"], party, foes, False, mid_rng)
    assert foes[0].stats.current_hp == 70


def test_chain_hits_another_enemy_for_half(party, foes, mid_rng):
    """
    Test that the chain carries half the primary hit to another living enemy.
    """
    result = resolve_ability(
        _ability(SpecialMechanic.CHAIN_50_PERCENT), party[0], ["e1"], party, foes, False, mid_rng
    )
    assert foes[0].stats.current_hp == 85
    assert foes[1].stats.current_hp == 53
    assert "  Lightning chains to E2 for 7 damage!" in result.log


def test_guarantee_crit(party, foes, mid_rng):
    resolve_ability(_ability(SpecialMechanic.GUARANTEE_CRIT), party[0], ["e1"], party, foes, False, mid_rng)
    # 15 * 150%
    assert foes[0].stats.current_hp == 78


def test_double_if_target_full_hp(party, foes, mid_rng):
    ability = _ability(SpecialMechanic.DOUBLE_IF_TARGET_FULL_HP)
    resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    resolve_ability(ability, party[0], ["e2"], party, foes, False, mid_rng)
    assert foes[0].stats.current_hp == 70
    assert foes[1].stats.current_hp == 45


def test_ignore_armor(party, foes, mid_rng):
    apply_status_effect(foes[0], StatusEffectApplication(status_id="armor", duration=3, magnitude=10))
    resolve_ability(_ability(SpecialMechanic.IGNORE_ARMOR), party[0], ["e1"], party, foes, False, mid_rng)
    assert foes[0].stats.current_hp == 85


def test_heal_lowest_ally_half_damage(party, foes, mid_rng):
    """
    Test that the lowest-HP ally heals half of the damage dealt.
    """
    ability = _ability(SpecialMechanic.HEAL_LOWEST_ALLY_50_PERCENT_DAMAGE, TargetType.ALL_ENEMIES, EffectKind.MIXED)
    resolve_ability(ability, party[0], [], party, foes, False, mid_rng)
    assert foes[0].stats.current_hp == 85
    assert foes[1].stats.current_hp == 45
    # 30 damage dealt, 15 healing to the ally at 30 HP.
    assert party[1].stats.current_hp == 45
    assert party[0].stats.current_hp == 50


def test_damage_enemies_heal_allies_same_amount(party, foes, mid_rng):
    ability = _ability(
        SpecialMechanic.DAMAGE_ALL_ENEMIES_HEAL_ALL_ALLIES_SAME_AMOUNT,
        TargetType.ALL,
        EffectKind.MIXED,
    )
    resolve_ability(ability, party[0], [], party, foes, False, mid_rng)
    assert [f.stats.current_hp for f in foes] == [85, 45]
    assert [p.stats.current_hp for p in party] == [65, 45]


def test_reset_all_cooldowns_heals_too(party, foes):
    set_cooldown(party[1], "something", 3)
    ability = _ability(SpecialMechanic.RESET_ALL_COOLDOWNS, TargetType.ALL_ALLIES, EffectKind.MIXED, 5)
    resolve_ability(ability, party[0], [], party, foes, False)
    assert party[1].cooldowns == {}
    assert party[1].stats.current_hp == 40


def test_remove_all_debuffs(party, foes):
    apply_status_effect(party[1], StatusEffectApplication(status_id="poison", duration=3, magnitude=2))
    apply_status_effect(party[1], StatusEffectApplication(status_id="burn", duration=3, magnitude=2))
    ability = _ability(SpecialMechanic.REMOVE_ALL_DEBUFFS, TargetType.SINGLE_ALLY, EffectKind.HEAL, 5)
    resolve_ability(ability, party[0], ["ally"], party, foes, False)
    assert party[1].status_effects == []
    assert party[1].stats.current_hp == 40


def test_stun_if_below_30_percent(party, foes, mid_rng):
    foes[1].set_current_hp(40)
    ability = _ability(SpecialMechanic.STUN_IF_BELOW_30_PERCENT_HP)
    resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    resolve_ability(ability, party[0], ["e2"], party, foes, False, mid_rng)
    assert not foes[0].has_status("stunned")
    assert foes[1].has_status("stunned")


def test_target_lowest_hp_retargets(party, foes, mid_rng):
    ability = _ability(SpecialMechanic.TARGET_LOWEST_HP)
    resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    assert foes[0].stats.current_hp == 100
    assert foes[1].stats.current_hp == 45


def test_target_highest_spd_retargets(party, foes, mid_rng):
    ability = _ability(SpecialMechanic.TARGET_HIGHEST_SPD)
    resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    assert foes[1].stats.current_hp == 45


def test_heal_self_damage_dealt(party, foes, mid_rng):
    ability = _ability(SpecialMechanic.HEAL_SELF_DAMAGE_DEALT, kind=EffectKind.MIXED)
    resolve_ability(ability, party[0], ["e1"], party, foes, False, mid_rng)
    assert party[0].stats.current_hp == 65


def test_swap_hp_percentages(party, foes):
    """
    Test that the actor and target exchange HP percentages, rounding up.
    """
    actor = foes[1]  # 60%
    target = party[1]  # 30%
    ability = _ability(SpecialMechanic.SWAP_HP_PERCENTAGES, kind=EffectKind.SPECIAL)
    resolve_ability(ability, actor, ["ally"], party, foes, False)
    assert actor.stats.current_hp == 30
    assert target.stats.current_hp == 60


def test_overkill_heals_party(party, make_combatant, mid_rng):
    foes = [make_combatant("weak", faction=Faction.ENEMY, hp=100, current_hp=5)]
    ability = _ability(SpecialMechanic.HEAL_PARTY_IF_KILL_OVERKILL)
    result = resolve_ability(ability, party[0], ["weak"], party, foes, False, mid_rng)
    assert not foes[0].is_alive
    # Overkill of 10 split across the two living allies.
    assert party[0].stats.current_hp == 55
    assert party[1].stats.current_hp == 35
    assert "  Weak has been defeated!" in result.log


def test_low_hp_raises_empowered_magnitude(party, foes):
    """
    Test that below half HP the actor's empowered magnitude grows by 3.
    """
    ability = Ability(
        id="test_fury",
        name="Fury",
        ability_class=AbilityClass.STANDARD,
        owners=("ally",),
        target_type=TargetType.SELF,
        effects=(
            AbilityEffect(
                kind=EffectKind.BUFF,
                set_value=0,
                special_mechanic=SpecialMechanic.GAIN_3_CON_IF_BELOW_50_PERCENT_HP,
                status_effects=(StatusEffectApplication(status_id="empowered", duration=3, magnitude=3),),
            ),
        ),
    )
    # Ally sits at 30% HP, hero at exactly 50%.
    result = resolve_ability(ability, party[1], [], party, foes, False)
    assert party[1].get_status_magnitude("empowered") == 6
    assert "  Ally's empowerment deepens! (+3)" in result.log

    result = resolve_ability(ability, party[0], [], party, foes, False)
    assert party[0].get_status_magnitude("empowered") == 3
    assert not any("deepens" in line for line in result.log)
