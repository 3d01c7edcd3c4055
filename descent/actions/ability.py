"""
Ability module for the descent engine.

Defines the immutable ability definitions consumed from the player, combo
and enemy catalogs, the effects they carry and the closed set of special
mechanics an effect may request.
"""

from typing import Any

from core.constants import AbilityClass, EffectKind, NiceEnum, TargetType
from effects.status_effect import StatusEffectApplication
from pydantic import BaseModel, ConfigDict, Field


class SpecialMechanic(NiceEnum):
    """Every bespoke behaviour an ability effect can ask the resolver for."""

    # Player abilities.
    HIT_TWICE = "hit_twice"
    CHAIN_50_PERCENT = "chain_50_percent"
    REVEAL_ENEMY_NEXT_ACTION = "reveal_enemy_next_action"
    REMOVE_1_DEBUFF = "remove_1_debuff"
    REMOVE_ALL_DEBUFFS = "remove_all_debuffs"
    RESET_ALL_COOLDOWNS = "reset_all_cooldowns"
    STUN_IF_BELOW_30_PERCENT_HP = "stun_if_below_30_percent_hp"
    GAIN_3_CON_IF_BELOW_50_PERCENT_HP = "gain_3_con_if_below_50_percent_hp"
    HEAL_LOWEST_ALLY_50_PERCENT_DAMAGE = "heal_lowest_ally_50_percent_damage"
    # Combos.
    IGNORE_ARMOR = "ignore_armor"
    HEAL_PARTY_IF_KILL_OVERKILL = "heal_party_if_kill_overkill"
    DOUBLE_IF_TARGET_FULL_HP = "double_if_target_full_hp"
    CAST_TWICE = "cast_twice"
    HEAL_USERS_HALF_DAMAGE = "heal_users_half_damage"
    GUARANTEE_CRIT = "guarantee_crit"
    DAMAGE_SCALES_WITH_MISSING_HP = "damage_scales_with_missing_hp"
    DAMAGE_ALL_ENEMIES_HEAL_ALL_ALLIES_SAME_AMOUNT = "damage_all_enemies_heal_all_allies_same_amount"
    FULL_HEAL_ALL_REMOVE_DEBUFFS_REGEN = "full_heal_all_remove_debuffs_regen"
    STUN_1_ROUND = "stun_1_round"
    HEAL_PARTY_50_PERCENT_TOTAL_DAMAGE = "heal_party_50_percent_total_damage"
    CRIT_IF_TARGET_DEBUFFED = "crit_if_target_debuffed"
    DAMAGE_30_HEAL_PARTY_15 = "damage_30_heal_party_15"
    RESET_SP_TO_10_NEXT_ROUND = "reset_sp_to_10_next_round"
    # Enemies and bosses.
    HEAL_SELF_SAME_AMOUNT = "heal_self_same_amount"
    REMOVE_1_BUFF_EACH = "remove_1_buff_each"
    APPLY_RANDOM_DEBUFF = "apply_random_debuff"
    PUSH_TURN_ORDER_BACK = "push_turn_order_back"
    HEAL_SELF_DAMAGE_DEALT = "heal_self_damage_dealt"
    RESET_TARGET_COOLDOWNS_NEGATIVE = "reset_target_cooldowns_negative"
    TARGET_HIGHEST_SPD = "target_highest_spd"
    TARGET_LOWEST_HP = "target_lowest_hp"
    INCREASE_BY_5_EACH_USE = "increase_by_5_each_use"
    SWAP_HP_PERCENTAGES = "swap_hp_percentages"
    DAMAGE_ON_ABILITY_USE = "damage_on_ability_use"
    PIERCE_THROUGH_LINE = "pierce_through_line"
    SET_ALL_SPD_TO_1 = "set_all_spd_to_1"
    REMOVE_ALL_BUFFS = "remove_all_buffs"
    DISABLE_1_ABILITY_THIS_COMBAT = "disable_1_ability_this_combat"
    REPEAT_LAST_ROUND = "repeat_last_round"
    DAMAGE_ALL_FULL_HEAL_SELF_ONCE = "damage_all_full_heal_self_once"
    APPLY_ALL_DEBUFFS_PERMANENT = "apply_all_debuffs_permanent"
    DISABLE_ALL_ABILITIES_EXCEPT_RETREAT = "disable_all_abilities_except_retreat"


class AbilityEffect(BaseModel):
    """One effect of an ability, processed in list order by the resolver."""

    model_config = ConfigDict(frozen=True)

    kind: EffectKind = Field(description="How the effect is handled by default.")
    set_value: int = Field(0, description="Base value before conviction scaling.")
    special_mechanic: SpecialMechanic | None = Field(
        None,
        description="Bespoke behaviour replacing the default handling.",
    )
    status_effects: tuple[StatusEffectApplication, ...] = Field(
        default_factory=tuple,
        description="Statuses applied to each affected target.",
    )


class Ability(BaseModel):
    """An immutable ability definition."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique ability id.")
    name: str = Field(description="Display name.")
    ability_class: AbilityClass = Field(description="Standard, special, duo or trio.")
    owners: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Owning character ids. Empty for enemy abilities.",
    )
    sp_cost: int = Field(0, description="SP spent when queued.", ge=0)
    speed_mod: int = Field(0, description="Added to the actor's initiative.")
    cooldown: int = Field(0, description="Rounds before the ability is offered again.", ge=0)
    target_type: TargetType = Field(description="Which combatants the ability reaches.")
    effects: tuple[AbilityEffect, ...] = Field(
        default_factory=tuple,
        description="Effects resolved in order.",
    )
    tags: tuple[str, ...] = Field(
        default_factory=tuple,
        description="AI hints such as 'healing' or 'debuff'.",
    )

    def model_post_init(self, _: Any) -> None:
        """
        Ensure combos list the right number of owners.

        Raises:
            ValueError: If a duo does not have 2 owners or a trio 3.

        """
        expected = {AbilityClass.DUO: 2, AbilityClass.TRIO: 3}.get(self.ability_class)
        if expected is not None and len(self.owners) != expected:
            raise ValueError(
                f"Ability '{self.id}' is a {self.ability_class.value} "
                f"but lists {len(self.owners)} owners."
            )

    @property
    def is_combo(self) -> bool:
        return self.ability_class.is_combo

    def has_tag(self, *tags: str) -> bool:
        return any(tag in self.tags for tag in tags)
