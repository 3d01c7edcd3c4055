"""
Combat session module for the descent engine.

Owns the mutable state of one encounter (rosters, SP, the action queue,
the combat log and the threat trackers) and drives it through the
player-turn, resolving and ended phases.
"""

import random
from collections.abc import Sequence

from actions.ability import Ability
from actions.action_resolver import find_combatant, resolve_action
from actions.combat_action import ActionResult, CombatAction
from core.calculations import calculate_initiative, calculate_sp_regen
from core.constants import (
    DEFEND_ABILITY_ID,
    MAX_SP,
    STARTING_SP,
    CombatOutcome,
    CombatStatus,
    ItemType,
)
from core.content import ContentRepository
from core.error_handling import ERROR_HANDLER, CombatStateError, ErrorSeverity
from core.logging import log_debug
from effects.status_ledger import is_on_cooldown, process_status_effects, tick_cooldowns
from entities.combatant import Combatant
from items.item import Item
from items.item_effects import ItemUseResult, apply_combat_item

from .combat_engine import (
    check_combat_end,
    generate_action_offer,
    generate_enemy_actions,
    sort_action_queue,
)


class CombatSession:
    """Manages the flow of one combat encounter.

    The session is the single writer of its combatants while the encounter
    lasts. Every operation checks the current phase first and raises
    CombatStateError when called out of order.
    """

    def __init__(
        self,
        players: Sequence[Combatant],
        enemies: Sequence[Combatant],
        rng: random.Random | None = None,
    ):
        """Initialize the session with both rosters.

        Args:
            players (Sequence[Combatant]): The active party.
            enemies (Sequence[Combatant]): The enemies of the encounter.
            rng (random.Random | None): An optional injected random source.

        """
        self.players: list[Combatant] = list(players)
        self.enemies: list[Combatant] = list(enemies)
        self.rng = rng

        self.round: int = 1
        self.current_sp: int = STARTING_SP
        self.max_sp: int = MAX_SP
        self.sp_regen: int = calculate_sp_regen(len(self.players), self._dead_players())

        self.action_queue: list[CombatAction] = []
        self.combat_log: list[str] = []
        self.offered_actions: list[Ability] = []
        self.defend_active: bool = False
        self.status: CombatStatus = CombatStatus.PLAYER_TURN
        self.outcome: CombatOutcome = CombatOutcome.ONGOING

        # Damage dealt and healing done, keyed by the acting combatant.
        self.damage_this_round: dict[str, int] = {}
        self.healing_this_round: dict[str, int] = {}
        self.damage_last_round: dict[str, int] = {}
        self.healing_last_round: dict[str, int] = {}

        # SP paid per queued action id, refunded when defend clears the queue.
        self.sp_spent: dict[str, int] = {}
        self.free_next_ability: bool = False
        self.revive_used: bool = False

    # =========================================================================
    # Queries
    # =========================================================================

    def _dead_players(self) -> int:
        return sum(1 for p in self.players if not p.is_alive)

    @property
    def living_players(self) -> list[Combatant]:
        return [p for p in self.players if p.is_alive]

    @property
    def living_enemies(self) -> list[Combatant]:
        return [e for e in self.enemies if e.is_alive]

    @property
    def is_over(self) -> bool:
        return self.status == CombatStatus.ENDED

    def _require_status(self, operation: str, *allowed: CombatStatus) -> None:
        if self.status not in allowed:
            raise CombatStateError(
                f"Cannot {operation} while combat is in phase '{self.status.value}'."
            )

    def _soft_fail(self, message: str, context: dict) -> None:
        self.combat_log.append(message)
        ERROR_HANDLER.handle(message, ErrorSeverity.LOW, context)

    # =========================================================================
    # Player Turn
    # =========================================================================

    def queue_player_action(
        self,
        ability_id: str,
        actor_ids: Sequence[str],
        target_ids: Sequence[str] = (),
    ) -> bool:
        """Queues an ability for the party, paying its SP cost.

        Args:
            ability_id (str): The ability to queue.
            actor_ids (Sequence[str]): The participating party members. The
                first one is the primary actor, whose initiative is used.
            target_ids (Sequence[str]): The chosen targets.

        Returns:
            bool: True if the action was queued, False on a soft failure.

        Raises:
            CatalogLookupError: If the ability id is unknown.
            CombatStateError: If it is not the player's turn, the ability is
                not in this round's offer, or a participant has it on
                cooldown.

        """
        self._require_status("queue an action", CombatStatus.PLAYER_TURN)
        ability = ContentRepository().get_ability(ability_id)
        if ability.id not in {a.id for a in self.offered_actions}:
            raise CombatStateError(f"Cannot queue {ability.name}: it is not offered this round.")
        cooling = [
            p.id for p in self.players
            if p.id in actor_ids and is_on_cooldown(p, ability.id)
        ]
        if cooling:
            raise CombatStateError(
                f"Cannot queue {ability.name}: on cooldown for {', '.join(cooling)}."
            )

        primary = find_combatant(actor_ids[0], self.players) if actor_ids else None
        if primary is None or not primary.is_alive:
            self._soft_fail(
                "Actor not found",
                {"ability_id": ability_id, "actor_ids": ",".join(actor_ids)},
            )
            return False

        cost = 0 if self.free_next_ability else ability.sp_cost
        if self.current_sp < cost:
            self._soft_fail(
                f"Not enough SP! Need {cost}, have {self.current_sp}",
                {"ability_id": ability_id},
            )
            return False

        action = CombatAction(
            ability_id=ability.id,
            actor_id=primary.id,
            actor_ids=list(actor_ids),
            target_ids=list(target_ids),
            initiative=calculate_initiative(primary, ability.speed_mod),
        )
        self.current_sp -= cost
        self.free_next_ability = False
        self.sp_spent[action.action_id] = cost
        self.action_queue.append(action)
        self.combat_log.append(f"Queued {ability.name} ({cost} SP)")
        return True

    def queue_player_defend(self, actor_id: str) -> bool:
        """Replaces the queue with the team-wide defend.

        Args:
            actor_id (str): The party member who defends.

        Returns:
            bool: True if defend was queued.

        """
        self._require_status("defend", CombatStatus.PLAYER_TURN)
        actor = find_combatant(actor_id, self.players)
        if actor is None or not actor.is_alive:
            self._soft_fail("Actor not found", {"actor_id": actor_id})
            return False

        refund = sum(self.sp_spent.get(a.action_id, 0) for a in self.action_queue)
        self.current_sp = min(self.max_sp, self.current_sp + refund)
        self.sp_spent.clear()
        self.action_queue = []
        self.defend_active = True
        self.combat_log.append("Defend selected - action queue cleared")

        self.action_queue.append(
            CombatAction(
                ability_id=DEFEND_ABILITY_ID,
                actor_id=actor.id,
                initiative=calculate_initiative(actor, 0),
            )
        )
        self.combat_log.append("Defend action queued")
        return True

    def use_item(self, item: Item, target_id: str | None = None) -> ItemUseResult:
        """Uses a consumable during the player's turn.

        Args:
            item (Item): The item to use.
            target_id (str | None): The party member it is used on.

        Returns:
            ItemUseResult: The outcome. On success, SP and the free-ability
            flag have already been applied to the session.

        """
        self._require_status("use an item", CombatStatus.PLAYER_TURN)
        target = find_combatant(target_id, self.players) if target_id else None

        if item.item_type == ItemType.RESURRECT and self.revive_used:
            result = ItemUseResult(
                success=False,
                log=[f"{item.name} can only be used once per combat!"],
            )
        else:
            result = apply_combat_item(item, target, self.players)

        if result.success:
            self.current_sp = min(self.max_sp, self.current_sp + result.sp_gained)
            self.free_next_ability = self.free_next_ability or result.free_next_ability
            self.revive_used = self.revive_used or result.revived
        else:
            ERROR_HANDLER.handle(
                result.log[0] if result.log else f"Could not use {item.name}",
                ErrorSeverity.LOW,
                {"item": item.id},
            )
        self.combat_log.extend(result.log)
        return result

    def commit_player_actions(self, allow_empty: bool = False) -> bool:
        """Generates enemy actions, merges and sorts the queue.

        Args:
            allow_empty (bool): Whether the party may pass without acting.

        Returns:
            bool: True if the session entered the resolving phase.

        """
        self._require_status("commit actions", CombatStatus.PLAYER_TURN)
        if not self.action_queue and not allow_empty:
            self.combat_log.append("No actions queued!")
            return False

        enemy_actions = generate_enemy_actions(
            self.enemies,
            self.players,
            self.damage_last_round,
            self.healing_last_round,
            self.rng,
        )
        self.action_queue = sort_action_queue(
            [*self.action_queue, *enemy_actions],
            self.players,
            self.enemies,
        )
        self.status = CombatStatus.RESOLVING
        self.combat_log.extend(["", "--- Resolving Actions ---"])
        return True

    # =========================================================================
    # Resolution
    # =========================================================================

    def _end(self, outcome: CombatOutcome) -> None:
        self.action_queue = []
        self.status = CombatStatus.ENDED
        self.outcome = outcome
        self.combat_log.extend(["", f"*** {outcome.value.upper()} ***"])
        log_debug("Combat ended", {"outcome": outcome.value, "round": self.round})

    def resolve_next_action(self) -> ActionResult | None:
        """Resolves the next queued action.

        When the queue is already empty, the round is advanced instead.

        Returns:
            ActionResult | None: The result, or None if the round advanced.

        """
        self._require_status("resolve actions", CombatStatus.RESOLVING)
        if not self.action_queue:
            self.next_round()
            return None

        action = self.action_queue.pop(0)
        result = resolve_action(
            action,
            self.players,
            self.enemies,
            self.defend_active,
            self.rng,
        )
        if result.total_damage:
            self.damage_this_round[action.actor_id] = (
                self.damage_this_round.get(action.actor_id, 0) + result.total_damage
            )
        if result.total_healing:
            self.healing_this_round[action.actor_id] = (
                self.healing_this_round.get(action.actor_id, 0) + result.total_healing
            )
        self.combat_log.extend(result.log)

        outcome = check_combat_end(self.players, self.enemies)
        if outcome != CombatOutcome.ONGOING:
            self._end(outcome)
        return result

    def next_round(self) -> None:
        """Closes the current round and opens the next one.

        Ticks statuses and cooldowns, checks for the end of combat,
        regenerates SP, clears defend, rotates the threat trackers and
        builds the new action offer.
        """
        self._require_status("advance the round", CombatStatus.RESOLVING)
        if self.action_queue:
            raise CombatStateError("Cannot advance the round with actions still queued.")

        by_id = {c.id: c for c in [*self.players, *self.enemies]}
        status_log: list[str] = []
        for tick in process_status_effects([*self.players, *self.enemies]):
            name = by_id[tick.combatant_id].name
            if tick.damage > 0:
                status_log.append(f"{name} takes {tick.damage} damage from status effects")
            if tick.healing > 0:
                status_log.append(f"{name} heals {tick.healing} HP from status effects")
        self.combat_log.extend(status_log)

        for combatant in [*self.players, *self.enemies]:
            if combatant.is_alive:
                tick_cooldowns(combatant)

        outcome = check_combat_end(self.players, self.enemies)
        if outcome != CombatOutcome.ONGOING:
            self._end(outcome)
            return

        self.sp_regen = calculate_sp_regen(len(self.players), self._dead_players())
        self.current_sp = min(self.max_sp, self.current_sp + self.sp_regen)
        self.round += 1
        self.defend_active = False
        self.damage_last_round = self.damage_this_round
        self.healing_last_round = self.healing_this_round
        self.damage_this_round = {}
        self.healing_this_round = {}
        self.sp_spent.clear()
        self.offered_actions = generate_action_offer(self.players, self.rng)
        self.status = CombatStatus.PLAYER_TURN
        self.combat_log.extend(
            ["", f"--- Round {self.round} ---", f"SP: {self.current_sp} (+{self.sp_regen})"]
        )

    def run_round(self) -> CombatOutcome:
        """Commits the queued actions, resolves all of them and advances.

        Returns:
            CombatOutcome: The outcome after the round.

        """
        self.commit_player_actions(allow_empty=True)
        while self.status == CombatStatus.RESOLVING and self.action_queue:
            self.resolve_next_action()
        if self.status == CombatStatus.RESOLVING:
            self.next_round()
        return self.outcome


def initialize_combat(
    players: Sequence[Combatant],
    enemies: Sequence[Combatant],
    rng: random.Random | None = None,
) -> CombatSession:
    """Creates a combat session at round 1, ready for the player's turn.

    Args:
        players (Sequence[Combatant]): The active party.
        enemies (Sequence[Combatant]): The enemies of the encounter.
        rng (random.Random | None): An optional injected random source.

    Returns:
        CombatSession: The new session, with the first offer generated.

    """
    session = CombatSession(players, enemies, rng)
    session.combat_log.append("Combat begins!")
    session.offered_actions = generate_action_offer(session.players, rng)
    outcome = check_combat_end(session.players, session.enemies)
    if outcome != CombatOutcome.ONGOING:
        session._end(outcome)
    return session
