"""
Run session module for the descent engine.

Owns the state of one run (party, floor map, gold, inventory, the active
combat) and moves it from node to node and from floor to floor.
"""

import random
from collections.abc import Sequence

from combat.combat_session import CombatSession, initialize_combat
from core.constants import (
    ACTIVE_PARTY_SIZE,
    BOSS_GOLD_PER_FLOOR,
    COMBAT_GOLD_BASE,
    COMBAT_GOLD_PER_ENEMY,
    MAX_INVENTORY_SLOTS,
    TOTAL_FLOORS,
    CombatOutcome,
    ItemType,
    NodeStatus,
    NodeType,
    RestChoice,
)
from core.error_handling import ERROR_HANDLER, CombatStateError, ErrorSeverity
from core.logging import log_info
from effects.status_ledger import clear_status_effects, reset_all_cooldowns
from entities.combatant import Combatant
from entities.combatant_factory import create_player_combatant
from items.item import Item
from items.item_effects import ItemUseResult, apply_permanent_item
from pydantic import BaseModel, Field

from .map_generator import FloorMap, generate_floor_map, is_floor_complete, unlock_paths_from_node
from .node_resolver import (
    NodeResult,
    apply_hazard_damage,
    apply_memory_healing,
    apply_rest_choice,
    enter_node,
    get_combat_enemies,
)


class RunCheckpoint(BaseModel):
    """An in-memory snapshot of a run, taken at the start of a floor."""

    floor: int = Field(description="The floor the snapshot was taken on.")
    party: list[Combatant] = Field(description="Deep copies of the party.")
    floor_map: FloorMap = Field(description="A deep copy of the floor map.")
    gold: int = Field(0)
    memory_fragments: int = Field(0)
    inventory: list[Item] = Field(default_factory=list)


class RunSession:
    """Manages the flow of a run across floors.

    The session owns the party. While a fight is running, the party is
    shared with the active CombatSession, which is its single writer until
    complete_combat is called.
    """

    def __init__(self, rng: random.Random | None = None):
        """Initialize an empty, inactive run.

        Args:
            rng (random.Random | None): An optional injected random source.

        """
        self.rng = rng
        self.is_active: bool = False
        self.victory: bool | None = None

        self.party: list[Combatant] = []
        self.floor: int = 0
        self.floor_map: FloorMap | None = None
        self.gold: int = 0
        self.memory_fragments: int = 0
        self.inventory: list[Item] = []
        self.run_log: list[str] = []

        self.combat: CombatSession | None = None
        self.current_node_id: str | None = None
        self.pending_rest_choices: list[RestChoice] = []
        self.shop_stock: list[Item] = []
        self.checkpoint: RunCheckpoint | None = None

    # =========================================================================
    # Helpers
    # =========================================================================

    def _soft_fail(self, message: str, context: dict | None = None) -> None:
        self.run_log.append(message)
        ERROR_HANDLER.handle(message, ErrorSeverity.LOW, context)

    def _require_active(self, operation: str) -> bool:
        if not self.is_active:
            self._soft_fail(f"Cannot {operation}: no run in progress.")
            return False
        return True

    def _require_no_combat(self, operation: str) -> None:
        if self.combat is not None:
            raise CombatStateError(f"Cannot {operation} while a combat is in progress.")

    def get_party_member(self, combatant_id: str) -> Combatant | None:
        return next((m for m in self.party if m.id == combatant_id), None)

    @property
    def living_party(self) -> list[Combatant]:
        return [m for m in self.party if m.is_alive]

    # =========================================================================
    # Run Lifecycle
    # =========================================================================

    def start_run(self, character_ids: Sequence[str]) -> bool:
        """Starts a run on floor 1 with three distinct characters.

        Args:
            character_ids (Sequence[str]): The roster ids of the party.

        Returns:
            bool: True if the run started.

        Raises:
            CatalogLookupError: If a character id is unknown.

        """
        if len(character_ids) != ACTIVE_PARTY_SIZE or len(set(character_ids)) != ACTIVE_PARTY_SIZE:
            self._soft_fail(
                f"Must select exactly {ACTIVE_PARTY_SIZE} characters",
                {"character_ids": ",".join(character_ids)},
            )
            return False

        self.party = [
            create_player_combatant(cid, level=1, instance_id=f"player_{cid}")
            for cid in character_ids
        ]
        self.is_active = True
        self.victory = None
        self.gold = 0
        self.memory_fragments = 0
        self.inventory = []
        self.combat = None
        self.run_log = ["Run started!", f"Party: {', '.join(m.name for m in self.party)}"]
        self._enter_floor(1)
        log_info("Run started", {"party": ",".join(character_ids)})
        return True

    def _enter_floor(self, floor: int) -> None:
        self.floor = floor
        self.floor_map = generate_floor_map(floor, self.rng)
        self.current_node_id = None
        self.pending_rest_choices = []
        self.shop_stock = []
        self.run_log.extend(["", f"=== FLOOR {floor} ===", "The descent continues..."])
        self.save_checkpoint()

    def advance_floor(self) -> bool:
        """Levels the party up and moves to the next floor.

        Completing the last floor wins the run instead.

        Returns:
            bool: True if the run moved on, False if the floor is not done.

        """
        if not self._require_active("advance the floor"):
            return False
        self._require_no_combat("advance the floor")
        if not is_floor_complete(self.floor_map):
            self._soft_fail("Defeat the floor boss first!", {"floor": self.floor})
            return False

        if self.floor >= TOTAL_FLOORS:
            self.end_run(victory=True)
            return True

        for member in self.party:
            member.level += 1
            if member.is_alive:
                member.full_heal()
        self.run_log.append(f"Party is now level {self.party[0].level}!")
        self._enter_floor(self.floor + 1)
        return True

    def end_run(self, victory: bool) -> None:
        """Ends the run."""
        self.is_active = False
        self.victory = victory
        self.combat = None
        self.run_log.extend(["", "=== RUN COMPLETE ===" if victory else "=== RUN OVER ==="])
        log_info("Run ended", {"victory": victory, "floor": self.floor})

    # =========================================================================
    # Nodes
    # =========================================================================

    def enter_node(self, node_id: str) -> NodeResult | None:
        """Enters an available node and resolves it.

        Non-combat rewards are applied straight away. Combat and boss nodes
        start a combat session, and rest nodes wait for make_rest_choice.

        Args:
            node_id (str): The node to enter.

        Returns:
            NodeResult | None: The node result, or None on a soft failure.

        """
        if not self._require_active("enter a node"):
            return None
        self._require_no_combat("enter a node")
        if self.pending_rest_choices:
            self._soft_fail("Choose a rest option first!", {"node_id": node_id})
            return None

        node = self.floor_map.nodes.get(node_id)
        if node is None or node.status != NodeStatus.AVAILABLE:
            self._soft_fail(f"Node not available: {node_id}", {"floor": self.floor})
            return None

        result = enter_node(node, self.floor, self.rng)
        self.current_node_id = node_id
        self.floor_map.current_node_id = node_id
        self.run_log.extend(["", f"Entered {node.node_type.value} node"])

        if result.combat_required:
            enemies = get_combat_enemies(node, self.floor)
            self.combat = initialize_combat(self.party, enemies, self.rng)
            self.run_log.append(f"Enemies: {', '.join(e.name for e in enemies)}")
            return result

        rewards = result.rewards
        if node.node_type == NodeType.MEMORY:
            healed = apply_memory_healing(self.party)
            self.gold += rewards.gold
            self.run_log.append(f"Memory recovered: {rewards.lore_id}")
            self.run_log.append(
                f"The party heals {sum(healed.values())} HP and finds {rewards.gold} gold."
            )
        elif node.node_type == NodeType.SHOP:
            self.shop_stock = list(result.shop_stock)
            self.run_log.append(f"The shop offers {len(self.shop_stock)} items.")
        elif node.node_type == NodeType.REST:
            self.pending_rest_choices = list(result.choices)
            self.run_log.append("A safe place to rest. Choose one option.")
            return result
        elif node.node_type == NodeType.HAZARD:
            lost = apply_hazard_damage(self.party, rewards.damage)
            self.run_log.append(f"A trap springs! The party loses {sum(lost.values())} HP.")
            for item in rewards.items:
                if len(self.inventory) < MAX_INVENTORY_SLOTS:
                    self.inventory.append(item)
                    self.run_log.append(f"Found {item.name} among the debris!")
            if not self.living_party:
                self.end_run(victory=False)
                return result
        elif node.node_type == NodeType.STORY:
            self.memory_fragments += rewards.memory_fragments
            self.run_log.append(f"Story unlocked: {rewards.lore_id}")
            self.run_log.append(f"Gained {rewards.memory_fragments} memory fragments.")

        self.complete_node(node_id)
        return result

    def complete_node(self, node_id: str) -> None:
        """Completes a node and opens the paths leading out of it."""
        unlock_paths_from_node(node_id, self.floor_map, self.rng)
        self.current_node_id = None
        self.floor_map.current_node_id = None
        self.run_log.append("Node completed! New paths revealed.")
        if is_floor_complete(self.floor_map):
            self.run_log.extend(["", "=== FLOOR COMPLETE ==="])

    def make_rest_choice(self, choice: RestChoice) -> bool:
        """Applies the option picked at the current rest node.

        Returns:
            bool: True if a rest node was waiting for a choice.

        """
        if not self._require_active("rest"):
            return False
        if choice not in self.pending_rest_choices or self.current_node_id is None:
            self._soft_fail("There is nowhere to rest.", {"choice": choice.value})
            return False
        self.run_log.extend(apply_rest_choice(choice, self.party))
        self.pending_rest_choices = []
        self.complete_node(self.current_node_id)
        return True

    # =========================================================================
    # Combat
    # =========================================================================

    def complete_combat(self, victory: bool | None = None) -> None:
        """Closes the active combat.

        A victory awards gold, clears combat statuses and cooldowns, and
        completes the node. A defeat ends the run.

        Args:
            victory (bool | None): The result. Defaults to the outcome of
                the combat session.

        Raises:
            CombatStateError: If no combat is active.

        """
        if self.combat is None:
            raise CombatStateError("No combat to complete.")
        combat = self.combat
        if victory is None:
            victory = combat.outcome == CombatOutcome.PLAYER_VICTORY
        self.combat = None

        if not victory:
            self.run_log.extend(["", "Combat failed!"])
            self.end_run(victory=False)
            return

        node = self.floor_map.nodes[self.current_node_id]
        reward = COMBAT_GOLD_BASE + COMBAT_GOLD_PER_ENEMY * len(combat.enemies)
        if node.node_type == NodeType.BOSS:
            reward += BOSS_GOLD_PER_FLOOR * self.floor
        self.gold += reward
        self.run_log.append(f"Victory! Earned {reward} gold.")

        for member in self.party:
            clear_status_effects(member)
            reset_all_cooldowns(member)
        self.complete_node(node.id)

    # =========================================================================
    # Items
    # =========================================================================

    def purchase_item(self, item: Item) -> bool:
        """Buys an item from the current shop.

        Returns:
            bool: True if the item was bought.

        """
        if not self._require_active("shop"):
            return False
        if self.gold < item.cost:
            self._soft_fail(
                f"Not enough gold! Need {item.cost}, have {self.gold}",
                {"item": item.id},
            )
            return False
        if len(self.inventory) >= MAX_INVENTORY_SLOTS:
            self._soft_fail(
                f"Inventory full! (Max {MAX_INVENTORY_SLOTS} items)",
                {"item": item.id},
            )
            return False
        self.gold -= item.cost
        self.inventory.append(item.model_copy())
        if item in self.shop_stock:
            self.shop_stock.remove(item)
        self.run_log.append(f"Purchased {item.name} for {item.cost} gold")
        return True

    def use_item(self, index: int, target_id: str | None = None) -> ItemUseResult:
        """Uses an item from the inventory.

        Permanent upgrades target a party member and skip_node items target
        a node id. Every other item is forwarded to the active combat.

        Args:
            index (int): The inventory slot.
            target_id (str | None): The party member or node id targeted.

        Returns:
            ItemUseResult: The outcome. The item is consumed on success.

        """
        if not 0 <= index < len(self.inventory):
            message = f"No item in slot {index}"
            self._soft_fail(message)
            return ItemUseResult(success=False, log=[message])
        item = self.inventory[index]

        if item.item_type == ItemType.PERMANENT_BUFF:
            target = self.get_party_member(target_id) if target_id else None
            if target is None:
                result = ItemUseResult(success=False, log=[f"{item.name} needs a target!"])
            else:
                result = apply_permanent_item(item, target)
        elif item.item_type == ItemType.SKIP_NODE:
            result = self._skip_node(item, target_id)
        elif self.combat is None:
            result = ItemUseResult(
                success=False, log=[f"{item.name} can only be used in combat!"]
            )
        else:
            result = self.combat.use_item(item, target_id)

        self.run_log.extend(result.log)
        if result.success:
            self.inventory.pop(index)
        return result

    def _skip_node(self, item: Item, node_id: str | None) -> ItemUseResult:
        self._require_no_combat("skip a node")
        node = self.floor_map.nodes.get(node_id) if node_id else None
        if node is None or node.status != NodeStatus.AVAILABLE or node.node_type == NodeType.BOSS:
            return ItemUseResult(
                success=False, log=[f"{item.name} needs an available non-boss node!"]
            )
        self.complete_node(node.id)
        return ItemUseResult(success=True, log=[f"{item.name} skips {node.id}."])

    # =========================================================================
    # Checkpoints
    # =========================================================================

    def save_checkpoint(self) -> None:
        """Snapshots the run in memory."""
        self.checkpoint = RunCheckpoint(
            floor=self.floor,
            party=[m.model_copy(deep=True) for m in self.party],
            floor_map=self.floor_map.model_copy(deep=True),
            gold=self.gold,
            memory_fragments=self.memory_fragments,
            inventory=[i.model_copy() for i in self.inventory],
        )

    def restore_checkpoint(self) -> bool:
        """Rolls the run back to the last checkpoint.

        Returns:
            bool: True if a checkpoint was restored.

        """
        if self.checkpoint is None:
            self._soft_fail("No checkpoint to restore.")
            return False
        snapshot = self.checkpoint
        self.floor = snapshot.floor
        self.party = [m.model_copy(deep=True) for m in snapshot.party]
        self.floor_map = snapshot.floor_map.model_copy(deep=True)
        self.gold = snapshot.gold
        self.memory_fragments = snapshot.memory_fragments
        self.inventory = [i.model_copy() for i in snapshot.inventory]
        self.combat = None
        self.current_node_id = None
        self.pending_rest_choices = []
        self.shop_stock = []
        self.is_active = True
        self.victory = None
        self.run_log.extend(["", "=== CHECKPOINT ===", f"Restarting floor {self.floor}..."])
        return True
