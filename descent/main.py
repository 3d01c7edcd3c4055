"""
Main entry point for The Final Descent engine.

This script auto-plays a seeded run: it picks a party, walks the available
nodes of each floor, fights every encounter with a greedy policy and prints
the run and combat logs with rich.

The demo exercises:
- Map generation and node resolution
- Action offers, SP spending, combos and defend
- Enemy AI, initiative ordering and status effects
- Shops, items, rest choices and floor progression
"""

import logging
import random
from collections import Counter

from actions.ability import Ability
from combat.combat_session import CombatSession
from core.constants import GLOBAL_VERBOSE_LEVEL, CombatStatus, ItemType, NodeType, RestChoice, TargetType
from core.content import ContentRepository
from core.logging import setup_logging
from core.utils import cprint, crule
from entities.combatant import Combatant
from world.map_generator import get_available_nodes, is_floor_complete
from world.run_session import RunSession

# Seed of the demo run.
DEMO_SEED = 7
# Floors played before the demo stops.
DEMO_FLOORS = 3
# Rounds after which a fight is abandoned as a defeat.
MAX_ROUNDS_PER_COMBAT = 60
# Party picked for the demo.
DEMO_PARTY = ["dranick", "eline", "grim"]


def make_names_unique(in_list: list[Combatant]) -> None:
    """
    Ensure all combatant names in a list are unique by appending numbers.

    Args:
        in_list (list[Combatant]): Combatants to rename in place.

    """
    name_counts = Counter(c.name for c in in_list)
    seen: Counter[str] = Counter()
    for combatant in in_list:
        base = combatant.name
        if name_counts[base] > 1:
            seen[base] += 1
            combatant.name = f"{base} ({seen[base]})"


def print_log(lines: list[str], start: int) -> int:
    """Prints the log lines added since ``start`` and returns the new end."""
    for line in lines[start:]:
        cprint(line)
    return len(lines)


# =============================================================================
# Greedy Policy
# =============================================================================


def pick_targets(ability: Ability, session: CombatSession) -> list[str]:
    if ability.target_type == TargetType.SINGLE_ENEMY:
        target = min(session.living_enemies, key=lambda e: e.stats.current_hp)
        return [target.id]
    if ability.target_type == TargetType.SINGLE_ALLY:
        target = min(session.living_players, key=lambda p: p.hp_ratio)
        return [target.id]
    return []


def pick_actors(ability: Ability, session: CombatSession) -> list[str]:
    by_character = {p.character_id: p for p in session.living_players}
    return [by_character[owner].id for owner in ability.owners if owner in by_character]


def play_turn(session: CombatSession, run: RunSession) -> None:
    """Queues the most expensive affordable abilities, or defends."""
    wounded = [p for p in session.living_players if p.hp_ratio < 0.4]
    for index, item in enumerate(run.inventory):
        if wounded and item.item_type == ItemType.HEALING_POTION:
            run.use_item(index, wounded[0].id)
            break

    queued = 0
    for ability in sorted(session.offered_actions, key=lambda a: -a.sp_cost):
        if ability.sp_cost > session.current_sp or not session.living_enemies:
            continue
        actors = pick_actors(ability, session)
        if len(actors) != len(ability.owners):
            continue
        if session.queue_player_action(ability.id, actors, pick_targets(ability, session)):
            queued += 1
    if not queued and session.living_players:
        session.queue_player_defend(session.living_players[0].id)


def play_combat(run: RunSession) -> None:
    session = run.combat
    make_names_unique(session.enemies)
    printed = 0
    while session.status != CombatStatus.ENDED and session.round <= MAX_ROUNDS_PER_COMBAT:
        play_turn(session, run)
        session.run_round()
        if GLOBAL_VERBOSE_LEVEL >= 1:
            printed = print_log(session.combat_log, printed)
    if session.status == CombatStatus.ENDED:
        run.complete_combat()
    else:
        run.complete_combat(victory=False)


def play_node(run: RunSession) -> None:
    available = get_available_nodes(run.floor_map)
    non_boss = [n for n in available if n.node_type != NodeType.BOSS]
    node = (non_boss or available)[0]
    crule(f"{node.node_type.emoji} {node.id} ({node.node_type.display_name})", style="cyan")
    result = run.enter_node(node.id)
    if result is None:
        return
    if run.combat is not None:
        play_combat(run)
    elif result.choices:
        run.make_rest_choice(RestChoice.HEAL)
    elif result.shop_stock:
        for item in sorted(run.shop_stock, key=lambda i: i.cost):
            if item.item_type == ItemType.HEALING_POTION:
                run.purchase_item(item)


if __name__ == "__main__":
    setup_logging(logging.WARNING)
    crule("The Final Descent", style="bold green")

    cprint("Loading repository...", style="bold green")
    repo = ContentRepository()
    cprint(
        f"{len(repo.characters)} characters, {len(repo.enemies)} enemies, "
        f"{len(repo.bosses)} bosses, {len(repo.items)} items.",
        style="dim",
    )

    run = RunSession(rng=random.Random(DEMO_SEED))
    run.start_run(DEMO_PARTY)
    printed = 0
    while run.is_active and run.floor <= DEMO_FLOORS:
        crule(f"Floor {run.floor}", style="bold magenta")
        while run.is_active and not is_floor_complete(run.floor_map):
            play_node(run)
            printed = print_log(run.run_log, printed)
        if not run.is_active:
            break
        for member in run.party:
            cprint(member.get_status_line())
        if run.floor == DEMO_FLOORS:
            break
        run.advance_floor()
    printed = print_log(run.run_log, printed)

    outcome = "victory" if run.victory else "defeat" if run.victory is False else "stopped"
    crule(f"Run {outcome} on floor {run.floor} with {run.gold} gold", style="bold green")
