"""
Constants and enumerations for the descent engine.

Defines global constants, enumerations for factions, ability classes, target
types, effect kinds, map nodes and items, together with the fixed numeric
tables (level coefficients, enemy scaling, floor composition) that drive
combat and map generation.
"""

from enum import Enum

# Global verbose level for console output:
# 0 - Minimal (e.g., only node and combat outcomes)
# 1 - Moderate (e.g., the combat log of every round)
# 2 - Full detail (e.g., action offers, queues and status ticks)
GLOBAL_VERBOSE_LEVEL = 1


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").lower().capitalize()


class Faction(NiceEnum):
    """Defines the side a combatant fights for."""

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this faction."""
        return {
            Faction.PLAYER: "👤",
            Faction.ENEMY: "👹",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this faction."""
        return {
            Faction.PLAYER: "bold blue",
            Faction.ENEMY: "bold red",
        }.get(self, "dim white")

    @property
    def opposite(self) -> "Faction":
        return Faction.ENEMY if self == Faction.PLAYER else Faction.PLAYER

    def colorize(self, message: str) -> str:
        """Applies faction color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class AbilityClass(NiceEnum):
    """Defines the class of an ability."""

    STANDARD = "standard"
    SPECIAL = "special"
    DUO = "duo"
    TRIO = "trio"

    @property
    def is_combo(self) -> bool:
        return self in (AbilityClass.DUO, AbilityClass.TRIO)


class TargetType(NiceEnum):
    """Defines which combatants an ability can reach."""

    SELF = "self"
    SINGLE_ENEMY = "single_enemy"
    SINGLE_ALLY = "single_ally"
    ALL_ENEMIES = "all_enemies"
    ALL_ALLIES = "all_allies"
    ALL = "all"

    @property
    def is_area(self) -> bool:
        """True for target types that ignore explicitly supplied target ids."""
        return self in (TargetType.ALL_ENEMIES, TargetType.ALL_ALLIES, TargetType.ALL)


class EffectKind(NiceEnum):
    """Defines the kind of a single ability effect."""

    DAMAGE = "damage"
    HEAL = "heal"
    BUFF = "buff"
    DEBUFF = "debuff"
    MIXED = "mixed"
    SPECIAL = "special"


class CombatOutcome(NiceEnum):
    """Defines the state of a combat encounter."""

    ONGOING = "ongoing"
    PLAYER_VICTORY = "player_victory"
    PLAYER_DEFEAT = "player_defeat"


class CombatStatus(NiceEnum):
    """Defines the phase a combat session is in."""

    PLAYER_TURN = "player_turn"
    RESOLVING = "resolving"
    ENDED = "ended"


class NodeType(NiceEnum):
    """Defines the type of a map node."""

    COMBAT = "combat"
    BOSS = "boss"
    MEMORY = "memory"
    SHOP = "shop"
    REST = "rest"
    HAZARD = "hazard"
    STORY = "story"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this node type."""
        return {
            NodeType.COMBAT: "⚔️",
            NodeType.BOSS: "💀",
            NodeType.MEMORY: "🌀",
            NodeType.SHOP: "🛒",
            NodeType.REST: "🔥",
            NodeType.HAZARD: "⚠️",
            NodeType.STORY: "📜",
        }.get(self, "❔")


class NodeStatus(NiceEnum):
    """Defines the visibility of a map node. Transitions only move forward."""

    HIDDEN = "hidden"
    AVAILABLE = "available"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return {
            NodeStatus.HIDDEN: 0,
            NodeStatus.AVAILABLE: 1,
            NodeStatus.COMPLETED: 2,
        }[self]


class ItemType(NiceEnum):
    """Defines the type of an item."""

    HEALING_POTION = "healing_potion"
    SP_POTION = "sp_potion"
    TEMP_BUFF = "temp_buff"
    RESURRECT = "resurrect"
    SKIP_NODE = "skip_node"
    PERMANENT_BUFF = "permanent_buff"

    @property
    def usable_in_combat(self) -> bool:
        return self in (
            ItemType.HEALING_POTION,
            ItemType.SP_POTION,
            ItemType.TEMP_BUFF,
            ItemType.RESURRECT,
        )


class RestChoice(NiceEnum):
    """Defines the options offered at a rest node."""

    HEAL = "heal"
    CLEANSE = "cleanse"
    COOLDOWNS = "cooldowns"


# =============================================================================
# Combat Constants
# =============================================================================

STARTING_SP = 10
MAX_SP = 18
BASE_SP_REGEN = 6
SP_PENALTY_PER_DEATH = 3
MIN_SP_REGEN = 1
ACTIONS_OFFERED_PER_ROUND = 4
# Defend multiplies incoming damage by (100 - 30) / 100.
DEFEND_DAMAGE_REDUCTION_PERCENT = 30
MAX_INVENTORY_SLOTS = 6

# Sentinel ability id for the team-wide defend action.
DEFEND_ABILITY_ID = "defend"

# setValue that means "restore to full" for heals.
FULL_HEAL_SENTINEL = 999

# =============================================================================
# Floor and Party Constants
# =============================================================================

TOTAL_FLOORS = 10
MEMORY_HEAL_PERCENT = 20
MEMORY_GOLD_REWARD = 50
STORY_FRAGMENT_REWARD = 10
REST_HEAL_PERCENT = 40
REST_COOLDOWN_REDUCTION = 1
HAZARD_BASE_DAMAGE = 15
HAZARD_DAMAGE_PER_FLOOR = 2
HAZARD_ITEM_MIN_COST = 100
SHOP_INVENTORY_SIZE = 6
COMBAT_GOLD_BASE = 10
COMBAT_GOLD_PER_ENEMY = 5
BOSS_GOLD_PER_FLOOR = 100
ENTRANCE_NODE_ID = "node_0"
BOSS_REVEAL_THRESHOLD_PERCENT = 60

TOTAL_CHARACTERS = 6
ACTIVE_PARTY_SIZE = 3

# =============================================================================
# Status Effect Ids
# =============================================================================

# Buffs counted by threat scoring.
BUFF_STATUS_IDS: tuple[str, ...] = (
    "aegis",
    "armor",
    "evasion",
    "regeneration",
    "haste",
    "empowered",
    "reflect",
)

# Buffs stripped by dispels, taunt included.
DISPELLABLE_BUFF_IDS: tuple[str, ...] = BUFF_STATUS_IDS + ("taunt",)

DEBUFF_STATUS_IDS: tuple[str, ...] = (
    "poison",
    "burn",
    "fractured",
    "weakened",
    "rooted",
    "sealed",
    "stunned",
    "confused",
    "terrified",
    "sorrow",
)

# Pairs that annihilate each other when both are present.
OPPOSITE_STATUS_PAIRS: tuple[tuple[str, str], ...] = (
    ("haste", "fractured"),
    ("empowered", "weakened"),
)

DAMAGE_OVER_TIME_IDS: tuple[str, ...] = ("poison", "burn")
HEALING_OVER_TIME_IDS: tuple[str, ...] = ("regeneration",)

# =============================================================================
# Numeric Tables
# =============================================================================

# Level coefficient in tenths (level 1 -> 0.5, level 10 -> 1.4).
LEVEL_VALUE_TENTHS: dict[int, int] = {
    1: 5,
    2: 6,
    3: 7,
    4: 8,
    5: 9,
    6: 10,
    7: 11,
    8: 12,
    9: 13,
    10: 14,
}

# Enemy stat multipliers in hundredths, per floor: (hp, conviction, speed).
ENEMY_SCALING_HUNDREDTHS: dict[int, tuple[int, int, int]] = {
    1: (100, 100, 100),
    2: (130, 115, 100),
    3: (160, 125, 100),
    4: (190, 135, 110),
    5: (220, 150, 110),
    6: (250, 165, 110),
    7: (280, 175, 120),
    8: (320, 185, 120),
    9: (360, 200, 130),
    10: (400, 250, 150),
}

# Node composition per floor. The counts sum to the floor's node total, and
# the entrance node consumes one of the combat slots.
FLOOR_COMPOSITION: dict[int, dict[NodeType, int]] = {
    1: {NodeType.COMBAT: 2, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 1, NodeType.HAZARD: 0, NodeType.STORY: 0, NodeType.BOSS: 1},
    2: {NodeType.COMBAT: 3, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 0, NodeType.HAZARD: 1, NodeType.STORY: 0, NodeType.BOSS: 1},
    3: {NodeType.COMBAT: 3, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 1, NodeType.HAZARD: 1, NodeType.STORY: 0, NodeType.BOSS: 1},
    4: {NodeType.COMBAT: 3, NodeType.MEMORY: 1, NodeType.SHOP: 0, NodeType.REST: 1, NodeType.HAZARD: 1, NodeType.STORY: 1, NodeType.BOSS: 1},
    5: {NodeType.COMBAT: 4, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 0, NodeType.HAZARD: 1, NodeType.STORY: 1, NodeType.BOSS: 1},
    6: {NodeType.COMBAT: 4, NodeType.MEMORY: 1, NodeType.SHOP: 0, NodeType.REST: 1, NodeType.HAZARD: 2, NodeType.STORY: 0, NodeType.BOSS: 1},
    7: {NodeType.COMBAT: 4, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 0, NodeType.HAZARD: 2, NodeType.STORY: 1, NodeType.BOSS: 1},
    8: {NodeType.COMBAT: 5, NodeType.MEMORY: 1, NodeType.SHOP: 0, NodeType.REST: 1, NodeType.HAZARD: 2, NodeType.STORY: 0, NodeType.BOSS: 1},
    9: {NodeType.COMBAT: 5, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 0, NodeType.HAZARD: 2, NodeType.STORY: 1, NodeType.BOSS: 1},
    10: {NodeType.COMBAT: 5, NodeType.MEMORY: 1, NodeType.SHOP: 1, NodeType.REST: 1, NodeType.HAZARD: 2, NodeType.STORY: 1, NodeType.BOSS: 1},
}

# Chance, in percent, of drawing 1, 2 or 3 new paths when a node completes.
PATH_COUNT_WEIGHTS: tuple[tuple[int, int], ...] = ((1, 40), (2, 40), (3, 20))

MIN_COMBAT_ENEMIES = 2
MAX_COMBAT_ENEMIES = 5
STORY_VARIANTS = 3
SHOP_SEED_LIMIT = 1_000_000


def is_opponent(first: Faction, second: Faction) -> bool:
    """Checks whether two factions fight on opposite sides.

    Args:
        first (Faction): The first faction.
        second (Faction): The second faction.

    Returns:
        bool: True if the factions are opponents, False otherwise.

    """
    return first != second
