from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from catchery import log_warning

from core import constants
from core.error_handling import CatalogLookupError
from core.logging import log_error
from core.utils import Singleton, cprint

if TYPE_CHECKING:
    from actions.ability import Ability
    from entities.definitions import CharacterDefinition, EnemyDefinition
    from items.item import Item

# Bundled catalogs, at the repository root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


class ContentRepository(metaclass=Singleton):
    """
    Read-only registry of every catalog the engine consumes, keyed by id.
    """

    # Roster attributes.
    characters: dict[str, CharacterDefinition]
    enemies: dict[str, EnemyDefinition]
    bosses: dict[str, EnemyDefinition]
    # Ability attributes.
    abilities: dict[str, Ability]
    combos: dict[str, Ability]
    enemy_abilities: dict[str, Ability]
    # Item attributes.
    items: dict[str, Item]

    def __init__(self, data_dir: Path | None = None) -> None:
        """
        Initialize the ContentRepository.

        Args:
            data_dir (Path | None):
                The directory containing the catalogs. The bundled data
                directory is used when nothing has been loaded yet.

        """
        if data_dir:
            self.reload(Path(data_dir))
        elif not getattr(self, "loaded", False):
            self.reload(DEFAULT_DATA_DIR)

    def reload(self, root: Path) -> None:
        """
        (Re)load every catalog from disk.

        Args:
            root (Path):
                The directory containing the catalogs.

        """
        catalogs = {
            "characters": _load_json_file(
                root / "characters.json", self._load_characters, "characters"
            ),
            "enemies": _load_json_file(root / "enemies.json", self._load_enemies, "enemies"),
            "bosses": _load_json_file(root / "bosses.json", self._load_enemies, "bosses"),
            "abilities": _load_json_file(
                root / "abilities.json", self._load_abilities, "abilities"
            ),
            "combos": _load_json_file(root / "combos.json", self._load_abilities, "combos"),
            "enemy_abilities": _load_json_file(
                root / "enemy_abilities.json", self._load_abilities, "enemy abilities"
            ),
            "items": _load_json_file(root / "items.json", self._load_items, "items"),
        }
        # Swap catalogs in only once every file has loaded.
        for name, catalog in catalogs.items():
            setattr(self, name, catalog)
        self._check_references()
        self.data_dir = root
        self.loaded = True

    def _check_references(self) -> None:
        """Warn about roster entries pointing at abilities no catalog defines."""
        for character in self.characters.values():
            for ability_id in character.ability_ids:
                if ability_id not in self.abilities:
                    log_warning(
                        f"Character '{character.id}' references unknown ability '{ability_id}'.",
                        {"character_id": character.id, "ability_id": ability_id},
                    )
        for enemy in [*self.enemies.values(), *self.bosses.values()]:
            for ability_id in enemy.ability_ids:
                if ability_id not in self.enemy_abilities:
                    log_warning(
                        f"Enemy '{enemy.id}' references unknown ability '{ability_id}'.",
                        {"enemy_id": enemy.id, "ability_id": ability_id},
                    )

    def _get_from_collection(self, collection_name: str, entry_id: str) -> Any:
        """
        Generic helper to get an entry from any collection.

        Args:
            collection_name (str):
                Name of the collection attribute (e.g., 'abilities', 'items')
            entry_id (str):
                Id of the entry to retrieve

        Returns:
            Any:
                The entry.

        Raises:
            CatalogLookupError: If the id is not in the collection.

        """
        collection = getattr(self, collection_name, {})
        entry = collection.get(entry_id)
        if entry is None:
            raise CatalogLookupError(collection_name, entry_id)
        return entry

    # ============================================================================
    # ROSTERS
    # ============================================================================

    def get_character(self, character_id: str) -> CharacterDefinition:
        """Get a character definition by id."""
        return self._get_from_collection("characters", character_id)

    def get_enemy(self, enemy_id: str) -> EnemyDefinition:
        """Get a common enemy or a boss definition by id."""
        if enemy_id in self.bosses:
            return self.bosses[enemy_id]
        return self._get_from_collection("enemies", enemy_id)

    def get_boss_for_floor(self, floor: int) -> EnemyDefinition:
        """Get the boss guarding a floor."""
        for boss in self.bosses.values():
            if boss.floor == floor:
                return boss
        raise CatalogLookupError("bosses", f"floor {floor}")

    def list_character_ids(self) -> list[str]:
        return list(self.characters)

    def list_common_enemy_ids(self) -> list[str]:
        return list(self.enemies)

    # ============================================================================
    # ABILITIES
    # ============================================================================

    def get_player_ability(self, ability_id: str) -> Ability:
        return self._get_from_collection("abilities", ability_id)

    def get_combo(self, ability_id: str) -> Ability:
        return self._get_from_collection("combos", ability_id)

    def get_enemy_ability(self, ability_id: str) -> Ability:
        return self._get_from_collection("enemy_abilities", ability_id)

    def find_ability(self, ability_id: str) -> Ability | None:
        """Search the player, combo and enemy catalogs in order. First match wins."""
        for collection in (self.abilities, self.combos, self.enemy_abilities):
            if ability_id in collection:
                return collection[ability_id]
        return None

    def get_ability(self, ability_id: str) -> Ability:
        """Like find_ability, but raises on a miss."""
        ability = self.find_ability(ability_id)
        if ability is None:
            raise CatalogLookupError("abilities", ability_id)
        return ability

    def get_character_abilities(self, character_id: str) -> list[Ability]:
        """Get the single-owner abilities of a character."""
        character = self.get_character(character_id)
        return [self.get_player_ability(a) for a in character.ability_ids]

    def list_combos(self) -> list[Ability]:
        return list(self.combos.values())

    # ============================================================================
    # ITEMS
    # ============================================================================

    def get_item(self, item_id: str) -> Item:
        return self._get_from_collection("items", item_id)

    def list_items(self) -> list[Item]:
        return list(self.items.values())

    # ============================================================================
    # LOADERS
    # ============================================================================

    @staticmethod
    def _load_characters(data: list[dict]) -> dict[str, CharacterDefinition]:
        """
        Load characters from JSON data.

        Args:
            data (list[dict]): List of character data dictionaries.

        Returns:
            dict[str, CharacterDefinition]: Characters keyed by id.

        Raises:
            ValueError: If duplicate ids are found.

        """
        from entities.definitions import CharacterDefinition

        return _index_by_id([CharacterDefinition(**entry) for entry in data], "character")

    @staticmethod
    def _load_enemies(data: list[dict]) -> dict[str, EnemyDefinition]:
        """
        Load enemies or bosses from JSON data.

        Raises:
            ValueError: If duplicate ids are found.

        """
        from entities.definitions import EnemyDefinition

        return _index_by_id([EnemyDefinition(**entry) for entry in data], "enemy")

    @staticmethod
    def _load_abilities(data: list[dict]) -> dict[str, Ability]:
        """
        Load abilities from JSON data.

        Unknown special-mechanic tags fail validation here, at load time.

        Raises:
            ValueError: If duplicate ids or invalid entries are found.

        """
        from actions.ability import Ability

        return _index_by_id([Ability(**entry) for entry in data], "ability")

    @staticmethod
    def _load_items(data: list[dict]) -> dict[str, Item]:
        """
        Load items from JSON data.

        Raises:
            ValueError: If duplicate ids are found.

        """
        from items.item import Item

        return _index_by_id([Item(**entry) for entry in data], "item")


def _index_by_id(entries: list[Any], description: str) -> dict[str, Any]:
    indexed: dict[str, Any] = {}
    for entry in entries:
        if entry.id in indexed:
            raise ValueError(f"Duplicate {description} id: {entry.id}")
        indexed[entry.id] = entry
    return indexed


def _load_json_file(
    filepath: Path,
    loader_func: Callable[[list[dict]], dict[str, Any]],
    description: str,
) -> dict[str, Any]:
    """Helper to load and validate JSON files"""
    try:
        if constants.GLOBAL_VERBOSE_LEVEL >= 2:
            cprint(
                f"  Loading {description} using {loader_func.__name__}...",
                style="bold green",
            )
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        if not filepath.is_file():
            raise ValueError(f"Not a file: {filepath}")
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        if not data:
            raise ValueError(f"Empty data list in {filepath}")
        if not isinstance(data, list):
            raise ValueError(f"Expected list in {filepath}, got {type(data).__name__}")
        return loader_func(data)
    except (json.JSONDecodeError, FileNotFoundError, ValueError) as e:
        log_error(f"Failed to load {description}", {"file": filepath.name, "error": str(e)})
        raise ValueError(f"File {filepath} raised an error: {e}") from e
