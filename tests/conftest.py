"""
Shared fixtures for the descent engine tests.
"""

import random

import pytest
from core.constants import Faction
from core.content import ContentRepository
from entities.combatant import Combatant, CombatantStats


class FixedRandom(random.Random):
    """A random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float = 0.0):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def repo():
    return ContentRepository()


@pytest.fixture
def make_combatant():
    """Builds bare combatants with explicit stats."""

    def _make(
        combatant_id: str,
        faction: Faction = Faction.PLAYER,
        hp: int = 100,
        conviction: int = 10,
        speed: int = 5,
        level: int = 1,
        current_hp: int | None = None,
        character_id: str | None = None,
        enemy_id: str | None = None,
    ) -> Combatant:
        return Combatant(
            id=combatant_id,
            name=combatant_id.replace("_", " ").title(),
            faction=faction,
            character_id=character_id,
            enemy_id=enemy_id,
            stats=CombatantStats(
                hp=hp,
                max_hp=hp,
                current_hp=hp if current_hp is None else current_hp,
                conviction=conviction,
                speed=speed,
            ),
            level=level,
        )

    return _make


@pytest.fixture
def low_rng():
    """A random source always rolling 0.0 (evasion always succeeds)."""
    return FixedRandom(0.0)


@pytest.fixture
def mid_rng():
    """A random source always rolling 0.5."""
    return FixedRandom(0.5)


@pytest.fixture
def fixed_rng():
    """Builds random sources rolling a constant value."""
    return FixedRandom
