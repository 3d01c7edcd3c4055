"""
Utilities module for the descent engine.

Provides console printing with rich formatting, the singleton metaclass used
by the content repository, the process-wide random source and a few small
helpers shared across packages.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any, Generic

from rich.console import Console
from rich.rule import Rule
from typing_extensions import TypeVar

# Initialize the rich console.
_console = Console(markup=True, width=120, force_terminal=True, force_jupyter=False)

# Process-wide random source, used whenever a caller does not inject one.
_RNG = random.Random()


def cprint(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output.

    Args:
        *args: Arguments to pass to the console print function.
        **kwargs: Keyword arguments to pass to the console print function.

    """
    _console.print(*args, **kwargs)


def crule(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output with a rule.

    Args:
        *args: Arguments to pass to the Rule constructor.
        **kwargs: Keyword arguments to pass to the Rule constructor.

    """
    _console.print(Rule(*args, **kwargs))


# ---- Singleton Metaclass ----


_T = TypeVar("_T")


class Singleton(type, Generic[_T]):
    """Metaclass that returns the same instance every time."""

    _instances: dict[Singleton[_T], _T] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> _T:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        elif args or kwargs:
            # Re-run the initializer so a new data directory can be loaded.
            cls._instances[cls].__init__(*args, **kwargs)
        return cls._instances[cls]


# ---- Randomness ----


def get_rng(rng: random.Random | None = None) -> random.Random:
    """
    Returns the injected random source, or the process-wide one.

    Args:
        rng (random.Random | None): An optional injected random source.

    Returns:
        random.Random: The random source to draw from.

    """
    return rng if rng is not None else _RNG


def weighted_choice(
    items: Sequence[_T],
    weights: Sequence[float],
    rng: random.Random | None = None,
) -> _T:
    """
    Picks one item with probability proportional to its weight.

    Non-positive weights never win. If every weight is non-positive, the
    choice falls back to a uniform pick.

    Args:
        items (Sequence[_T]): The candidates.
        weights (Sequence[float]): One weight per candidate.
        rng (random.Random | None): An optional injected random source.

    Returns:
        _T: The chosen candidate.

    Raises:
        ValueError: If there are no candidates.

    """
    if not items:
        raise ValueError("Cannot choose from an empty sequence.")
    rng = get_rng(rng)
    positive = [max(0.0, float(w)) for w in weights]
    total = sum(positive)
    if total <= 0:
        return items[int(rng.random() * len(items)) % len(items)]
    roll = rng.random() * total
    for item, weight in zip(items, positive):
        if roll < weight:
            return item
        roll -= weight
    # Floating point leftovers land on the last positive candidate.
    for item, weight in zip(reversed(items), reversed(positive)):
        if weight > 0:
            return item
    return items[-1]


# ---- Display ----


def make_bar(current: int, maximum: int, length: int = 10, color: str = "white") -> str:
    """
    Creates a visual progress bar representation.

    Args:
        current (int): The current value.
        maximum (int): The maximum value.
        length (int): The length of the bar in characters. Defaults to 10.
        color (str): The color for the filled portion. Defaults to "white".

    Returns:
        str: A formatted progress bar string.

    """
    filled = int((current / maximum) * length) if maximum > 0 else 0
    empty = length - filled
    bar = f"[{color}]" + "▮" * filled
    if empty > 0:
        bar += "[dim white]" + "▯" * empty + "[/]"
    bar += "[/]"
    return bar
