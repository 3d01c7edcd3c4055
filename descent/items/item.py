"""
Item module for the descent engine.

Defines the static catalog entry for items. A purchased copy is an
independent value placed in the run inventory.
"""

from core.constants import ItemType
from pydantic import BaseModel, Field


class Item(BaseModel):
    """An item from the catalog, or a purchased copy of one."""

    id: str = Field(description="Unique item id.")
    name: str = Field(description="Display name.")
    item_type: ItemType = Field(description="What the item does when used.")
    description: str = Field("", description="A short description of the effect.")
    cost: int = Field(description="Price in gold.", ge=0)

    @property
    def usable_in_combat(self) -> bool:
        return self.item_type.usable_in_combat

    @property
    def colored_name(self) -> str:
        return f"[bold yellow]{self.name}[/]"

    def priced_copy(self, cost: int) -> "Item":
        """Returns an independent copy with a different price."""
        return self.model_copy(update={"cost": cost})
