from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class CatalogEntry(BaseModel):
    """The {id, name, unit_price, image} tuple a catalog hands to CartStore.add."""

    model_config = ConfigDict(frozen=True)
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    unit_price: StrictInt = Field(gt=0)  # cents
    image: Optional[str] = None

    @field_validator("image")
    @classmethod
    def _blank_image_is_none(cls, v):
        return v or None


class CartItem(CatalogEntry):
    quantity: StrictInt = Field(ge=1)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "CartItem":
        return self.model_copy(update={"quantity": quantity})
