import logging
import re
from typing import Annotated, Any, Iterable, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, ValidationError

from storefront.exceptions import InvalidAmount, InvalidLineItem
from storefront.models.cart_item import CartItem
from storefront.models.line_item import CheckoutLine, LineItem, PriceLineItem
from storefront.services import money
from storefront.utils.quantity import clamp_quantity

log = logging.getLogger("checkout")

_HAS_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


class PriceIdItem(BaseModel):
    """Ad-hoc item pointing at a price registered with the processor."""

    model_config = ConfigDict(extra="ignore")
    price_id: str = Field(validation_alias=AliasChoices("priceId", "price_id"))
    quantity: Any = 1


class AdHocItem(BaseModel):
    """Ad-hoc item priced locally. Validated field by field in the builder."""

    model_config = ConfigDict(extra="ignore")
    name: Any = None
    unit_amount: Any = Field(default=None, validation_alias=AliasChoices("unitAmount", "unit_amount"))
    quantity: Any = 1
    image: Optional[str] = Field(default=None, validation_alias=AliasChoices("image", "img"))


def _shape(value: Any) -> str:
    if isinstance(value, dict):
        return "price" if ("priceId" in value or "price_id" in value) else "ad_hoc"
    return "price" if isinstance(value, PriceIdItem) else "ad_hoc"


IncomingItem = Annotated[
    Union[Annotated[PriceIdItem, Tag("price")], Annotated[AdHocItem, Tag("ad_hoc")]],
    Discriminator(_shape),
]
_incoming = TypeAdapter(IncomingItem)


def resolve_image_url(image: Optional[str], origin: Optional[str]) -> Optional[str]:
    """
    Absolute URLs pass through. Site-relative paths get `origin` prefixed;
    without an origin they are dropped since the processor can't fetch them.
    """
    if not image:
        return None
    if _HAS_SCHEME.match(image):
        return image
    if not origin:
        log.debug("dropping site-relative image %r: no origin to resolve it against", image)
        return None
    origin = origin.rstrip("/")
    if image.startswith("//"):
        scheme = origin.split("://", 1)[0] if "://" in origin else "https"
        return f"{scheme}:{image}"
    return f"{origin}{'' if image.startswith('/') else '/'}{image}"


class LineItemBuilder:
    def __init__(self, origin: Optional[str] = None):
        self.origin = origin

    def build(self, cart: Iterable[CartItem], origin: Optional[str] = None) -> List[LineItem]:
        """
        One LineItem per cart line. Prices go through money.normalize, so
        InvalidAmount escapes untouched if a line can't be priced.
        """
        origin = origin or self.origin
        return [
            LineItem(
                display_name=item.name,
                image_url=resolve_image_url(item.image, origin),
                unit_amount_cents=money.normalize(item.unit_price),
                quantity=item.quantity,
            )
            for item in cart
        ]

    def build_from_ad_hoc(self, raw: List[Any], origin: Optional[str] = None) -> List[CheckoutLine]:
        """
        Accepts a mix of {priceId, quantity?} and {name, unitAmount, quantity?, image?}.
        Raises InvalidLineItem for anything that can't be turned into a line.
        """
        if not isinstance(raw, list):
            raise InvalidLineItem("items must be a list")
        origin = origin or self.origin
        lines: List[CheckoutLine] = []
        for index, value in enumerate(raw):
            if not isinstance(value, (dict, PriceIdItem, AdHocItem)):
                raise InvalidLineItem(f"item {index}: not an object")
            try:
                item = _incoming.validate_python(value)
            except ValidationError as e:
                raise InvalidLineItem(f"item {index}: {e.errors()[0]['msg']}")
            if isinstance(item, PriceIdItem):
                lines.append(self._price_line(index, item))
            else:
                lines.append(self._ad_hoc_line(index, item, origin))
        return lines

    def _price_line(self, index: int, item: PriceIdItem) -> PriceLineItem:
        price_id = item.price_id.strip()
        if not price_id:
            raise InvalidLineItem(f"item {index}: empty priceId")
        return PriceLineItem(price_id=price_id, quantity=clamp_quantity(item.quantity))

    def _ad_hoc_line(self, index: int, item: AdHocItem, origin: Optional[str]) -> LineItem:
        name = item.name.strip() if isinstance(item.name, str) else ""
        if not name:
            raise InvalidLineItem(f"item {index}: name is required")
        if item.unit_amount is None:
            raise InvalidLineItem(f"{name}: unitAmount is required")
        try:
            cents = money.normalize(item.unit_amount)
        except InvalidAmount as e:
            raise InvalidLineItem(f"{name}: {e}") from e
        return LineItem(
            display_name=name,
            image_url=resolve_image_url(item.image, origin),
            unit_amount_cents=cents,
            quantity=clamp_quantity(item.quantity),
        )
