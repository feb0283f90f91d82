"""Variant SKU generation."""
import secrets
from datetime import datetime

from storefront.db.models import ProductType

PRODUCT_TYPE_ABBREVIATIONS: dict[ProductType, str] = {
    ProductType.T_SHIRT: "Tshrt",
    ProductType.HOODIE: "Hody",
    ProductType.SWEATSHIRT: "Stshrt",
    ProductType.POLO: "PLshrt",
    ProductType.TANK_TOP: "Ttop",
    ProductType.LONGSLEEVE: "LSShirt",
    ProductType.MUG: "MUG",
    ProductType.SOCKS: "Scks",
    ProductType.HAT: "HAT",
    ProductType.TOTE_BAG: "BAG",
    ProductType.ACCESSORY: "ACCS",
}


def generate_sku(
    product_type: ProductType | None,
    color: str | None = None,
    size: str | None = None,
    now: datetime | None = None,
    suffix: str | None = None,
) -> str:
    """
    Build a variant SKU: type abbreviation, CamelCased color, upper-cased
    size, the HHMMSS time of generation and a short random hex suffix.

    The suffix keeps identical variants created within the same second
    apart. Pass suffix="" to leave it off.

    Example:
        generate_sku(ProductType.HOODIE, "navy blue", "xl")  # "HodyNavyBlueXL142530-3FA9"
    """
    type_part = PRODUCT_TYPE_ABBREVIATIONS.get(product_type, "PRD")
    color_part = "".join(word.capitalize() for word in (color or "").split())
    size_part = "".join((size or "").split()).upper()
    time_part = (now or datetime.now()).strftime("%H%M%S")
    if suffix is None:
        suffix = secrets.token_hex(2).upper()
    sku = f"{type_part}{color_part}{size_part}{time_part}"
    return f"{sku}-{suffix}" if suffix else sku
