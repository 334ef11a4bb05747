# services/pricebook.py
import logging
from decimal import Decimal

from models import CustomerTier, Material

logger = logging.getLogger(__name__)

# tier -> price column on Material
TIER_PRICE_FIELD = {
    CustomerTier.END_CUSTOMER.value: "price_end_customer",
    CustomerTier.RETAIL.value: "price_retail",
    CustomerTier.WHOLESALE.value: "price_wholesale",
    CustomerTier.RESELLER.value: "price_reseller",
    CustomerTier.CORPORATE.value: "price_corporate",
}


def price_for(material: Material, tier) -> Decimal:
    """Unit price of `material` for a customer tier.

    An unknown tier yields 0 and a warning; another tier's price is never
    substituted. Resolving the material is the caller's job.
    """
    key = tier.value if isinstance(tier, CustomerTier) else tier
    field = TIER_PRICE_FIELD.get(key)
    if field is None:
        logger.warning("unknown customer tier %r for material id=%s, pricing at 0", tier, material.id)
        return Decimal("0")
    value = getattr(material, field)
    return Decimal(str(value)) if value is not None else Decimal("0")
