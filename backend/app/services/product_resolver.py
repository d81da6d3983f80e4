"""
Resolve the services performed on an order into product quantities.

Pure: callers load mappings, defaults and the set of usable products and pass
them in. Nothing here touches the database.
"""
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

QUANTITY_PLACES = Decimal("0.001")


def to_quantity(value) -> Decimal:
    """Coerce a numeric value to a fixed-point quantity (3 places)."""
    if isinstance(value, Decimal):
        return value.quantize(QUANTITY_PLACES)
    if isinstance(value, float):
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        value = str(value)
    return Decimal(value).quantize(QUANTITY_PLACES)


def normalize_service_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


@dataclass(frozen=True)
class UnresolvedService:
    service_name: str
    reason: str = "no_mapping"


@dataclass(frozen=True)
class UnresolvedProduct:
    service_name: str
    product_id: int


@dataclass
class ResolutionResult:
    required: Dict[int, Decimal] = field(default_factory=dict)
    unresolved_services: List[UnresolvedService] = field(default_factory=list)
    unresolved_products: List[UnresolvedProduct] = field(default_factory=list)

    @property
    def has_gaps(self) -> bool:
        return bool(self.unresolved_services or self.unresolved_products)


def count_services(service_names: Iterable[Optional[str]]) -> "Counter[str]":
    """Occurrences per normalized service name, first-seen order preserved."""
    counts: Counter = Counter()
    for name in service_names:
        normalized = normalize_service_name(name)
        if normalized:
            counts[normalized] += 1
    return counts


def resolve_required_products(
    service_names: Sequence[Optional[str]],
    mappings: Mapping[str, Sequence[Tuple[int, Decimal]]],
    default_products: Sequence[Tuple[int, Decimal]],
    available_product_ids: Set[int],
) -> ResolutionResult:
    """
    Args:
        service_names: names as performed on the order; repeats count double
        mappings: lowercase service name -> [(product_id, quantity_required)]
        default_products: [(product_id, quantity)] consumed once per order
        available_product_ids: products that exist and are active

    Returns:
        ResolutionResult with positive quantities only.
    """
    result = ResolutionResult()
    totals: Dict[int, Decimal] = {}

    for service_name, occurrences in count_services(service_names).items():
        service_mappings = mappings.get(service_name) or []
        if not service_mappings:
            result.unresolved_services.append(UnresolvedService(service_name=service_name))
            continue
        for product_id, quantity_required in service_mappings:
            if product_id not in available_product_ids:
                result.unresolved_products.append(
                    UnresolvedProduct(service_name=service_name, product_id=product_id)
                )
                continue
            totals[product_id] = totals.get(product_id, Decimal("0")) + to_quantity(quantity_required) * occurrences

    for product_id, quantity in default_products:
        totals[product_id] = totals.get(product_id, Decimal("0")) + to_quantity(quantity)

    result.required = {
        product_id: quantity.quantize(QUANTITY_PLACES)
        for product_id, quantity in totals.items()
        if quantity > 0
    }
    return result
