"""
Unit of measure resolution.

Products carry either a unit id, a legacy unit name, or nothing. Resolution
happens at read time against the current units catalog and never rewrites
the product, so renamed or deleted units surface as NotFound instead of
silently drifting.

Rules (first match wins):
1. unit_of_measure_id set: look up by id. A missing id is NotFound; the
   name is never consulted.
2. unit_of_measure_name set: exact, case-sensitive name lookup.
3. Otherwise NotFound.

NotFound is returned as None. Reads render a placeholder; stock movements
call require_unit() and fail with UnitRequiredError.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from stockledger.core.entities.catalog import Product, ResolvedUnit, UnitOfMeasure
from stockledger.core.exceptions import UnitRequiredError

PLACEHOLDER_SYMBOL = "units"
PLACEHOLDER_NAME = "Unit"


@dataclass(frozen=True)
class UnitById:
    unit_id: int


@dataclass(frozen=True)
class UnitByName:
    name: str


@dataclass(frozen=True)
class NoUnit:
    pass


UnitReference = UnitById | UnitByName | NoUnit


def unit_reference(product: Product) -> UnitReference:
    """Classify how a product points at its unit."""
    if product.unit_of_measure_id is not None:
        return UnitById(product.unit_of_measure_id)
    if product.unit_of_measure_name:
        return UnitByName(product.unit_of_measure_name)
    return NoUnit()


def has_unit(product: Product) -> bool:
    """True if the product references a unit at all (it may still be stale)."""
    return not isinstance(unit_reference(product), NoUnit)


def _resolved(unit: UnitOfMeasure) -> ResolvedUnit:
    return ResolvedUnit(
        id=unit.id,  # type: ignore[arg-type]
        name=unit.name,
        symbol=unit.symbol or PLACEHOLDER_SYMBOL,
    )


def resolve_unit(
    product: Product, units: Iterable[UnitOfMeasure]
) -> ResolvedUnit | None:
    """Resolve a product's unit against the catalog, or None if NotFound."""
    ref = unit_reference(product)

    if isinstance(ref, UnitById):
        for unit in units:
            if unit.id == ref.unit_id:
                return _resolved(unit)
        return None

    if isinstance(ref, UnitByName):
        for unit in units:
            if unit.name == ref.name:
                return _resolved(unit)
        return None

    return None


def require_unit(product: Product, units: Iterable[UnitOfMeasure]) -> ResolvedUnit:
    """Resolve a product's unit or raise UnitRequiredError with the failing field."""
    resolved = resolve_unit(product, units)
    if resolved is not None:
        return resolved

    ref = unit_reference(product)
    if isinstance(ref, UnitById):
        raise UnitRequiredError(
            product.id,
            missing_field="unit_of_measure_id",
            reason="stale",
            stale_value=ref.unit_id,
        )
    if isinstance(ref, UnitByName):
        raise UnitRequiredError(
            product.id,
            missing_field="unit_of_measure_name",
            reason="stale",
            stale_value=ref.name,
        )
    raise UnitRequiredError(product.id)


def describe_unit(product: Product, units: Iterable[UnitOfMeasure]) -> tuple[str, str]:
    """(name, symbol) for display; unresolved units render the neutral placeholder."""
    resolved = resolve_unit(product, units)
    if resolved is None:
        return PLACEHOLDER_NAME, PLACEHOLDER_SYMBOL
    return resolved.name, resolved.symbol
