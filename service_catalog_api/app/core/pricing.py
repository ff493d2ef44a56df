"""
Unit cost table and cost estimation.

The unit cost table maps a billing unit ("Mbps", "GB", "month"...) to a
price per unit.  It is built once at start-up from configuration and
handed to the estimator explicitly; nothing in this module reads
global state while pricing.

Amounts are computed with ``Decimal``.  Line totals are kept exact
while summing and the grand total is rounded half-up to two decimals,
the convention used for every amount shown to users.

Quantities are capped at ``MAX_QUANTITY`` and prices at
``MAX_UNIT_PRICE`` so that every total fits in ``PRICING_PRECISION``
digits; arithmetic runs in a local context of that precision.
"""

import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ..schemas.tree import Estimate, LineItem, Selection, Tree
from .errors import InvalidQuantity, InvalidUnit, UnknownNode, UnpricedUnit

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_QUANTITY = Decimal("1e12")
MAX_UNIT_PRICE = Decimal("1e9")
PRICING_PRECISION = 60

DEFAULT_UNIT_COSTS: Dict[str, float] = {
    "Mbps": 10.0,
    "GB": 5.0,
    "month": 500.0,
    "year": 5000.0,
    "installation": 1000.0,
    "setup": 500.0,
    "support": 200.0,
    "maintenance": 300.0,
}


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON number (or numeric string) to ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_money(amount: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = PRICING_PRECISION
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def checked_quantity(selection: Selection) -> Decimal:
    """Return the selection's quantity, raising ``InvalidQuantity`` unless 0 < q <= MAX_QUANTITY."""
    quantity = to_decimal(selection.quantity)
    if not quantity.is_finite() or quantity <= 0 or quantity > MAX_QUANTITY:
        raise InvalidQuantity(selection.node_id, selection.quantity)
    return quantity


class UnitCostTable(Mapping[str, Decimal]):
    """Read-only mapping of unit name to non-negative price per unit."""

    def __init__(self, prices: Mapping[str, Any]) -> None:
        parsed: Dict[str, Decimal] = {}
        for unit, price in prices.items():
            amount = to_decimal(price)
            if not amount.is_finite() or amount < 0 or amount > MAX_UNIT_PRICE:
                raise ValueError(
                    f"Price for unit '{unit}' must be a number between 0 and {MAX_UNIT_PRICE}, got {price!r}"
                )
            parsed[str(unit)] = amount
        self._prices = MappingProxyType(parsed)

    def __getitem__(self, unit: str) -> Decimal:
        return self._prices[unit]

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        return f"UnitCostTable({dict(self._prices)!r})"

    def as_json(self) -> Dict[str, float]:
        return {unit: float(price) for unit, price in self._prices.items()}


def load_unit_costs(override: str = "") -> UnitCostTable:
    """Build the process-wide cost table.

    ``override`` is the raw ``UOM_COSTS`` setting: a JSON object whose
    entries replace or extend the defaults.  A malformed override is a
    configuration error and raises ``ValueError`` at start-up.
    """
    prices: Dict[str, Any] = dict(DEFAULT_UNIT_COSTS)
    if override:
        try:
            extra = json.loads(override)
        except json.JSONDecodeError as exc:
            raise ValueError(f"UOM_COSTS is not valid JSON: {exc}") from exc
        if not isinstance(extra, dict):
            raise ValueError("UOM_COSTS must be a JSON object of unit -> price")
        prices.update(extra)
        logger.info("Unit cost table overridden for: %s", ", ".join(sorted(extra)))
    return UnitCostTable(prices)


def price_selections(
    costs: Mapping[str, Decimal],
    selections: Iterable[Selection],
    strict: bool = False,
) -> Estimate:
    """Price selections without consulting a tree.

    Used directly to re-check stored snapshots, whose selections were
    validated against the tree when they were saved.  Quantities must
    be positive and at most ``MAX_QUANTITY``; units missing from
    ``costs`` price at zero unless ``strict`` is set.
    """
    exact_total = Decimal("0")
    breakdown: List[LineItem] = []
    for selection in selections:
        quantity = checked_quantity(selection)
        unit_price: Optional[Decimal] = costs.get(selection.unit)
        if unit_price is None:
            if strict:
                raise UnpricedUnit(selection.node_id, selection.unit)
            logger.debug("Unit %s has no price, counting node %s as free", selection.unit, selection.node_id)
            unit_price = Decimal("0")
        with localcontext() as ctx:
            ctx.prec = PRICING_PRECISION
            line_total = quantity * unit_price
            exact_total += line_total
        breakdown.append(
            LineItem(
                node_id=selection.node_id,
                quantity=quantity,
                unit=selection.unit,
                unit_price=unit_price,
                line_total=round_money(line_total),
            )
        )
    return Estimate(total=round_money(exact_total), breakdown=breakdown)


def estimate(
    tree: Tree,
    costs: Mapping[str, Decimal],
    selections: Iterable[Selection],
    strict: bool = False,
) -> Estimate:
    """Validate selections against ``tree`` and price them.

    Every selection is checked before anything is priced, so an error
    never comes with a partial total:

    * the node must exist (``UnknownNode``);
    * the unit must be offered by the node (``InvalidUnit``);
    * the quantity must be greater than zero and at most
      ``MAX_QUANTITY`` (``InvalidQuantity``).
    """
    selections = list(selections)
    for selection in selections:
        node = tree.get(selection.node_id)
        if node is None:
            raise UnknownNode(selection.node_id)
        if selection.unit not in node.units:
            raise InvalidUnit(selection.node_id, selection.unit)
        checked_quantity(selection)
    return price_selections(costs, selections, strict=strict)
