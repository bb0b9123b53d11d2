"""Line costing: convert a recipe line quantity against a pantry cost basis.

A pantry ingredient quotes its price against a free-text basis such as
'per kg', 'per 100g' or 'per 20 pieces'.  convert_cost() parses that basis,
looks the (basis unit, line unit) pair up in CONVERSION_TABLE and returns a
LineCost.  Every result is tagged: 'converted' carries an amount,
'unconvertible' means the units could not be reconciled and 'missing' means
the line has no quantity or the ingredient has no price.

Nothing here rounds; callers round at display time (see costing.round_money).
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from menu_costing.db.models import PantryIngredient, RecipeIngredientLine

logger = logging.getLogger(__name__)

CONVERTED = "converted"
UNCONVERTIBLE = "unconvertible"
MISSING = "missing"

_PER_PATTERN = re.compile(r"per\s+(\d+\.?\d*)?\s*(.+)?")
_NUMBER_PATTERN = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")

# (cost-basis unit, line unit) -> line units per basis unit
CONVERSION_TABLE = {
    ("kg", "g"): 1000.0,
    ("g", "g"): 1.0,
    ("kg", "kg"): 1.0,
    ("l", "ml"): 1000.0,
    ("ml", "ml"): 1.0,
    ("l", "l"): 1.0,
}
CONVERSION_TABLE.update({
    (basis, line_unit): 1.0
    for basis in ("piece", "pieces", "pcs")
    for line_unit in ("piece", "pieces", "whole")
})

# Used when the cost unit has no 'per' prefix, e.g. a bare 'kg'
_BARE_UNIT_SHORTCUTS = {
    ("kg", "g"): 1000.0,
    ("l", "ml"): 1000.0,
}


@dataclass(frozen=True)
class CostBasis:
    """The parsed form of a cost_unit annotation: 'per 20 pieces' -> (20, 'pieces')."""

    quantity: float
    unit: str


@dataclass(frozen=True)
class LineCost:
    """Tagged result of costing one line.

    rule names the step that priced the line: 'table', 'prefix', 'shortcut'
    or 'direct'.  It is None unless status is 'converted'.
    """

    status: str
    amount: Optional[float] = None
    rule: Optional[str] = None

    @property
    def convertible(self) -> bool:
        return self.status == CONVERTED

    @property
    def cost(self) -> float:
        """The amount to aggregate: unconvertible and missing lines count as zero."""
        return self.amount if self.amount is not None else 0.0


def to_number(value) -> Optional[float]:
    """Read a leading decimal number from value ('250', '1.5', '250g').

    Returns None for None, empty strings and text that does not start with a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_PATTERN.match(str(value))
    return float(match.group(1)) if match else None


def parse_cost_basis(cost_unit: Optional[str]) -> Optional[CostBasis]:
    """Parse 'per <number> <unit>' out of a cost_unit annotation.

    The number defaults to 1 ('per kg' -> (1, 'kg')) and the unit may be empty
    ('per 20' -> (20, '')).  Returns None when there is no 'per' clause or the
    quoted quantity is zero.
    """
    if not cost_unit:
        return None
    match = _PER_PATTERN.search(cost_unit.lower().strip())
    if not match:
        return None
    quantity = float(match.group(1)) if match.group(1) else 1.0
    if quantity <= 0:
        return None
    return CostBasis(quantity=quantity, unit=(match.group(2) or "").strip())


def convert_cost(quantity, unit: Optional[str], cost_per_unit, cost_unit: Optional[str]) -> LineCost:
    """Cost `quantity` `unit` of an ingredient priced at cost_per_unit per cost_unit."""
    qty = to_number(quantity)
    price = to_number(cost_per_unit)
    if qty is None or not price:
        return LineCost(MISSING)

    basis_text = (cost_unit or "").lower().strip()
    line_unit = (unit or "").lower().strip()

    basis = parse_cost_basis(basis_text)
    if basis is not None:
        factor = CONVERSION_TABLE.get((basis.unit, line_unit))
        if factor is not None:
            return LineCost(CONVERTED, qty / factor / basis.quantity * price, "table")
        # An empty unit on either side is a prefix of the other.
        if (basis.unit == line_unit
                or basis.unit.startswith(line_unit)
                or line_unit.startswith(basis.unit)):
            return LineCost(CONVERTED, qty / basis.quantity * price, "prefix")

    factor = _BARE_UNIT_SHORTCUTS.get((basis_text, line_unit))
    if factor is not None:
        return LineCost(CONVERTED, qty / factor * price, "shortcut")
    if not basis_text or basis_text == line_unit:
        return LineCost(CONVERTED, qty * price, "direct")

    logger.debug("Cannot convert %r %r against cost unit %r", quantity, unit, cost_unit)
    return LineCost(UNCONVERTIBLE)


def convert_line_cost(line: RecipeIngredientLine, pantry: Optional[PantryIngredient] = None) -> LineCost:
    """Cost a structured recipe line.

    Uses the live pantry record when given, otherwise the cost snapshot stored
    on the line.  Heading rows are never costed.
    """
    if line.is_heading:
        return LineCost(MISSING)
    if pantry is not None:
        return convert_cost(line.quantity, line.unit, pantry.cost_per_unit, pantry.cost_unit)
    return convert_cost(line.quantity, line.unit, line.cost_per_unit, line.cost_unit)
